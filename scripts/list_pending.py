#!/usr/bin/env python3
"""Print candidates waiting for moderation, in the order the bot offers them."""
import argparse
import asyncio

from dotenv import load_dotenv

load_dotenv()

from post_approver.common.settings import load_settings
from post_approver.common.utils import get_section
from post_approver.store.airtable_store import AirtableCandidateStore


async def main(limit: int):
    settings = load_settings()
    store = AirtableCandidateStore.from_settings(settings, get_section("airtable"))
    candidates = await store.fetch_pending()

    print(f"\nPending candidates: {len(candidates)}")
    print("-------------------")
    for candidate in candidates[:limit]:
        print(f"ID: {candidate.identifier}")
        print(f"Title: {candidate.title}")
        print(f"Record: {candidate.record_id}")
        print("-------------------")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--limit", type=int, default=20, help="How many to print")
    args = parser.parse_args()
    asyncio.run(main(args.limit))
