# autoflake: skip_file

# Initialize environment variables
import dotenv

dotenv.load_dotenv()

# Initialize logging
import logging

from .logging_setup import setup_logging

setup_logging()
logger = logging.getLogger(__name__)

import asyncio

from aiogram import Dispatcher

from .common.bot import create_bot, register_commands
from .common.settings import ConfigurationError, Settings, load_settings
from .common.utils import get_section
from .handlers import dp
from .handlers.middlewares import AllowedSendersMiddleware, UpdateTracingMiddleware
from .logging_setup import attach_telegram_handler, register_telegram_logging_loop
from .moderation.session import ModerationSession
from .moderation.skip_cache import DEFAULT_SWEEP_INTERVAL, DEFAULT_TTL, SkipCache
from .server import run_webhook
from .store.airtable_store import AirtableCandidateStore


def build_session(settings: Settings) -> ModerationSession:
    cache_options = get_section("skip_cache")
    skip_cache = SkipCache(
        ttl=float(cache_options.get("ttl_hours", DEFAULT_TTL / 3600)) * 3600,
        maxsize=int(cache_options.get("maxsize", 100_000)),
    )
    store = AirtableCandidateStore.from_settings(settings, get_section("airtable"))
    return ModerationSession(store, skip_cache)


def setup_dispatcher(dispatcher: Dispatcher, settings: Settings) -> Dispatcher:
    dispatcher.update.outer_middleware(UpdateTracingMiddleware())
    dispatcher.message.outer_middleware(AllowedSendersMiddleware(settings.allowed_ids))
    return dispatcher


async def run(settings: Settings) -> None:
    bot = create_bot(settings.telegram_token)
    attach_telegram_handler(bot, settings.operator_chat_id)
    register_telegram_logging_loop(asyncio.get_running_loop())

    moderation = build_session(settings)
    setup_dispatcher(dp, settings)
    moderation.skip_cache.start_sweeper(
        float(get_section("skip_cache").get("sweep_interval_seconds", DEFAULT_SWEEP_INTERVAL))
    )

    try:
        await register_commands(bot)
        if settings.webhook_url:
            await run_webhook(
                bot,
                dp,
                moderation,
                webhook_url=settings.webhook_url,
                secret=settings.webhook_secret,
                host=settings.webhook_host,
                port=settings.webhook_port,
            )
        else:
            me = await bot.get_me()
            logger.info(f"Authorized on account {me.username}")
            await bot.delete_webhook()
            await dp.start_polling(
                bot,
                handle_as_tasks=False,
                allowed_updates=["message"],
                moderation=moderation,
            )
    finally:
        await moderation.skip_cache.stop_sweeper()
        await bot.session.close()


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.critical(f"Invalid configuration: {e}")
        raise SystemExit(2) from e

    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
