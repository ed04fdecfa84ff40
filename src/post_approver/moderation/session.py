import logging
from typing import Iterable, Optional

from ..store.airtable_store import CandidateStore, CandidateStoreError
from ..types import (
    Candidate,
    Decision,
    DecisionResult,
    DecisionStatus,
    SelectionResult,
    SelectionStatus,
)
from .skip_cache import SkipCache

logger = logging.getLogger(__name__)


def select_candidate(
    candidates: Iterable[Candidate], skip_cache: SkipCache
) -> Optional[Candidate]:
    """First candidate, in store order, that is not currently skipped"""
    for candidate in candidates:
        if candidate.identifier in skip_cache:
            continue
        return candidate
    return None


class ModerationSession:
    """
    The operator's moderation state: at most one candidate awaiting a decision.

    Updates are handled one at a time, so the slot is never touched by two
    handlers at once.
    """

    def __init__(self, store: CandidateStore, skip_cache: SkipCache):
        self.store = store
        self.skip_cache = skip_cache
        self.current: Optional[Candidate] = None

    async def fetch_candidate(self) -> SelectionResult:
        try:
            candidates = await self.store.fetch_pending()
        except CandidateStoreError as e:
            logger.error(f"Error while fetching candidates: {e}", exc_info=True)
            self.current = None
            return SelectionResult(SelectionStatus.FAILED, error=str(e))

        candidate = select_candidate(candidates, self.skip_cache)
        if self.current is not None:
            # Unanswered post is dropped; the operator is not warned
            logger.info(
                f"Replacing pending candidate {self.current.identifier} "
                f"with {candidate.identifier if candidate else 'nothing'}"
            )
        self.current = candidate

        if candidate is None:
            logger.info(f"No eligible candidates among {len(candidates)} pending")
            return SelectionResult(SelectionStatus.EMPTY)
        return SelectionResult(SelectionStatus.FOUND, candidate=candidate)

    async def decide(self, decision: Decision) -> DecisionResult:
        """Apply the decision to the pending candidate; the slot is always cleared"""
        candidate, self.current = self.current, None

        if decision is Decision.UNSUPPORTED:
            return DecisionResult(decision, DecisionStatus.UNSUPPORTED, candidate)
        if candidate is None:
            logger.info(f"{decision.name} received with no pending candidate")
            return DecisionResult(decision, DecisionStatus.NO_CANDIDATE)

        match decision:
            case Decision.APPROVE | Decision.REJECT:
                values = decision.field_values()
                try:
                    await self.store.update_flags(candidate, values)
                except CandidateStoreError as e:
                    logger.error(
                        f"Error while applying {decision.name} to {candidate.identifier}: {e}",
                        exc_info=True,
                    )
                    return DecisionResult(
                        decision, DecisionStatus.FAILED, candidate, error=str(e)
                    )
                candidate.apply(values)
            case Decision.SKIP:
                self.skip_cache.add(candidate.identifier)

        return DecisionResult(decision, DecisionStatus.DONE, candidate)
