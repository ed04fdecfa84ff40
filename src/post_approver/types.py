from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class Decision(Enum):
    """What the operator pressed under a post"""

    APPROVE = "✔️ Approve"
    REJECT = "❌ Reject"
    SKIP = "👀 Skip"
    UNSUPPORTED = ""

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def from_text(cls, text: Optional[str]) -> Decision:
        """Exact match against the button labels; anything else is UNSUPPORTED"""
        for decision in (cls.APPROVE, cls.REJECT, cls.SKIP):
            if text == decision.value:
                return decision
        return cls.UNSUPPORTED

    def field_values(self) -> Dict[str, bool]:
        """Moderation flags written to the store, keyed by Candidate attribute"""
        return {
            "approved": self is Decision.APPROVE,
            "rejected": self is Decision.REJECT,
            "under_investigation": False,
        }


@dataclass(slots=True)
class Candidate:
    record_id: str
    identifier: str
    title: str
    approved: bool = False
    rejected: bool = False
    under_investigation: bool = False

    @property
    def flags(self) -> tuple[bool, bool, bool]:
        return (self.approved, self.rejected, self.under_investigation)

    def apply(self, values: Dict[str, bool]) -> None:
        for attr, value in values.items():
            setattr(self, attr, value)


class SelectionStatus(Enum):
    FOUND = "found"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass
class SelectionResult:
    status: SelectionStatus
    candidate: Optional[Candidate] = None
    error: Optional[str] = None


class DecisionStatus(Enum):
    DONE = "done"
    NO_CANDIDATE = "no_candidate"
    UNSUPPORTED = "unsupported"
    FAILED = "failed"


@dataclass
class DecisionResult:
    decision: Decision
    status: DecisionStatus
    candidate: Optional[Candidate] = None
    error: Optional[str] = None
