import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

from pyairtable import Api, Table

from ..common.settings import Settings
from ..types import Candidate

logger = logging.getLogger(__name__)


class CandidateStoreError(Exception):
    """Raised when the backing store cannot be queried or updated"""


class CandidateStore(Protocol):
    async def fetch_pending(self) -> List[Candidate]: ...

    async def update_flags(self, candidate: Candidate, values: Dict[str, bool]) -> None: ...


@dataclass(frozen=True, slots=True)
class FieldNames:
    """Airtable column names behind Candidate attributes"""

    identifier: str = "guid"
    title: str = "Title"
    approved: str = "IsApproved"
    rejected: str = "IsRejected"
    under_investigation: str = "ToInvistigate"

    def column(self, attr: str) -> str:
        return getattr(self, attr)

    def pending_formula(self) -> str:
        return (
            f"AND({{{self.under_investigation}}} = 0, "
            f"{{{self.approved}}} = 0, "
            f"{{{self.rejected}}} = 0)"
        )


class AirtableCandidateStore:
    """
    Candidates kept in an Airtable table.

    pyairtable is synchronous, so every call runs in a worker thread and is
    awaited before the caller continues.
    """

    def __init__(
        self,
        table: Table,
        *,
        view: Optional[str] = "view_1",
        fields: FieldNames = FieldNames(),
        time_zone: str = "Europe/Moscow",
        user_locale: str = "ru",
    ):
        self._table = table
        self.view = view
        self.fields = fields
        self.time_zone = time_zone
        self.user_locale = user_locale

    @classmethod
    def from_settings(
        cls, settings: Settings, options: Optional[Dict[str, Any]] = None
    ) -> "AirtableCandidateStore":
        """Build the store from env settings and the `airtable` config section"""
        options = options or {}
        table = Api(settings.airtable_api_key).table(
            settings.airtable_base_id, settings.airtable_table_name
        )
        return cls(
            table,
            view=options.get("view", "view_1"),
            fields=FieldNames(**(options.get("fields") or {})),
            time_zone=options.get("time_zone", "Europe/Moscow"),
            user_locale=options.get("user_locale", "ru"),
        )

    async def fetch_pending(self) -> List[Candidate]:
        """Unprocessed candidates in the view's order"""
        query: Dict[str, Any] = {
            "formula": self.fields.pending_formula(),
            "fields": [self.fields.title, self.fields.identifier],
            "cell_format": "string",
            "time_zone": self.time_zone,
            "user_locale": self.user_locale,
        }
        if self.view:
            query["view"] = self.view

        try:
            records = await asyncio.to_thread(self._table.all, **query)
        except Exception as e:
            raise CandidateStoreError(f"Failed to query candidates: {e}") from e

        candidates = []
        for record in records:
            candidate = self._to_candidate(record)
            if candidate is not None:
                candidates.append(candidate)
        logger.debug(f"Fetched {len(candidates)} pending candidates")
        return candidates

    async def update_flags(self, candidate: Candidate, values: Dict[str, bool]) -> None:
        """Partial update: only the given columns change"""
        payload = {self.fields.column(attr): value for attr, value in values.items()}
        try:
            await asyncio.to_thread(self._table.update, candidate.record_id, payload)
        except Exception as e:
            raise CandidateStoreError(
                f"Failed to update {candidate.identifier}: {e}"
            ) from e
        logger.info(f"Updated {candidate.identifier}: {payload}")

    def _to_candidate(self, record: Dict[str, Any]) -> Optional[Candidate]:
        fields = record.get("fields", {})
        identifier = fields.get(self.fields.identifier)
        if not identifier:
            logger.warning(
                f"Record {record.get('id')} has no {self.fields.identifier}, ignoring it"
            )
            return None
        return Candidate(
            record_id=record["id"],
            identifier=str(identifier),
            title=str(fields.get(self.fields.title, "")),
        )
