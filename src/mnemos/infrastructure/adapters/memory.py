"""
In-memory stores: Infrastructure adapters backed by plain dicts and lists.

Used by the CLI, the HTTP server and the tests. Nothing is persisted.
"""

import logging
from datetime import datetime

from mnemos.domain.adaptive.models import SessionPerformanceRecord
from mnemos.domain.cards.models import (
    CardProgress,
    Direction,
    ErrorType,
    MistakeRecord,
    ProgressKey,
)
from mnemos.domain.ports import MistakeLog, ProgressStore, SessionLog

logger = logging.getLogger(__name__)


class InMemoryProgressStore(ProgressStore):
    def __init__(self, records: list[CardProgress] | None = None):
        self._records: dict[ProgressKey, CardProgress] = {}
        for record in records or []:
            self._records[record.key] = record

    async def get(self, card_id: str, direction: Direction) -> CardProgress | None:
        return self._records.get((card_id, direction))

    async def put(self, progress: CardProgress) -> None:
        self._records[progress.key] = progress

    async def all(self) -> dict[ProgressKey, CardProgress]:
        return dict(self._records)


class InMemoryMistakeLog(MistakeLog):
    """
    Append-only mistake log.

    Records are kept in insertion order, which callers treat as chronological.
    """

    def __init__(self, records: list[MistakeRecord] | None = None):
        self._records: list[MistakeRecord] = list(records or [])

    async def add(self, record: MistakeRecord) -> None:
        self._records.append(record)

    async def query(
        self,
        card_id: str | None = None,
        error_type: ErrorType | None = None,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[MistakeRecord]:
        matches = [
            m
            for m in self._records
            if (card_id is None or m.card_id == card_id)
            and (error_type is None or m.error_type == error_type)
            and (since is None or m.timestamp >= since)
        ]
        if limit is not None:
            matches = matches[-limit:] if limit > 0 else []
        return matches


class InMemorySessionLog(SessionLog):
    def __init__(self, records: list[SessionPerformanceRecord] | None = None):
        self._records: list[SessionPerformanceRecord] = list(records or [])

    async def add(self, record: SessionPerformanceRecord) -> None:
        self._records.append(record)
        logger.debug(f"Session {record.session_id} logged ({record.cards_reviewed} cards)")

    async def list(self, limit: int | None = None) -> list[SessionPerformanceRecord]:
        if limit is None:
            return list(self._records)
        return self._records[-limit:] if limit > 0 else []
