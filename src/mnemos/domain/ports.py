"""
Ports (interfaces) for the stores the engine reads from and writes to.

Persistence is owned by the caller. Application services depend on these
abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from mnemos.domain.adaptive.models import SessionPerformanceRecord
from mnemos.domain.cards.models import CardProgress, Direction, ErrorType, MistakeRecord


class ProgressStore(ABC):
    """
    Port for per-(card, direction) review state.

    Implementations:
        - InMemoryProgressStore: dict-backed, used by the CLI, server and tests.
    """

    @abstractmethod
    async def get(self, card_id: str, direction: Direction) -> CardProgress | None:
        """
        Fetch the progress record for a card and direction.

        Returns:
            The stored record, or None if the pair was never reviewed.
        """
        pass

    @abstractmethod
    async def put(self, progress: CardProgress) -> None:
        """Atomically replace the record for ``progress.key``."""
        pass

    @abstractmethod
    async def all(self) -> dict[tuple[str, Direction], CardProgress]:
        """Snapshot of every stored record keyed by (card_id, direction)."""
        pass


class MistakeLog(ABC):
    """Append-only log of mistakes."""

    @abstractmethod
    async def add(self, record: MistakeRecord) -> None:
        pass

    @abstractmethod
    async def query(
        self,
        card_id: str | None = None,
        error_type: ErrorType | None = None,
        since: datetime | None = None,
        limit: int | None = None,
    ) -> list[MistakeRecord]:
        """
        Return mistakes matching every given filter, oldest first.

        Args:
            card_id: Only mistakes on this card.
            error_type: Only mistakes of this type.
            since: Only mistakes at or after this timestamp.
            limit: Keep only the most recent ``limit`` matches.
        """
        pass


class SessionLog(ABC):
    """Append-only log of completed study sessions."""

    @abstractmethod
    async def add(self, record: SessionPerformanceRecord) -> None:
        pass

    @abstractmethod
    async def list(self, limit: int | None = None) -> list[SessionPerformanceRecord]:
        """Sessions oldest first; ``limit`` keeps only the most recent ones."""
        pass
