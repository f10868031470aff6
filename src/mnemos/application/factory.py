"""
Study Service Factory
Centralizes wiring of the in-memory stores behind a StudyService.
"""

from mnemos.application.config import EngineConfig
from mnemos.application.service import StudyService
from mnemos.infrastructure.adapters.memory import (
    InMemoryMistakeLog,
    InMemoryProgressStore,
    InMemorySessionLog,
)
from mnemos.infrastructure.adapters.snapshot import LearnerSnapshot


def build_service(snapshot: LearnerSnapshot, config: EngineConfig | None = None) -> StudyService:
    """
    Returns a StudyService seeded from a learner snapshot.
    """
    config = config or EngineConfig()
    return StudyService(
        flashcards=snapshot.flashcards,
        progress_store=InMemoryProgressStore(snapshot.progress),
        mistake_log=InMemoryMistakeLog(snapshot.mistakes),
        session_log=InMemorySessionLog(snapshot.sessions),
        config=config,
        difficulty=snapshot.difficulty,
    )
