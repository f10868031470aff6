# Infrastructure Adapters Package
from .memory import InMemoryMistakeLog, InMemoryProgressStore, InMemorySessionLog
from .snapshot import LearnerSnapshot, SnapshotError, load_snapshot, parse_snapshot

__all__ = [
    "InMemoryProgressStore",
    "InMemoryMistakeLog",
    "InMemorySessionLog",
    "LearnerSnapshot",
    "SnapshotError",
    "load_snapshot",
    "parse_snapshot",
]
