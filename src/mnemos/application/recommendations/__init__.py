# Application Recommendations Package
from .planner import (
    build_session_queue,
    generate_daily_recommendations,
    generate_session_composition,
)

__all__ = [
    "generate_daily_recommendations",
    "generate_session_composition",
    "build_session_queue",
]
