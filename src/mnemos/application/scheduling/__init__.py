# Application Scheduling Package
from .quality import quality_from_answer, quality_from_choice, quality_from_match
from .sm2 import create_initial_progress, schedule
from .smart import ScheduleContext, apply_factors, compute_factors, schedule_smart

__all__ = [
    "create_initial_progress",
    "schedule",
    "ScheduleContext",
    "compute_factors",
    "apply_factors",
    "schedule_smart",
    "quality_from_answer",
    "quality_from_choice",
    "quality_from_match",
]
