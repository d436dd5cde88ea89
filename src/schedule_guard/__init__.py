"""
schedule-guard -- validation, quality gates and automated repair for
AI-generated project schedules.

Pipeline: claims -> validation -> gates -> repair, sequenced by the
orchestration package.
"""

from .config import PipelineConfig
from .errors import (
    ClaimExtractionError,
    LedgerError,
    ScheduleGenerationError,
    ScheduleGuardError,
    StructuralValidationError,
)
from .orchestration import JobInput, JobResult, ScheduleValidationOrchestrator

__version__ = "0.1.0"

__all__ = [
    "ClaimExtractionError",
    "JobInput",
    "JobResult",
    "LedgerError",
    "PipelineConfig",
    "ScheduleGenerationError",
    "ScheduleGuardError",
    "ScheduleValidationOrchestrator",
    "StructuralValidationError",
    "__version__",
]
