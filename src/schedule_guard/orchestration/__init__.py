"""
Orchestration -- runs the eight-step validation job and tracks its progress.

Components:
- orchestrator.py: ScheduleValidationOrchestrator plus its generator/store seams
- job.py: Job state and the poll-able JobTracker
"""

from .job import Job, JobStatus, JobTracker
from .orchestrator import (
    InMemoryScheduleStore,
    JobInput,
    JobResult,
    ScheduleGenerator,
    ScheduleStore,
    ScheduleValidationOrchestrator,
)

__all__ = [
    "InMemoryScheduleStore",
    "Job",
    "JobInput",
    "JobResult",
    "JobStatus",
    "JobTracker",
    "ScheduleGenerator",
    "ScheduleStore",
    "ScheduleValidationOrchestrator",
]
