"""
Job state for the validation orchestrator.

Only the orchestrator running a job writes its state. Everyone else reads it
through JobTracker.status().
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..claims.models import utc_now

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    """Job lifecycle: started -> processing -> completed | failed."""

    STARTED = "started"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# Progress reported after each of the eight steps.
STEP_PROGRESS = {
    "accept_schedule": 10,
    "extract_claims": 25,
    "validate_claims": 40,
    "attach_metadata": 55,
    "evaluate_gates": 70,
    "repair": 80,
    "final_validation": 90,
    "store": 100,
}


@dataclass
class Job:
    """One end-to-end validation run."""

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: JobStatus = JobStatus.STARTED
    progress: int = 0
    step: str | None = None
    chart_id: str | None = None
    error: str | None = None
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    @property
    def is_finished(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    def advance(self, step: str) -> None:
        """Record a finished step. Progress never moves backwards."""
        self.step = step
        self.progress = max(self.progress, STEP_PROGRESS[step])
        if self.status == JobStatus.STARTED:
            self.status = JobStatus.PROCESSING
        self.updated_at = utc_now()

    def complete(self, chart_id: str | None) -> None:
        self.chart_id = chart_id
        self.status = JobStatus.COMPLETED
        self.progress = 100
        self.updated_at = utc_now()

    def fail(self, error: str) -> None:
        self.error = error
        self.status = JobStatus.FAILED
        self.updated_at = utc_now()

    def to_status(self) -> dict[str, Any]:
        status: dict[str, Any] = {"status": self.status.value, "progress": self.progress}
        if self.chart_id is not None:
            status["chartId"] = self.chart_id
        if self.error is not None:
            status["error"] = self.error
        return status


class JobTracker:
    """In-process registry of jobs, keyed by id."""

    def __init__(self):
        self._jobs: dict[str, Job] = {}

    def create(self, job_id: str | None = None) -> Job:
        job = Job(id=job_id) if job_id else Job()
        if job.id in self._jobs:
            raise ValueError(f"Job {job.id} already exists")
        self._jobs[job.id] = job
        logger.debug(f"[Orchestrator] Job {job.id} created")
        return job

    def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def status(self, job_id: str) -> dict[str, Any] | None:
        """Poll-able view: {status, progress, chartId?, error?}. None if unknown."""
        job = self._jobs.get(job_id)
        return job.to_status() if job else None

    def jobs(self) -> list[Job]:
        return list(self._jobs.values())
