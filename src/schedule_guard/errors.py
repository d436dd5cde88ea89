"""Exception types raised by the schedule validation pipeline.

Only StructuralValidationError aborts a job. Everything else is caught at
the stage boundary and recorded as a degraded result.
"""


class ScheduleGuardError(Exception):
    """Base class for all pipeline errors."""

    pass


class ClaimExtractionError(ScheduleGuardError, ValueError):
    """Raised when a task cannot be turned into claims (not a mapping, no id)."""

    pass


class LedgerError(ScheduleGuardError):
    """Raised on an invalid ledger insert (missing or duplicate id)."""

    pass


class StructuralValidationError(ScheduleGuardError, ValueError):
    """Raised when the final structural check fails. Fatal for the job."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class ScheduleGenerationError(ScheduleGuardError):
    """Raised when a job has no schedule and none could be generated."""

    pass
