"""
Pipeline configuration -- thresholds and bounds shared by every stage.

Defaults match the documented policy. Override per process with
SCHEDULE_GUARD_* environment variables:

    SCHEDULE_GUARD_CITATION_COVERAGE=0.8
    SCHEDULE_GUARD_MIN_CONFIDENCE=0.6
    SCHEDULE_GUARD_MAX_REPAIR_ATTEMPTS=5
    SCHEDULE_GUARD_CONTRADICTION_BUDGET_SECONDS=30
    SCHEDULE_GUARD_STALE_CITATION_DAYS=30
    SCHEDULE_GUARD_REPORTS_DIR=.schedule_guard/reports
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

ENV_PREFIX = "SCHEDULE_GUARD_"


@dataclass
class PipelineConfig:
    """Configuration for one orchestrator instance."""

    citation_coverage_threshold: float = 0.75
    min_confidence_threshold: float = 0.5
    max_repair_attempts: int = 3
    contradiction_budget_seconds: float | None = None  # None = unbounded pass
    stale_citation_days: int = 30
    reports_dir: Path | None = None  # When set, finished jobs write a JSON report

    def __post_init__(self):
        if not 0.0 <= self.citation_coverage_threshold <= 1.0:
            raise ValueError("citation_coverage_threshold must be within [0, 1]")
        if not 0.0 <= self.min_confidence_threshold <= 1.0:
            raise ValueError("min_confidence_threshold must be within [0, 1]")
        if self.max_repair_attempts < 0:
            raise ValueError("max_repair_attempts cannot be negative")

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Build a config from SCHEDULE_GUARD_* variables, falling back to defaults."""
        defaults = cls()
        budget = _env("CONTRADICTION_BUDGET_SECONDS")
        reports = _env("REPORTS_DIR")
        return cls(
            citation_coverage_threshold=float(
                _env("CITATION_COVERAGE") or defaults.citation_coverage_threshold
            ),
            min_confidence_threshold=float(
                _env("MIN_CONFIDENCE") or defaults.min_confidence_threshold
            ),
            max_repair_attempts=int(
                _env("MAX_REPAIR_ATTEMPTS") or defaults.max_repair_attempts
            ),
            contradiction_budget_seconds=float(budget) if budget else None,
            stale_citation_days=int(
                _env("STALE_CITATION_DAYS") or defaults.stale_citation_days
            ),
            reports_dir=Path(reports) if reports else None,
        )


def _env(name: str) -> str:
    return os.environ.get(f"{ENV_PREFIX}{name}", "").strip()
