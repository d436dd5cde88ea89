"""
ConfidenceCalibrator -- bounded adjustments to a claim's raw confidence.

Adjustments (applied to the claim's raw confidence, result clamped to [0, 1]):
  +0.10  task citation coverage >= 0.9
  -0.15  task citation coverage <  0.5
  -0.20  per high-severity contradiction involving the claim
  -0.10  provenance score < 0.7
  +0.05  explicit origin
"""

import logging

from ..claims.models import Claim, Contradiction, Origin, Severity
from .models import ProvenanceReport

logger = logging.getLogger(__name__)

HIGH_COVERAGE = 0.9
LOW_COVERAGE = 0.5
HIGH_COVERAGE_BONUS = 0.1
LOW_COVERAGE_PENALTY = 0.15
HIGH_CONTRADICTION_PENALTY = 0.2
LOW_PROVENANCE = 0.7
LOW_PROVENANCE_PENALTY = 0.1
EXPLICIT_BONUS = 0.05


class ConfidenceCalibrator:
    """Turns raw model confidence into a calibrated score.

    Usage:
        calibrator = ConfidenceCalibrator()
        value = calibrator.calibrate(claim, coverage, contradictions, provenance)
    """

    def calibrate(
        self,
        claim: Claim,
        task_coverage: float,
        contradictions: list[Contradiction],
        provenance: ProvenanceReport,
    ) -> float:
        confidence = claim.confidence

        if task_coverage >= HIGH_COVERAGE:
            confidence += HIGH_COVERAGE_BONUS
        elif task_coverage < LOW_COVERAGE:
            confidence -= LOW_COVERAGE_PENALTY

        high = sum(
            1 for c in contradictions
            if c.severity == Severity.HIGH and not c.is_resolved and c.involves(claim.id)
        )
        confidence -= HIGH_CONTRADICTION_PENALTY * high

        if provenance.score < LOW_PROVENANCE:
            confidence -= LOW_PROVENANCE_PENALTY

        if claim.origin == Origin.EXPLICIT:
            confidence += EXPLICIT_BONUS

        return round(max(0.0, min(1.0, confidence)), 4)

    def calibrate_task(self, claims: list[Claim], fallback: float) -> float:
        """Mean calibrated confidence of a task's claims; `fallback` if it has none."""
        if not claims:
            return fallback
        values = [c.effective_confidence for c in claims]
        return round(sum(values) / len(values), 4)
