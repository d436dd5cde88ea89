"""Result models for the validation pipeline."""

from dataclasses import dataclass, field
from typing import Any

from ..claims.models import Claim, Contradiction


@dataclass
class CitationCheck:
    """Structural verdict on one claim's citation.

    Attributes:
        valid: True when the citation exists, names a supplied document and
               carries character offsets.
        reason: Why the citation failed ("" when valid).
        document_found: Whether the named document was among the sources.
    """

    valid: bool
    reason: str = ""
    document_found: bool = False


@dataclass
class ProvenanceReport:
    """Provenance quality of one claim, 0.0 (worthless) to 1.0."""

    score: float
    penalties: list[str] = field(default_factory=list)
    hallucination: bool = False
    stale: bool = False


@dataclass
class ClaimValidation:
    """Everything the pipeline learned about one claim."""

    claim: Claim
    citation: CitationCheck
    provenance: ProvenanceReport
    contradictions: list[Contradiction] = field(default_factory=list)


@dataclass
class TaskValidationResult:
    """Per-task output of the validation pipeline.

    A task that raised during validation comes back with zero quality
    (coverage, provenance and confidence all 0.0) and `error` set.
    """

    task_id: str | None
    claims: list[ClaimValidation] = field(default_factory=list)
    citation_coverage: float = 0.0
    provenance_score: float = 0.0
    calibrated_confidence: float = 0.0
    contradictions: list[Contradiction] = field(default_factory=list)
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def failure(cls, task_id: str | None, error: str) -> "TaskValidationResult":
        return cls(task_id=task_id, error=error)

    def to_metadata(self) -> dict[str, Any]:
        """camelCase summary attached to the task as validationMetadata."""
        metadata: dict[str, Any] = {
            "claimIds": [cv.claim.id for cv in self.claims],
            "citationCoverage": round(self.citation_coverage, 4),
            "provenanceScore": round(self.provenance_score, 4),
            "calibratedConfidence": round(self.calibrated_confidence, 4),
            "contradictionIds": [c.id for c in self.contradictions],
            "hallucinatedClaimIds": [
                cv.claim.id for cv in self.claims if cv.provenance.hallucination
            ],
        }
        if self.error:
            metadata["error"] = self.error
        return metadata
