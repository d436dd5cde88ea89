"""Data models for claims, citations and contradictions."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

CLAIM_NAMESPACE = uuid.UUID("6f1c8a52-3b0e-4f7a-9d2c-5e8b1a4c7d90")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# ENUMS
# =============================================================================


class Origin(str, Enum):
    """Provenance class of a task or field."""

    EXPLICIT = "explicit"  # Backed by a citation into a source document
    INFERRED = "inferred"  # Derived by the model, backed by a rationale


class ClaimType(str, Enum):
    """Kinds of atomic statement the extractor produces."""

    DURATION = "duration"
    DEADLINE = "deadline"
    DEPENDENCY = "dependency"
    REQUIREMENT = "requirement"
    RESOURCE = "resource"


class Severity(str, Enum):
    """Contradiction severity bands, weakest first."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


INFERENCE_METHODS = (
    "temporal-logic",
    "industry-standard",
    "dependency-chain",
    "regulatory-pattern",
)


# =============================================================================
# PROVENANCE
# =============================================================================


@dataclass
class Citation:
    """Pointer to a quoted span in a named source document.

    Attributes:
        document_name: Name of the source document the quote comes from.
        provider: Who supplied the document (e.g. "INTERNAL", "GEMINI").
        start_char / end_char: Character offsets of the quote.
        exact_quote: The verbatim text the claim relies on.
        retrieved_at: ISO timestamp of when the document was read.
    """

    document_name: str | None = None
    provider: str | None = None
    start_char: int | None = None
    end_char: int | None = None
    exact_quote: str | None = None
    retrieved_at: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Citation":
        return cls(
            document_name=data.get("documentName"),
            provider=data.get("provider"),
            start_char=data.get("startChar"),
            end_char=data.get("endChar"),
            exact_quote=data.get("exactQuote"),
            retrieved_at=data.get("retrievedAt"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "documentName": self.document_name,
            "provider": self.provider,
            "startChar": self.start_char,
            "endChar": self.end_char,
            "exactQuote": self.exact_quote,
            "retrievedAt": self.retrieved_at,
        }


@dataclass
class InferenceRationale:
    """How a non-cited value was derived."""

    method: str | None = None
    explanation: str | None = None
    supporting_claims: list[str] = field(default_factory=list)
    confidence: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "InferenceRationale":
        return cls(
            method=data.get("method"),
            explanation=data.get("explanation") or data.get("reasoning"),
            supporting_claims=list(data.get("supportingClaims") or []),
            confidence=data.get("confidence"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method,
            "explanation": self.explanation,
            "supportingClaims": list(self.supporting_claims),
            "confidence": self.confidence,
        }


# =============================================================================
# CLAIMS
# =============================================================================


def claim_id_for(task_id: str, slot: str) -> str:
    """Deterministic claim id for one field slot of one task."""
    return str(uuid.uuid5(CLAIM_NAMESPACE, f"{task_id}:{slot}"))


@dataclass
class Claim:
    """One typed statement about one task field.

    Claims are owned by the ClaimLedger. Tasks refer to them by id only.
    `normalized_value` is the comparable form of `value` (durations in days).
    """

    id: str
    task_id: str
    claim_type: ClaimType
    field_name: str
    value: Any
    origin: Origin
    confidence: float
    subject: str = ""
    unit: str | None = None
    normalized_value: Any = None
    citation: Citation | None = None
    rationale: InferenceRationale | None = None
    provenance_score: float | None = None
    calibrated_confidence: float | None = None
    superseded_by: str | None = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Claim requires an id")
        if self.normalized_value is None:
            self.normalized_value = self.value

    @property
    def is_cited(self) -> bool:
        return self.citation is not None

    @property
    def effective_confidence(self) -> float:
        if self.calibrated_confidence is not None:
            return self.calibrated_confidence
        return self.confidence

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "taskId": self.task_id,
            "claimType": self.claim_type.value,
            "field": self.field_name,
            "value": self.value,
            "unit": self.unit,
            "subject": self.subject,
            "origin": self.origin.value,
            "confidence": self.confidence,
            "calibratedConfidence": self.calibrated_confidence,
            "provenanceScore": self.provenance_score,
            "citation": self.citation.to_dict() if self.citation else None,
            "rationale": self.rationale.to_dict() if self.rationale else None,
            "supersededBy": self.superseded_by,
        }


@dataclass
class Contradiction:
    """Disagreement between two claims of the same type.

    Resolution fields are written only by the repair engine. A resolved
    contradiction stays in the ledger.
    """

    claim_type: ClaimType
    claim_ids: tuple[str, str]
    values: tuple[Any, Any]
    severity: Severity
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    detected_at: str = field(default_factory=utc_now)
    resolved_at: str | None = None
    resolution_strategy: str | None = None
    winning_claim_id: str | None = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Contradiction requires an id")

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None

    def involves(self, claim_id: str) -> bool:
        return claim_id in self.claim_ids

    def resolve(self, winning_claim_id: str, strategy: str) -> None:
        self.winning_claim_id = winning_claim_id
        self.resolution_strategy = strategy
        self.resolved_at = utc_now()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "claimType": self.claim_type.value,
            "claimIds": list(self.claim_ids),
            "values": list(self.values),
            "severity": self.severity.value,
            "detectedAt": self.detected_at,
            "resolvedAt": self.resolved_at,
            "resolutionStrategy": self.resolution_strategy,
            "winningClaimId": self.winning_claim_id,
        }
