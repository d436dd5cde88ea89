"""
TaskClaimExtractor -- turns one schedule task into atomic, typed claims.

Field order is fixed so extraction is deterministic:
  duration -> startDate -> dependencies[i] -> regulatoryRequirement -> resources[i]

Absent optional fields produce no claim. The task itself is never mutated.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

from ..errors import ClaimExtractionError
from .models import (
    Citation,
    Claim,
    ClaimType,
    InferenceRationale,
    Origin,
    claim_id_for,
)

logger = logging.getLogger(__name__)

DAYS_PER_UNIT = {
    "hour": 1 / 24,
    "day": 1.0,
    "week": 7.0,
    "month": 30.0,
    "year": 365.0,
}

_WHITESPACE = re.compile(r"\s+")


def normalize_origin(value: Any) -> Origin:
    """Map the generator's origin strings onto Origin. Unknown -> inferred."""
    if isinstance(value, Origin):
        return value
    if isinstance(value, str) and value.strip().lower() == Origin.EXPLICIT.value:
        return Origin.EXPLICIT
    return Origin.INFERRED


def normalize_subject(task: Mapping[str, Any]) -> str:
    name = task.get("name")
    if isinstance(name, str) and name.strip():
        return _WHITESPACE.sub(" ", name.strip().lower())
    return str(task.get("id"))


def duration_in_days(value: Any, unit: Any) -> Any:
    """Convert a duration to days for comparison. Non-numeric values pass through."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if not isinstance(unit, str) or not unit.strip():
        return float(value)
    key = unit.strip().lower().rstrip("s")
    factor = DAYS_PER_UNIT.get(key)
    if factor is None:
        return float(value)
    return float(value) * factor


def first_citation(field_data: Mapping[str, Any] | None) -> Citation | None:
    if not isinstance(field_data, Mapping):
        return None
    citations = field_data.get("sourceCitations") or []
    if citations and isinstance(citations[0], Mapping):
        return Citation.from_dict(citations[0])
    return None


def rationale_of(field_data: Mapping[str, Any] | None) -> InferenceRationale | None:
    if not isinstance(field_data, Mapping):
        return None
    rationale = field_data.get("inferenceRationale")
    if isinstance(rationale, Mapping):
        return InferenceRationale.from_dict(rationale)
    return None


@dataclass
class ExtractionResult:
    """Outcome of extracting one task inside a batch."""

    task_id: str | None
    claims: list[Claim] = field(default_factory=list)
    success: bool = True
    error: str | None = None


class TaskClaimExtractor:
    """Extracts claims from schedule tasks.

    Usage:
        extractor = TaskClaimExtractor()
        claims = extractor.extract_claims(task)
        results = extractor.extract_batch(schedule["tasks"])
    """

    def extract_claims(self, task: Mapping[str, Any]) -> list[Claim]:
        """Return the task's claims in field order. Raises ClaimExtractionError."""
        if not isinstance(task, Mapping):
            raise ClaimExtractionError(f"Task must be a mapping, got {type(task).__name__}")
        task_id = task.get("id")
        if not task_id:
            raise ClaimExtractionError("Task has no id")
        task_id = str(task_id)
        subject = normalize_subject(task)

        claims: list[Claim] = []

        duration = task.get("duration")
        if isinstance(duration, Mapping) and duration.get("value") is not None:
            claims.append(self._field_claim(
                task_id, subject, "duration", "duration", ClaimType.DURATION, duration,
                unit=duration.get("unit"),
                normalized=duration_in_days(duration.get("value"), duration.get("unit")),
            ))

        start_date = task.get("startDate")
        if isinstance(start_date, Mapping) and start_date.get("value") is not None:
            claims.append(self._field_claim(
                task_id, subject, "startDate", "startDate", ClaimType.DEADLINE, start_date,
            ))

        for index, dep_id in enumerate(_list_field(task, "dependencies")):
            claims.append(self._dependency_claim(task, task_id, subject, index, dep_id))

        requirement = task.get("regulatoryRequirement")
        if isinstance(requirement, Mapping) and requirement.get("isRequired"):
            claims.append(self._field_claim(
                task_id, subject, "regulatory", "regulatoryRequirement",
                ClaimType.REQUIREMENT, requirement,
                value=requirement.get("regulation"),
            ))

        for index, resource in enumerate(_list_field(task, "resources")):
            if isinstance(resource, Mapping):
                value = resource.get("value", resource.get("name"))
                field_data = resource
            else:
                value = resource
                field_data = {"origin": task.get("origin"), "confidence": task.get("confidence")}
            claims.append(self._field_claim(
                task_id, f"{subject}/resources[{index}]", f"resource-{index}", f"resources[{index}]",
                ClaimType.RESOURCE, field_data, value=value,
            ))

        logger.debug(f"[Extractor] Extracted {len(claims)} claims from task {task_id}")
        return claims

    def extract_batch(self, tasks: Iterable[Mapping[str, Any]]) -> list[ExtractionResult]:
        """Extract every task independently. One bad task does not stop the batch."""
        results = []
        for task in tasks:
            task_id = task.get("id") if isinstance(task, Mapping) else None
            try:
                results.append(ExtractionResult(task_id=task_id, claims=self.extract_claims(task)))
            except (ClaimExtractionError, TypeError, ValueError) as e:
                logger.error(f"[Extractor] Failed to extract claims from task {task_id}: {e}")
                results.append(ExtractionResult(task_id=task_id, success=False, error=str(e)))
        return results

    # -------------------------------------------------------------------------
    # Builders
    # -------------------------------------------------------------------------

    def _field_claim(
        self,
        task_id: str,
        subject: str,
        slot: str,
        field_name: str,
        claim_type: ClaimType,
        field_data: Mapping[str, Any],
        value: Any = None,
        unit: str | None = None,
        normalized: Any = None,
    ) -> Claim:
        return Claim(
            id=claim_id_for(task_id, slot),
            task_id=task_id,
            claim_type=claim_type,
            field_name=field_name,
            value=field_data.get("value") if value is None else value,
            origin=normalize_origin(field_data.get("origin")),
            confidence=_as_confidence(field_data.get("confidence")),
            subject=subject,
            unit=unit,
            normalized_value=normalized,
            citation=first_citation(field_data),
            rationale=rationale_of(field_data),
        )

    def _dependency_claim(
        self, task: Mapping[str, Any], task_id: str, subject: str, index: int, dep_id: Any
    ) -> Claim:
        # Dependencies are plain ids; provenance comes from the task itself.
        return Claim(
            id=claim_id_for(task_id, f"dependency-{index}"),
            task_id=task_id,
            claim_type=ClaimType.DEPENDENCY,
            field_name=f"dependencies[{index}]",
            value=str(dep_id),
            origin=normalize_origin(task.get("origin")),
            confidence=_as_confidence(task.get("confidence")),
            subject=f"{subject}->{dep_id}",
            citation=first_citation(task),
            rationale=rationale_of(task),
        )


def _as_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


def _list_field(task: Mapping[str, Any], name: str) -> list[Any]:
    """A list-valued task field. Any other shape yields no claims."""
    value = task.get(name)
    if value is None:
        return []
    if not isinstance(value, list):
        logger.warning(
            f"[Extractor] Task {task.get('id')} {name} is {type(value).__name__}, not a list; skipped"
        )
        return []
    return value
