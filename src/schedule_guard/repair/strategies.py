"""
Repair strategies -- one Repairer per quality gate.

Each strategy mutates the schedule dict in place and reports what it did as a
RepairOutcome. A strategy that cannot fix its gate says so with
success=False; it never raises on bad input.

Every strategy is idempotent on content: running it on a schedule it already
repaired changes nothing.
"""

import logging
import uuid
from typing import Any, Protocol, runtime_checkable

from ..claims.ledger import ClaimLedger
from ..claims.models import Claim, Origin, Severity
from ..gates.builtin import (
    CITATION_COVERAGE,
    CONFIDENCE_MINIMUM,
    CONTRADICTION_SEVERITY,
    PRIMARY_FIELDS,
    REGULATORY_FLAGS,
    SCHEMA_COMPLIANCE,
    schedule_tasks,
    task_confidence,
    task_is_cited,
)
from ..gates.models import GateFailure
from ..gates.regulatory import detect_regulation
from ..schema import validate_structure
from .models import RepairOutcome

logger = logging.getLogger(__name__)

UNCITED_CONFIDENCE_CAP = 0.7
INFERRED_CONFIDENCE_CAP = 0.85
REGULATORY_CONFIDENCE = 0.9
DEFAULT_CONFIDENCE = 0.5
RESOLUTION_STRATEGY = "keep_authoritative_claim"
FIELD_NAMES = PRIMARY_FIELDS + ("regulatoryRequirement",)


@runtime_checkable
class Repairer(Protocol):
    """Strategy that moves one named gate toward passing.

    Implement this to pair a custom gate with its repair:

        class MyRepairer:
            gate = "MY_GATE"

            def repair(self, schedule, failure):
                ...
                return RepairOutcome(gate=self.gate, success=True)
    """

    gate: str

    def repair(self, schedule: dict[str, Any], failure: GateFailure) -> RepairOutcome:
        ...


def generic_rationale(explanation: str) -> dict[str, Any]:
    return {
        "method": "industry-standard",
        "explanation": explanation,
        "supportingClaims": [],
    }


def _as_confidence(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _cap(data: dict[str, Any], cap: float) -> bool:
    confidence = _as_confidence(data.get("confidence"))
    if confidence is not None and confidence > cap:
        data["confidence"] = cap
        return True
    return False


def _field_dicts(task: dict[str, Any]) -> list[tuple[str, dict[str, Any]]]:
    """(path, field) for every fielded claim embedded in a task."""
    fields = [(name, task[name]) for name in FIELD_NAMES if isinstance(task.get(name), dict)]
    resources = task.get("resources")
    if isinstance(resources, list):
        fields.extend(
            (f"resources[{i}]", r) for i, r in enumerate(resources) if isinstance(r, dict)
        )
    return fields


# =============================================================================
# CITATION COVERAGE
# =============================================================================


class CitationCoverageRepairer:
    """Mark uncited tasks and fields as inferred.

    Citations cannot be fabricated, so the coverage score itself does not
    improve. The repair makes the uncited data honest about its origin.
    """

    gate = CITATION_COVERAGE

    def repair(self, schedule: dict[str, Any], failure: GateFailure) -> RepairOutcome:
        changes: list[str] = []
        for task in schedule_tasks(schedule):
            if task_is_cited(task):
                continue
            task_id = task.get("id")
            for path, field_data in _field_dicts(task):
                if field_data.get("sourceCitations"):
                    continue
                if self._mark_inferred(field_data, with_rationale=True):
                    changes.append(f"{task_id}.{path}: marked inferred")
            if self._mark_inferred(task, with_rationale=False):
                changes.append(f"{task_id}: marked inferred")

        return RepairOutcome(
            gate=self.gate,
            success=True,
            reason="Uncited data marked inferred; coverage unchanged (citations cannot be fabricated)",
            changes=changes,
        )

    @staticmethod
    def _mark_inferred(data: dict[str, Any], with_rationale: bool) -> bool:
        changed = False
        if data.get("origin") != Origin.INFERRED.value:
            data["origin"] = Origin.INFERRED.value
            changed = True
        if _cap(data, UNCITED_CONFIDENCE_CAP):
            changed = True
        if with_rationale and not data.get("inferenceRationale"):
            data["inferenceRationale"] = generic_rationale(
                "No source citation available; value estimated from comparable projects"
            )
            changed = True
        return changed


# =============================================================================
# CONTRADICTIONS
# =============================================================================


def pick_authoritative(first: Claim, second: Claim) -> tuple[Claim, Claim]:
    """(winner, loser): explicit beats inferred, then higher raw confidence, then lower id."""

    def rank(claim: Claim) -> tuple:
        return (
            0 if claim.origin == Origin.EXPLICIT else 1,
            -claim.confidence,
            claim.id,
        )

    winner, loser = sorted((first, second), key=rank)
    return winner, loser


class ContradictionRepairer:
    """Close every unresolved high-severity contradiction in favour of the
    authoritative claim, then re-sync the schedule's contradiction list."""

    gate = CONTRADICTION_SEVERITY

    def __init__(self, ledger: ClaimLedger | None = None):
        self.ledger = ledger

    def repair(self, schedule: dict[str, Any], failure: GateFailure) -> RepairOutcome:
        if self.ledger is None:
            return RepairOutcome(
                gate=self.gate, success=False, reason="No claim ledger available"
            )

        changes: list[str] = []
        for contradiction in self.ledger.unresolved_contradictions(Severity.HIGH):
            first, second = (self.ledger.get_claim(cid) for cid in contradiction.claim_ids)
            if first is None or second is None:
                continue
            winner, loser = pick_authoritative(first, second)
            contradiction.resolve(winner.id, RESOLUTION_STRATEGY)
            loser.superseded_by = winner.id
            changes.append(
                f"{contradiction.id}: kept {winner.task_id}.{winner.field_name} "
                f"({winner.value}), superseded {loser.task_id}.{loser.field_name} ({loser.value})"
            )

        if isinstance(schedule, dict):
            metadata = schedule.get("validationMetadata")
            if not isinstance(metadata, dict):
                metadata = schedule["validationMetadata"] = {}
            metadata["contradictions"] = list(self.ledger.export().contradictions)

        remaining = len(self.ledger.unresolved_contradictions(Severity.HIGH))
        return RepairOutcome(
            gate=self.gate,
            success=remaining == 0,
            reason=(
                f"Resolved {len(changes)} high-severity contradictions"
                if remaining == 0
                else f"{remaining} high-severity contradictions could not be resolved"
            ),
            changes=changes,
        )


# =============================================================================
# CONFIDENCE
# =============================================================================


class ConfidenceRepairer:
    """Boost cited tasks to the threshold; flag uncited ones for manual review.

    Uncited tasks are never boosted.
    """

    gate = CONFIDENCE_MINIMUM

    def __init__(self, threshold: float = 0.5):
        self.threshold = threshold

    def repair(self, schedule: dict[str, Any], failure: GateFailure) -> RepairOutcome:
        threshold = self.threshold
        if isinstance(failure.threshold, (int, float)) and not isinstance(failure.threshold, bool):
            threshold = float(failure.threshold)

        tasks = schedule_tasks(schedule)
        changes: list[str] = []
        for task in tasks:
            if task_confidence(task) >= threshold:
                continue
            task_id = task.get("id")
            if task_is_cited(task):
                task["confidence"] = threshold
                changes.append(f"{task_id}: confidence raised to {threshold}")
                continue
            metadata = task.get("validationMetadata")
            if not isinstance(metadata, dict):
                metadata = task["validationMetadata"] = {}
            if metadata.get("needsManualReview") is not True:
                metadata["needsManualReview"] = True
                changes.append(f"{task_id}: flagged for manual review")

        mean = sum(task_confidence(t) for t in tasks) / len(tasks) if tasks else 1.0
        passed = round(mean, 4) >= threshold
        return RepairOutcome(
            gate=self.gate,
            success=passed,
            reason=(
                f"Mean confidence {mean:.2f} meets threshold {threshold}"
                if passed
                else f"Mean confidence {mean:.2f} below {threshold}; uncited tasks need manual review"
            ),
            changes=changes,
        )


# =============================================================================
# SCHEMA
# =============================================================================


def _repair_origin(data: dict[str, Any], label: str, changes: list[str]) -> None:
    origin = data.get("origin")
    if origin == "inference":
        data["origin"] = Origin.INFERRED.value
        changes.append(f"{label}: normalized origin 'inference'")
    elif origin not in (Origin.EXPLICIT.value, Origin.INFERRED.value):
        data["origin"] = Origin.INFERRED.value
        changes.append(f"{label}: defaulted origin to inferred")

    confidence = _as_confidence(data.get("confidence"))
    if confidence is None:
        data["confidence"] = DEFAULT_CONFIDENCE
        changes.append(f"{label}: defaulted confidence to {DEFAULT_CONFIDENCE}")
    elif not 0.0 <= confidence <= 1.0:
        data["confidence"] = min(max(confidence, 0.0), 1.0)
        changes.append(f"{label}: clamped confidence to {data['confidence']}")


def _reconcile_provenance(data: dict[str, Any], label: str, changes: list[str]) -> None:
    citations = data.get("sourceCitations")
    if citations is not None and not isinstance(citations, list):
        data["sourceCitations"] = []
        changes.append(f"{label}: reset malformed sourceCitations")
    rationale = data.get("inferenceRationale")
    if rationale is not None and not isinstance(rationale, dict):
        data.pop("inferenceRationale")
        changes.append(f"{label}: dropped malformed inferenceRationale")

    downgraded = False
    if data["origin"] == Origin.EXPLICIT.value:
        if data.get("sourceCitations") and data["confidence"] == 1.0:
            return
        data["origin"] = Origin.INFERRED.value
        downgraded = True
        changes.append(f"{label}: explicit claim downgraded to inferred")

    if (downgraded or data["confidence"] >= 1.0) and _cap(data, INFERRED_CONFIDENCE_CAP):
        changes.append(f"{label}: confidence capped at {INFERRED_CONFIDENCE_CAP}")
    if not data.get("inferenceRationale"):
        data["inferenceRationale"] = generic_rationale(
            "Value was not supported by a source citation; treated as inferred"
        )
        changes.append(f"{label}: attached inference rationale")


def reconcile_field(data: dict[str, Any], label: str, changes: list[str]) -> None:
    """Default origin/confidence, then enforce the provenance invariant."""
    _repair_origin(data, label, changes)
    _reconcile_provenance(data, label, changes)


def reconcile_provenance(schedule: dict[str, Any]) -> list[str]:
    """Bring every fielded claim in the schedule in line with the invariant."""
    changes: list[str] = []
    for task in schedule_tasks(schedule):
        task_id = task.get("id")
        for path, field_data in _field_dicts(task):
            reconcile_field(field_data, f"{task_id}.{path}", changes)
    return changes


class SchemaRepairer:
    """Fill in what the schema needs and reconcile the provenance invariant.

    Explicit fields without exactly confidence 1.0 and a citation are
    downgraded to inferred (confidence capped at 0.85, rationale attached).
    Defects that cannot be defaulted (bad dates, negative durations) are left
    for the re-validation to report.
    """

    gate = SCHEMA_COMPLIANCE

    def repair(self, schedule: dict[str, Any], failure: GateFailure) -> RepairOutcome:
        if not isinstance(schedule, dict):
            return RepairOutcome(
                gate=self.gate, success=False, reason="Schedule is not an object"
            )

        changes: list[str] = []
        if not schedule.get("id"):
            schedule["id"] = str(uuid.uuid4())
            changes.append(f"schedule: generated id {schedule['id']}")
        if schedule.get("tasks") is None:
            schedule["tasks"] = []
            changes.append("schedule: added empty task list")

        seen: set[str] = set()
        for index, task in enumerate(schedule_tasks(schedule)):
            self._repair_task(task, index, seen, changes)

        report = validate_structure(schedule)
        return RepairOutcome(
            gate=self.gate,
            success=report.valid,
            reason="Schema valid" if report.valid else "; ".join(report.errors[:5]),
            changes=changes,
        )

    def _repair_task(
        self, task: dict[str, Any], index: int, seen: set[str], changes: list[str]
    ) -> None:
        task_id = task.get("id")
        if not task_id or not isinstance(task_id, str) or task_id in seen:
            task_id = str(uuid.uuid4())
            task["id"] = task_id
            changes.append(f"tasks[{index}]: generated id {task_id}")
        seen.add(task_id)

        if not task.get("name") or not isinstance(task.get("name"), str):
            task["name"] = f"Task {task_id}"
            changes.append(f"{task_id}: defaulted name")

        _repair_origin(task, task_id, changes)

        dependencies = task.get("dependencies")
        if dependencies is not None and not isinstance(dependencies, list):
            task["dependencies"] = []
            changes.append(f"{task_id}.dependencies: reset to empty list")
        elif dependencies and any(not isinstance(d, str) for d in dependencies):
            task["dependencies"] = [str(d) for d in dependencies]
            changes.append(f"{task_id}.dependencies: coerced to strings")

        for path, field_data in _field_dicts(task):
            reconcile_field(field_data, f"{task_id}.{path}", changes)


# =============================================================================
# REGULATORY FLAGS
# =============================================================================


class RegulatoryFlagsRepairer:
    """Attach a compliance requirement to tasks whose names match a regulation.

    An existing regulatoryRequirement is never overwritten.
    """

    gate = REGULATORY_FLAGS

    def repair(self, schedule: dict[str, Any], failure: GateFailure) -> RepairOutcome:
        changes: list[str] = []
        preserved: list[str] = []
        for task in schedule_tasks(schedule):
            regulation = detect_regulation(task.get("name"))
            if not regulation:
                continue
            existing = task.get("regulatoryRequirement")
            if existing is not None:
                if not (isinstance(existing, dict) and existing.get("isRequired") is True):
                    preserved.append(str(task.get("id")))
                continue
            task["regulatoryRequirement"] = {
                "isRequired": True,
                "regulation": regulation,
                "confidence": REGULATORY_CONFIDENCE,
                "origin": Origin.EXPLICIT.value,
            }
            changes.append(f"{task.get('id')}: attached {regulation} requirement")

        if preserved:
            logger.warning(
                f"[Repair] Existing requirement preserved on {len(preserved)} regulated tasks"
            )
        return RepairOutcome(
            gate=self.gate,
            success=not preserved,
            reason=(
                f"Attached {len(changes)} compliance requirements"
                if not preserved
                else f"Existing requirement left unchanged on: {', '.join(preserved)}"
            ),
            changes=changes,
        )
