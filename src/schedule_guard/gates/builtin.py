"""
Built-in quality gates.

  CITATION_COVERAGE       0.75  blocker   tasks whose duration/startDate carry a citation
  CONTRADICTION_SEVERITY  bool  blocker   no unresolved high-severity contradiction
  CONFIDENCE_MINIMUM      0.50  blocker   mean task confidence
  SCHEMA_COMPLIANCE       bool  blocker   canonical schema validates
  REGULATORY_FLAGS        bool  advisory  regulated task names carry a requirement flag

A schedule with zero tasks scores 1.0 on both ratio gates (vacuous pass).
"""

from typing import Any

from ..config import PipelineConfig
from ..schema import validate_structure
from .models import GateScore, QualityGate
from .regulatory import detect_regulation, has_required_flag

CITATION_COVERAGE = "CITATION_COVERAGE"
CONTRADICTION_SEVERITY = "CONTRADICTION_SEVERITY"
CONFIDENCE_MINIMUM = "CONFIDENCE_MINIMUM"
SCHEMA_COMPLIANCE = "SCHEMA_COMPLIANCE"
REGULATORY_FLAGS = "REGULATORY_FLAGS"

PRIMARY_FIELDS = ("duration", "startDate")


def schedule_tasks(schedule: Any) -> list[dict[str, Any]]:
    """The schedule's task dicts, skipping anything that is not a dict."""
    if not isinstance(schedule, dict):
        return []
    tasks = schedule.get("tasks")
    if not isinstance(tasks, list):
        return []
    return [t for t in tasks if isinstance(t, dict)]


def task_is_cited(task: dict[str, Any]) -> bool:
    for name in PRIMARY_FIELDS:
        field_data = task.get(name)
        if isinstance(field_data, dict) and field_data.get("sourceCitations"):
            return True
    return False


def task_confidence(task: dict[str, Any]) -> float:
    value = task.get("confidence")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    return float(value)


# =============================================================================
# EVALUATORS
# =============================================================================


def evaluate_citation_coverage(schedule: dict[str, Any]) -> GateScore:
    tasks = schedule_tasks(schedule)
    if not tasks:
        return GateScore(score=1.0)
    uncited = [str(t.get("id")) for t in tasks if not task_is_cited(t)]
    score = (len(tasks) - len(uncited)) / len(tasks)
    return GateScore(score=round(score, 4), detail=[f"uncited task: {tid}" for tid in uncited])


def evaluate_contradiction_severity(schedule: dict[str, Any]) -> GateScore:
    metadata = schedule.get("validationMetadata") if isinstance(schedule, dict) else None
    contradictions = (metadata or {}).get("contradictions") or []
    high = [
        c for c in contradictions
        if isinstance(c, dict) and c.get("severity") == "high" and not c.get("resolvedAt")
    ]
    return GateScore(
        score=not high,
        detail=[f"unresolved high contradiction: {c.get('id')}" for c in high],
    )


def evaluate_confidence_mean(schedule: dict[str, Any]) -> GateScore:
    tasks = schedule_tasks(schedule)
    if not tasks:
        return GateScore(score=1.0)
    mean = sum(task_confidence(t) for t in tasks) / len(tasks)
    return GateScore(score=round(mean, 4))


def evaluate_schema_compliance(schedule: dict[str, Any]) -> GateScore:
    report = validate_structure(schedule)
    return GateScore(score=report.valid, detail=report.errors)


def evaluate_regulatory_flags(schedule: dict[str, Any]) -> GateScore:
    missing = []
    for task in schedule_tasks(schedule):
        regulation = detect_regulation(task.get("name"))
        if regulation and not has_required_flag(task):
            missing.append(f"{task.get('id')} ({regulation})")
    return GateScore(
        score=not missing,
        detail=[f"regulated task without requirement: {m}" for m in missing],
    )


def default_gates(config: PipelineConfig | None = None) -> list[QualityGate]:
    config = config or PipelineConfig()
    return [
        QualityGate(
            name=CITATION_COVERAGE,
            threshold=config.citation_coverage_threshold,
            blocker=True,
            evaluate=evaluate_citation_coverage,
            description="Fraction of tasks whose primary fields carry a citation",
        ),
        QualityGate(
            name=CONTRADICTION_SEVERITY,
            threshold=True,
            blocker=True,
            evaluate=evaluate_contradiction_severity,
            description="No unresolved high-severity contradiction",
        ),
        QualityGate(
            name=CONFIDENCE_MINIMUM,
            threshold=config.min_confidence_threshold,
            blocker=True,
            evaluate=evaluate_confidence_mean,
            description="Mean task confidence",
        ),
        QualityGate(
            name=SCHEMA_COMPLIANCE,
            threshold=True,
            blocker=True,
            evaluate=evaluate_schema_compliance,
            description="Canonical schedule schema validates",
        ),
        QualityGate(
            name=REGULATORY_FLAGS,
            threshold=True,
            blocker=False,
            evaluate=evaluate_regulatory_flags,
            description="Regulated tasks carry a compliance requirement",
        ),
    ]
