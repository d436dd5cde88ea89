"""Structural validation of a schedule dict against ScheduleModel.

Two modes:
  validate_structure(schedule)                    shape + provenance invariant
  validate_structure(schedule, provenance=False)  shape only

The SCHEMA_COMPLIANCE gate uses the first. require_valid_structure() uses
the second, so a provenance defect stays a gate failure and never aborts a
job.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic import ValidationError

from ..errors import StructuralValidationError
from .models import ScheduleModel

logger = logging.getLogger(__name__)


@dataclass
class StructuralReport:
    """Pass/fail plus one human-readable line per schema error."""

    valid: bool
    errors: list[str] = field(default_factory=list)


def _format_error(error: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid")
    return f"{location}: {message}" if location else message


def validate_structure(schedule: Any, provenance: bool = True) -> StructuralReport:
    """Validate without raising. The schedule dict is never modified."""
    if not isinstance(schedule, dict):
        return StructuralReport(
            valid=False, errors=[f"schedule must be an object, got {type(schedule).__name__}"]
        )
    try:
        ScheduleModel.model_validate(schedule, context={"provenance": provenance})
    except ValidationError as e:
        errors = [_format_error(err) for err in e.errors()]
        logger.debug(f"[Schema] {len(errors)} structural errors")
        return StructuralReport(valid=False, errors=errors)
    return StructuralReport(valid=True)


def require_valid_structure(schedule: Any) -> None:
    """Raise StructuralValidationError when the schedule's shape is invalid.

    The provenance invariant is not checked here.
    """
    report = validate_structure(schedule, provenance=False)
    if not report.valid:
        summary = "; ".join(report.errors[:5])
        if len(report.errors) > 5:
            summary += f" (+{len(report.errors) - 5} more)"
        raise StructuralValidationError(
            f"Schedule failed structural validation: {summary}", errors=report.errors
        )
