"""
Canonical schedule schema and structural validation.

validate_structure() never raises and checks the provenance invariant by
default; require_valid_structure() is the shape-only fatal
variant used by the orchestrator's final check.
"""

from .models import ScheduleModel, TaskModel
from .validation import StructuralReport, require_valid_structure, validate_structure

__all__ = [
    "ScheduleModel",
    "StructuralReport",
    "TaskModel",
    "require_valid_structure",
    "validate_structure",
]
