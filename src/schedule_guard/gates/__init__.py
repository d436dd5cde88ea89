"""
Quality Gates -- named, thresholded pass/fail checks over a whole schedule.

Blocking gate failures make a schedule fail; advisory gate failures are
reported as warnings only.
"""

from .builtin import (
    CITATION_COVERAGE,
    CONFIDENCE_MINIMUM,
    CONTRADICTION_SEVERITY,
    REGULATORY_FLAGS,
    SCHEMA_COMPLIANCE,
    default_gates,
)
from .manager import QualityGateManager
from .models import GateEvaluation, GateFailure, GateScore, QualityGate
from .regulatory import detect_regulation

__all__ = [
    "CITATION_COVERAGE",
    "CONFIDENCE_MINIMUM",
    "CONTRADICTION_SEVERITY",
    "GateEvaluation",
    "GateFailure",
    "GateScore",
    "QualityGate",
    "QualityGateManager",
    "REGULATORY_FLAGS",
    "SCHEMA_COMPLIANCE",
    "default_gates",
    "detect_regulation",
]
