"""
Repair Engine -- automated, gate-specific fixes for a failing schedule.

Components:
- strategies.py: One Repairer per built-in gate
- engine.py: Dispatch plus the bounded repair/re-evaluate loop
- models.py: RepairOutcome, RepairLog, RepairReport
"""

from .engine import RepairEngine, default_repairers
from .models import RepairLog, RepairOutcome, RepairReport
from .strategies import (
    CitationCoverageRepairer,
    ConfidenceRepairer,
    ContradictionRepairer,
    RegulatoryFlagsRepairer,
    Repairer,
    SchemaRepairer,
    pick_authoritative,
    reconcile_provenance,
)

__all__ = [
    "CitationCoverageRepairer",
    "ConfidenceRepairer",
    "ContradictionRepairer",
    "RegulatoryFlagsRepairer",
    "RepairEngine",
    "RepairLog",
    "RepairOutcome",
    "RepairReport",
    "Repairer",
    "SchemaRepairer",
    "default_repairers",
    "pick_authoritative",
    "reconcile_provenance",
]
