"""
Claims -- atomic, typed assertions extracted from schedule tasks.

Components:
  - Claim / Citation / InferenceRationale / Contradiction: data models
  - ClaimLedger: indexed store owning every claim and contradiction of a job
  - TaskClaimExtractor: task -> ordered list of claims
"""

from .extractor import ExtractionResult, TaskClaimExtractor
from .ledger import ClaimLedger, LedgerSnapshot
from .models import (
    Citation,
    Claim,
    ClaimType,
    Contradiction,
    InferenceRationale,
    Origin,
    Severity,
)

__all__ = [
    "Citation",
    "Claim",
    "ClaimLedger",
    "ClaimType",
    "Contradiction",
    "ExtractionResult",
    "InferenceRationale",
    "LedgerSnapshot",
    "Origin",
    "Severity",
    "TaskClaimExtractor",
]
