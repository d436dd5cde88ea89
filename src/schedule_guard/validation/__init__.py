"""
Validation Pipeline -- checks every extracted claim against the source documents.

Components:
  - CitationVerifier: citation exists, names a real document, has offsets
  - ContradictionDetector: same-type, same-subject claims that disagree
  - ProvenanceAuditor: citation completeness, quote presence, freshness
  - ConfidenceCalibrator: bounded adjustments to raw model confidence
  - ResearchValidationService: runs all of the above per task and per schedule
"""

from .citation_verifier import CitationVerifier
from .confidence_calibrator import ConfidenceCalibrator
from .contradiction_detector import ContradictionDetector, classify_numeric, classify_text
from .models import CitationCheck, ClaimValidation, ProvenanceReport, TaskValidationResult
from .pipeline import ResearchValidationService, index_documents
from .provenance_auditor import ProvenanceAuditor

__all__ = [
    "CitationCheck",
    "CitationVerifier",
    "ClaimValidation",
    "ConfidenceCalibrator",
    "ContradictionDetector",
    "ProvenanceAuditor",
    "ProvenanceReport",
    "ResearchValidationService",
    "TaskValidationResult",
    "classify_numeric",
    "classify_text",
    "index_documents",
]
