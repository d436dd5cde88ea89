"""
ProvenanceAuditor -- scores how well a claim's provenance holds up.

Cited claims start at 1.0 and lose:
  -0.3  no document name
  -0.3  no exact quote
  -0.1  no provider
  -0.1  no character offsets
  -0.1  retrieved more than `stale_after_days` ago
A quote that does not appear verbatim in the named document (or a document
that was never supplied) is a hallucination signal and forces the score to 0.

Inferred claims without a citation are scored on their rationale instead.
Claims with neither are scored as an empty citation.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Mapping

from ..claims.models import INFERENCE_METHODS, Citation, Claim, Origin
from .models import ProvenanceReport

logger = logging.getLogger(__name__)

CITATION_PENALTIES = {
    "missing_document_name": 0.3,
    "missing_quote": 0.3,
    "missing_provider": 0.1,
    "missing_offsets": 0.1,
}
STALE_PENALTY = 0.1
RATIONALE_PENALTIES = {
    "missing_explanation": 0.3,
    "unknown_method": 0.1,
}


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ProvenanceAuditor:
    """Audits claim provenance against the supplied source documents.

    Usage:
        auditor = ProvenanceAuditor(stale_after_days=30)
        report = auditor.audit(claim, {"plan.md": "Requirements phase: 2 weeks"})
    """

    def __init__(self, stale_after_days: int = 30, now: datetime | None = None):
        self._stale_after = timedelta(days=stale_after_days)
        self._now = now

    def audit(self, claim: Claim, documents: Mapping[str, str]) -> ProvenanceReport:
        if claim.citation is not None:
            return self._audit_citation(claim.citation, documents)
        if claim.origin == Origin.INFERRED and claim.rationale is not None:
            return self._audit_rationale(claim)
        return self._audit_citation(Citation(), documents)

    def _audit_citation(self, citation: Citation, documents: Mapping[str, str]) -> ProvenanceReport:
        penalties = []
        if not citation.document_name:
            penalties.append("missing_document_name")
        if not citation.exact_quote:
            penalties.append("missing_quote")
        if not citation.provider:
            penalties.append("missing_provider")
        if citation.start_char is None or citation.end_char is None:
            penalties.append("missing_offsets")

        score = 1.0 - sum(CITATION_PENALTIES[p] for p in penalties)
        report = ProvenanceReport(score=score, penalties=penalties)

        if citation.document_name and citation.exact_quote:
            content = documents.get(citation.document_name)
            if content is None or citation.exact_quote not in content:
                report.hallucination = True
                report.penalties.append("quote_not_found")
                report.score = 0.0
                logger.debug(
                    f"[Provenance] Quote not found in '{citation.document_name}': "
                    f"{citation.exact_quote[:60]!r}"
                )

        retrieved = _parse_timestamp(citation.retrieved_at)
        now = self._now or datetime.now(timezone.utc)
        if retrieved is not None and now - retrieved > self._stale_after:
            report.stale = True
            report.penalties.append("stale_retrieval")
            report.score -= STALE_PENALTY

        report.score = round(max(0.0, min(1.0, report.score)), 4)
        return report

    def _audit_rationale(self, claim: Claim) -> ProvenanceReport:
        rationale = claim.rationale
        penalties = []
        if not rationale.explanation:
            penalties.append("missing_explanation")
        if rationale.method not in INFERENCE_METHODS:
            penalties.append("unknown_method")
        score = 1.0 - sum(RATIONALE_PENALTIES[p] for p in penalties)
        return ProvenanceReport(score=round(max(0.0, score), 4), penalties=penalties)
