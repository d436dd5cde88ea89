"""
CitationVerifier -- structural check that a claim's citation points somewhere real.

Checks, in order: a citation exists, it names a supplied source document,
and it carries non-null character offsets. Quote matching is left to the
ProvenanceAuditor; this check is O(1) per claim.
"""

import logging
from typing import Mapping

from ..claims.models import Citation
from .models import CitationCheck

logger = logging.getLogger(__name__)


class CitationVerifier:
    """Validates citations against the job's source documents.

    Usage:
        verifier = CitationVerifier()
        check = verifier.verify(claim.citation, {"plan.md": "..."})
    """

    def verify(self, citation: Citation | None, documents: Mapping[str, str]) -> CitationCheck:
        if citation is None:
            return CitationCheck(valid=False, reason="missing citation")

        if not citation.document_name:
            return CitationCheck(valid=False, reason="citation has no document name")

        if citation.document_name not in documents:
            return CitationCheck(
                valid=False,
                reason=f"document '{citation.document_name}' is not among the sources",
            )

        if citation.start_char is None or citation.end_char is None:
            return CitationCheck(
                valid=False, reason="citation has no character range", document_found=True
            )

        if citation.start_char > citation.end_char:
            return CitationCheck(
                valid=False,
                reason=f"citation range is inverted ({citation.start_char} > {citation.end_char})",
                document_found=True,
            )

        return CitationCheck(valid=True, document_found=True)
