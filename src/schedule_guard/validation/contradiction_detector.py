"""
ContradictionDetector -- finds same-type claims about the same subject that disagree.

Severity rules:
  - Numeric values: relative difference |a - b| / min(|a|, |b|)
        > 30%  -> high
        > 10%  -> medium
        else   -> low        (exactly 10% / 30% fall in the lower band)
    A zero against a non-zero value is high.
  - Text values containing a polarity pair (fast/slow, before/after, ...)
    are always high. Other differing text values are low.
  - Equal values never contradict.

The full pass compares every pair within a claim type, O(n^2) in claims.
It can be bounded with a wall-clock budget; an exhausted budget stops the
pass and logs a warning rather than raising.
"""

import logging
import re
import time
import uuid
from typing import Any

from ..claims.ledger import ClaimLedger
from ..claims.models import Claim, ClaimType, Contradiction, Severity

logger = logging.getLogger(__name__)

HIGH_DELTA = 0.30
MEDIUM_DELTA = 0.10

POLARITY_PAIRS: list[tuple[str, str]] = [
    ("fast", "slow"),
    ("early", "late"),
    ("before", "after"),
    ("required", "optional"),
    ("mandatory", "optional"),
    ("sequential", "parallel"),
    ("approved", "rejected"),
    ("increase", "decrease"),
    ("start", "end"),
    ("high", "low"),
]

CONTRADICTION_NAMESPACE = uuid.UUID("0b7d2e64-91c3-4a58-b6f0-3d2a9c1e5f47")

_WORD = re.compile(r"[a-z]+")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def classify_numeric(a: float, b: float) -> Severity | None:
    """Severity of a numeric disagreement, or None when the values agree."""
    if a == b:
        return None
    smaller = min(abs(a), abs(b))
    if smaller == 0:
        return Severity.HIGH
    delta = round(abs(a - b) / smaller, 9)
    if delta > HIGH_DELTA:
        return Severity.HIGH
    if delta > MEDIUM_DELTA:
        return Severity.MEDIUM
    return Severity.LOW


def classify_text(a: Any, b: Any) -> Severity | None:
    """Severity of a textual disagreement, or None when the values agree."""
    left = str(a).strip().lower()
    right = str(b).strip().lower()
    if left == right:
        return None
    left_words = set(_WORD.findall(left))
    right_words = set(_WORD.findall(right))
    for first, second in POLARITY_PAIRS:
        if (first in left_words and second in right_words) or (
            second in left_words and first in right_words
        ):
            return Severity.HIGH
    return Severity.LOW


def contradiction_id_for(a: Claim, b: Claim) -> str:
    """Deterministic id for the contradiction between two claims."""
    first, second = sorted((a.id, b.id))
    return str(uuid.uuid5(CONTRADICTION_NAMESPACE, f"{first}|{second}"))


class ContradictionDetector:
    """Compares claims pairwise within a claim type.

    Usage:
        detector = ContradictionDetector()
        found = detector.detect_all(ledger)          # after every task is in
        found = detector.detect_for_claim(claim, ledger)  # incremental
    """

    def __init__(self, budget_seconds: float | None = None):
        self._budget = budget_seconds

    def compare(self, claim: Claim, other: Claim) -> Contradiction | None:
        """Return a Contradiction if the two claims disagree, else None."""
        if claim.id == other.id or claim.claim_type != other.claim_type:
            return None
        if claim.subject != other.subject:
            return None
        if claim.superseded_by or other.superseded_by:
            return None

        a, b = claim.normalized_value, other.normalized_value
        if a is None or b is None:
            return None
        if _is_number(a) and _is_number(b):
            severity = classify_numeric(float(a), float(b))
        else:
            severity = classify_text(a, b)
        if severity is None:
            return None

        first, second = sorted((claim, other), key=lambda c: c.id)
        return Contradiction(
            id=contradiction_id_for(first, second),
            claim_type=claim.claim_type,
            claim_ids=(first.id, second.id),
            values=(first.value, second.value),
            severity=severity,
        )

    def detect_for_claim(self, claim: Claim, ledger: ClaimLedger) -> list[Contradiction]:
        """Compare one claim against every same-type claim already in the ledger."""
        found = []
        for existing in ledger.claims_of_type(claim.claim_type):
            contradiction = self.compare(claim, existing)
            if contradiction is None or ledger.has_contradiction(contradiction.id):
                continue
            found.append(contradiction)
        return found

    def detect_all(self, ledger: ClaimLedger) -> list[Contradiction]:
        """Run the full pairwise pass and record new contradictions in the ledger."""
        start = time.monotonic()
        found: list[Contradiction] = []
        comparisons = 0

        for claim_type in ClaimType:
            claims = ledger.claims_of_type(claim_type)
            for i, claim in enumerate(claims):
                if self._budget_exhausted(start):
                    logger.warning(
                        f"[Contradictions] Budget of {self._budget}s exhausted after "
                        f"{comparisons} comparisons; pass stopped early"
                    )
                    return found
                for other in claims[i + 1:]:
                    comparisons += 1
                    contradiction = self.compare(claim, other)
                    if contradiction is None or ledger.has_contradiction(contradiction.id):
                        continue
                    ledger.add_contradiction(contradiction)
                    found.append(contradiction)

        high = sum(1 for c in found if c.severity == Severity.HIGH)
        logger.info(
            f"[Contradictions] {len(found)} found ({high} high) "
            f"in {comparisons} comparisons"
        )
        return found

    def _budget_exhausted(self, start: float) -> bool:
        return self._budget is not None and time.monotonic() - start > self._budget
