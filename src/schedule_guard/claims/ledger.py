"""
ClaimLedger -- indexed in-memory store of claims and contradictions.

Owns every Claim and Contradiction created during one job. Tasks and
contradictions refer to claims by id only, so the ledger is the single
owner of the object graph.

Inserts are append-only. Resolution is a field mutation on the stored
Contradiction, never a removal. Not safe for concurrent writers: the
validation pipeline serializes inserts behind one lock.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from ..errors import LedgerError
from .models import Claim, ClaimType, Contradiction, Severity, utc_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerSnapshot:
    """Immutable point-in-time copy of the ledger for reporting."""

    claims: tuple[dict[str, Any], ...]
    contradictions: tuple[dict[str, Any], ...]
    exported_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "claims": [dict(c) for c in self.claims],
            "contradictions": [dict(c) for c in self.contradictions],
            "exportedAt": self.exported_at,
        }


class ClaimLedger:
    """O(1) claim and contradiction storage with secondary indexes.

    Usage:
        ledger = ClaimLedger()
        ledger.add_claim(claim)
        ledger.claims_for_task("task-1")
        ledger.claims_of_type(ClaimType.DURATION)
    """

    def __init__(self):
        self._claims: dict[str, Claim] = {}
        self._contradictions: dict[str, Contradiction] = {}
        self._by_task: dict[str, list[str]] = defaultdict(list)
        self._by_type: dict[ClaimType, list[str]] = defaultdict(list)
        self._contradictions_by_claim: dict[str, list[str]] = defaultdict(list)

    def __len__(self) -> int:
        return len(self._claims)

    def __contains__(self, claim_id: object) -> bool:
        return claim_id in self._claims

    # -------------------------------------------------------------------------
    # Inserts
    # -------------------------------------------------------------------------

    def add_claim(self, claim: Claim) -> None:
        if not claim.id:
            raise LedgerError("Cannot store a claim without an id")
        if claim.id in self._claims:
            raise LedgerError(f"Claim '{claim.id}' is already in the ledger")
        self._claims[claim.id] = claim
        self._by_task[claim.task_id].append(claim.id)
        self._by_type[claim.claim_type].append(claim.id)

    def add_contradiction(self, contradiction: Contradiction) -> None:
        if not contradiction.id:
            raise LedgerError("Cannot store a contradiction without an id")
        if contradiction.id in self._contradictions:
            raise LedgerError(f"Contradiction '{contradiction.id}' is already in the ledger")
        for claim_id in contradiction.claim_ids:
            if claim_id not in self._claims:
                raise LedgerError(
                    f"Contradiction '{contradiction.id}' references unknown claim '{claim_id}'"
                )
        self._contradictions[contradiction.id] = contradiction
        for claim_id in contradiction.claim_ids:
            self._contradictions_by_claim[claim_id].append(contradiction.id)
        logger.debug(
            f"[Ledger] Contradiction {contradiction.id} ({contradiction.severity.value}) "
            f"between {contradiction.claim_ids[0]} and {contradiction.claim_ids[1]}"
        )

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def get_claim(self, claim_id: str) -> Claim | None:
        return self._claims.get(claim_id)

    def get_contradiction(self, contradiction_id: str) -> Contradiction | None:
        return self._contradictions.get(contradiction_id)

    def has_contradiction(self, contradiction_id: str) -> bool:
        return contradiction_id in self._contradictions

    def claims_for_task(self, task_id: str) -> list[Claim]:
        return [self._claims[cid] for cid in self._by_task.get(task_id, [])]

    def claims_of_type(self, claim_type: ClaimType) -> list[Claim]:
        return [self._claims[cid] for cid in self._by_type.get(claim_type, [])]

    def contradictions_for_claim(self, claim_id: str) -> list[Contradiction]:
        return [
            self._contradictions[cid]
            for cid in self._contradictions_by_claim.get(claim_id, [])
        ]

    def all_claims(self) -> list[Claim]:
        return list(self._claims.values())

    def all_contradictions(self) -> list[Contradiction]:
        return list(self._contradictions.values())

    def unresolved_contradictions(self, severity: Severity | None = None) -> list[Contradiction]:
        return [
            c for c in self._contradictions.values()
            if not c.is_resolved and (severity is None or c.severity == severity)
        ]

    # -------------------------------------------------------------------------
    # Reporting
    # -------------------------------------------------------------------------

    def export(self) -> LedgerSnapshot:
        """Return an immutable snapshot of every claim and contradiction."""
        return LedgerSnapshot(
            claims=tuple(c.to_dict() for c in self._claims.values()),
            contradictions=tuple(c.to_dict() for c in self._contradictions.values()),
            exported_at=utc_now(),
        )
