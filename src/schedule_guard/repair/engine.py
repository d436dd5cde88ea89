"""
RepairEngine -- dispatches failing gates to their repair strategies.

repair() is a single pass over a list of gate failures. Each pass ends with a
provenance reconciliation, so no pass leaves an explicit field without full
confidence and a citation. repair_until_passing() is the bounded
evaluate -> repair -> re-evaluate loop; once the attempt bound is reached the
remaining failures are reported, never retried.
"""

import logging
from typing import Any

from ..claims.ledger import ClaimLedger
from ..config import PipelineConfig
from ..gates.builtin import SCHEMA_COMPLIANCE
from ..gates.manager import QualityGateManager
from ..gates.models import GateFailure
from .models import RepairLog, RepairOutcome, RepairReport
from .strategies import (
    CitationCoverageRepairer,
    ConfidenceRepairer,
    ContradictionRepairer,
    RegulatoryFlagsRepairer,
    Repairer,
    SchemaRepairer,
    reconcile_provenance,
)

logger = logging.getLogger(__name__)


def default_repairers(
    config: PipelineConfig | None = None, ledger: ClaimLedger | None = None
) -> list[Repairer]:
    config = config or PipelineConfig()
    return [
        CitationCoverageRepairer(),
        ContradictionRepairer(ledger=ledger),
        ConfidenceRepairer(threshold=config.min_confidence_threshold),
        SchemaRepairer(),
        RegulatoryFlagsRepairer(),
    ]


class RepairEngine:
    """One repair strategy per gate name.

    Usage:
        engine = RepairEngine(config=config, ledger=ledger)
        report = engine.repair_until_passing(schedule, gate_manager)
        if not report.fully_repaired:
            print(report.log.failed_repairs)
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        ledger: ClaimLedger | None = None,
        repairers: list[Repairer] | None = None,
    ):
        self.config = config or PipelineConfig()
        self._repairers: dict[str, Repairer] = {}
        for repairer in repairers if repairers is not None else default_repairers(self.config, ledger):
            self.register(repairer)

    def register(self, repairer: Repairer) -> None:
        """Add a strategy, replacing any existing one for the same gate."""
        self._repairers[repairer.gate] = repairer

    def strategy_for(self, gate: str) -> Repairer | None:
        return self._repairers.get(gate)

    def repair(
        self, schedule: dict[str, Any], failures: list[GateFailure], attempt: int = 1
    ) -> RepairLog:
        """Apply the matching strategy to each failure, in order."""
        log = RepairLog()

        for failure in failures:
            repairer = self._repairers.get(failure.gate)
            if repairer is None:
                outcome = RepairOutcome(
                    gate=failure.gate, success=False, reason="No repair strategy available"
                )
            else:
                try:
                    outcome = repairer.repair(schedule, failure)
                except Exception as e:
                    logger.error(f"[Repair] {failure.gate} strategy raised: {e}")
                    outcome = RepairOutcome(gate=failure.gate, success=False, reason=str(e))

            outcome.attempt = attempt
            logger.info(
                f"[Repair] {outcome.gate}: {'repaired' if outcome.success else 'not repaired'} "
                f"({len(outcome.changes)} changes) {outcome.reason}"
            )
            log.record(outcome)

        if failures:
            self._reconcile(schedule, log, attempt)
        return log

    def _reconcile(self, schedule: dict[str, Any], log: RepairLog, attempt: int) -> None:
        """Close the pass with every fielded claim satisfying the provenance
        invariant, whatever the strategies above attached."""
        try:
            changes = reconcile_provenance(schedule)
        except Exception as e:
            logger.error(f"[Repair] Provenance reconciliation raised: {e}")
            log.record(RepairOutcome(
                gate=SCHEMA_COMPLIANCE, success=False, reason=str(e), attempt=attempt
            ))
            return
        if changes:
            logger.info(f"[Repair] Reconciled provenance ({len(changes)} changes)")
            log.record(RepairOutcome(
                gate=SCHEMA_COMPLIANCE,
                success=True,
                reason="Provenance reconciled after repair pass",
                changes=changes,
                attempt=attempt,
            ))

    def repair_until_passing(
        self,
        schedule: dict[str, Any],
        gate_manager: QualityGateManager,
        max_attempts: int | None = None,
    ) -> RepairReport:
        """Repair and re-evaluate until no gate fails or warns, or the bound is hit."""
        max_attempts = self.config.max_repair_attempts if max_attempts is None else max_attempts
        log = RepairLog()
        evaluation = gate_manager.evaluate(schedule)
        attempts = 0

        while evaluation.issues() and attempts < max_attempts:
            attempts += 1
            logger.info(
                f"[Repair] Attempt {attempts}/{max_attempts}: "
                f"{len(evaluation.failures)} failures, {len(evaluation.warnings)} warnings"
            )
            log.extend(self.repair(schedule, evaluation.issues(), attempt=attempts))
            evaluation = gate_manager.evaluate(schedule)

        remaining = evaluation.issues()
        for failure in remaining:
            log.record(
                RepairOutcome(
                    gate=failure.gate,
                    success=False,
                    reason=f"Still failing after {attempts} repair attempts",
                    attempt=attempts,
                )
            )
        if remaining:
            logger.warning(
                f"[Repair] Gave up after {attempts} attempts; "
                f"remaining: {', '.join(f.gate for f in remaining)}"
            )

        return RepairReport(
            fully_repaired=not remaining,
            attempts=attempts,
            final_evaluation=evaluation,
            log=log,
        )
