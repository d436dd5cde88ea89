"""
QualityGateManager -- evaluates a validated schedule against the registered gates.

Stateless apart from the gate registry. An evaluator that raises is reported
as a failed gate carrying the error, never propagated.
"""

import logging
from typing import Any

from ..config import PipelineConfig
from .builtin import default_gates
from .models import GateEvaluation, GateFailure, GateScore, QualityGate

logger = logging.getLogger(__name__)


class QualityGateManager:
    """Named registry of quality gates.

    Usage:
        manager = QualityGateManager(config=PipelineConfig())
        manager.add_gate(QualityGate("MY_GATE", 0.9, False, my_evaluator))
        manager.remove_gate("REGULATORY_FLAGS")
        evaluation = manager.evaluate(schedule)
        if not evaluation.passed:
            print([f.gate for f in evaluation.failures])
    """

    def __init__(self, config: PipelineConfig | None = None, gates: list[QualityGate] | None = None):
        self._gates: dict[str, QualityGate] = {}
        for gate in gates if gates is not None else default_gates(config):
            self.add_gate(gate)

    def add_gate(self, gate: QualityGate) -> None:
        if gate.name in self._gates:
            logger.info(f"[QualityGates] Replacing gate {gate.name}")
        self._gates[gate.name] = gate

    def remove_gate(self, name: str) -> None:
        """Remove a gate by name. Unknown names are ignored."""
        self._gates.pop(name, None)

    def get_gate(self, name: str) -> QualityGate | None:
        return self._gates.get(name)

    def gates(self) -> list[dict[str, Any]]:
        return [
            {"name": g.name, "threshold": g.threshold, "blocker": g.blocker}
            for g in self._gates.values()
        ]

    def evaluate(self, schedule: dict[str, Any]) -> GateEvaluation:
        """Evaluate every gate. Pure function of the schedule."""
        evaluation = GateEvaluation()

        for gate in self._gates.values():
            try:
                result = gate.evaluate(schedule)
                if not isinstance(result, GateScore):
                    result = GateScore(score=result)
                passed = gate.is_passing(result.score)
                failure = GateFailure(
                    gate=gate.name,
                    score=result.score,
                    threshold=gate.threshold,
                    blocker=gate.blocker,
                    detail=list(result.detail),
                )
            except Exception as e:
                logger.error(f"[QualityGates] Gate {gate.name} evaluation failed: {e}")
                passed = False
                failure = GateFailure(
                    gate=gate.name,
                    score=None,
                    threshold=gate.threshold,
                    blocker=gate.blocker,
                    error=str(e),
                )

            logger.debug(
                f"[QualityGates] {gate.name}: {'PASS' if passed else 'FAIL'} "
                f"(score: {failure.score})"
            )
            if passed:
                continue
            if gate.blocker:
                evaluation.passed = False
                evaluation.failures.append(failure)
            else:
                evaluation.warnings.append(failure)

        logger.info(
            f"[QualityGates] {'PASSED' if evaluation.passed else 'FAILED'}: "
            f"{len(evaluation.failures)} failures, {len(evaluation.warnings)} warnings"
        )
        return evaluation
