"""Data models for repair outcomes and the repair log."""

from dataclasses import dataclass, field
from typing import Any

from ..claims.models import utc_now
from ..gates.models import GateEvaluation


@dataclass
class RepairOutcome:
    """What one strategy did about one failing gate."""

    gate: str
    success: bool
    reason: str = ""
    changes: list[str] = field(default_factory=list)
    attempt: int = 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "gate": self.gate,
            "success": self.success,
            "reason": self.reason,
            "changes": list(self.changes),
            "attempt": self.attempt,
        }


@dataclass
class RepairLog:
    """Every repair attempted for one schedule, in order."""

    attempts: list[RepairOutcome] = field(default_factory=list)
    successful_repairs: list[RepairOutcome] = field(default_factory=list)
    failed_repairs: list[RepairOutcome] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_now)

    def record(self, outcome: RepairOutcome) -> None:
        self.attempts.append(outcome)
        if outcome.success:
            self.successful_repairs.append(outcome)
        else:
            self.failed_repairs.append(outcome)

    def extend(self, other: "RepairLog") -> None:
        for outcome in other.attempts:
            self.record(outcome)
        self.timestamp = other.timestamp

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempts": [o.to_dict() for o in self.attempts],
            "successfulRepairs": [o.to_dict() for o in self.successful_repairs],
            "failedRepairs": [o.to_dict() for o in self.failed_repairs],
            "timestamp": self.timestamp,
        }


@dataclass
class RepairReport:
    """Result of the bounded evaluate/repair loop."""

    fully_repaired: bool
    attempts: int
    final_evaluation: GateEvaluation
    log: RepairLog

    def to_dict(self) -> dict[str, Any]:
        return {
            "fullyRepaired": self.fully_repaired,
            "attempts": self.attempts,
            "finalEvaluation": self.final_evaluation.to_dict(),
            "repairLog": self.log.to_dict(),
        }
