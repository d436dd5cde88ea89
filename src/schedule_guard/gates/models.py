"""Data models for quality gates and their evaluation results."""

from dataclasses import dataclass, field
from typing import Any, Callable

from ..claims.models import utc_now


@dataclass
class GateScore:
    """What a gate evaluator returns: the score plus optional detail lines."""

    score: float | bool
    detail: list[str] = field(default_factory=list)


@dataclass
class QualityGate:
    """A named, thresholded pass/fail check over a whole schedule.

    Attributes:
        name: Identity of the gate. Re-registering a name replaces the gate.
        threshold: Numeric minimum score, or True for boolean gates.
        blocker: Blocking failures flip `passed`; advisory ones become warnings.
        evaluate: Pure function of the schedule returning GateScore, float or bool.
    """

    name: str
    threshold: float | bool
    blocker: bool
    evaluate: Callable[[dict[str, Any]], GateScore | float | bool]
    description: str = ""

    def is_passing(self, score: float | bool) -> bool:
        if isinstance(self.threshold, bool):
            return bool(score) == self.threshold
        return float(score) >= self.threshold


@dataclass
class GateFailure:
    """One gate that did not pass."""

    gate: str
    score: float | bool | None
    threshold: float | bool
    blocker: bool
    detail: list[str] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = {
            "gate": self.gate,
            "score": self.score,
            "threshold": self.threshold,
            "blocker": self.blocker,
            "detail": list(self.detail),
        }
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class GateEvaluation:
    """Outcome of evaluating every registered gate.

    `passed` is True iff no blocking gate failed. The timestamp is excluded
    from equality so identical schedules compare equal.
    """

    passed: bool = True
    failures: list[GateFailure] = field(default_factory=list)
    warnings: list[GateFailure] = field(default_factory=list)
    evaluated_at: str = field(default_factory=utc_now, compare=False)

    @property
    def clean(self) -> bool:
        return not self.failures and not self.warnings

    def issues(self) -> list[GateFailure]:
        return self.failures + self.warnings

    def to_dict(self) -> dict[str, Any]:
        return {
            "passed": self.passed,
            "failures": [f.to_dict() for f in self.failures],
            "warnings": [w.to_dict() for w in self.warnings],
            "timestamp": self.evaluated_at,
        }
