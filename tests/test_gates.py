"""Quality gates -- built-in evaluators and the gate manager."""

from schedule_guard.config import PipelineConfig
from schedule_guard.gates import (
    CITATION_COVERAGE,
    CONFIDENCE_MINIMUM,
    CONTRADICTION_SEVERITY,
    REGULATORY_FLAGS,
    SCHEMA_COMPLIANCE,
    QualityGate,
    QualityGateManager,
    detect_regulation,
)


def _gate(evaluation, name):
    return next(f for f in evaluation.issues() if f.gate == name)


class TestBuiltinGates:
    """Default registry and the five evaluators."""

    def test_default_registry(self):
        listed = {g["name"]: g for g in QualityGateManager().gates()}
        assert listed[CITATION_COVERAGE] == {"name": CITATION_COVERAGE, "threshold": 0.75, "blocker": True}
        assert listed[CONFIDENCE_MINIMUM]["threshold"] == 0.5
        assert listed[CONTRADICTION_SEVERITY]["threshold"] is True
        assert listed[SCHEMA_COMPLIANCE]["blocker"] is True
        assert listed[REGULATORY_FLAGS]["blocker"] is False

    def test_thresholds_follow_config(self):
        manager = QualityGateManager(config=PipelineConfig(citation_coverage_threshold=0.9))
        assert manager.get_gate(CITATION_COVERAGE).threshold == 0.9

    def test_clean_schedule_passes(self, clean_schedule):
        evaluation = QualityGateManager().evaluate(clean_schedule)
        assert evaluation.passed
        assert evaluation.clean

    def test_scenario_a_coverage_fails_at_quarter(self, scenario_a_schedule):
        evaluation = QualityGateManager().evaluate(scenario_a_schedule)
        assert not evaluation.passed
        coverage = _gate(evaluation, CITATION_COVERAGE)
        assert coverage.score == 0.25
        assert coverage.threshold == 0.75
        assert coverage.detail == ["uncited task: t2", "uncited task: t3", "uncited task: t4"]

    def test_zero_tasks_pass_vacuously(self):
        evaluation = QualityGateManager().evaluate({"id": "empty", "tasks": []})
        assert evaluation.passed
        assert evaluation.clean

    def test_non_numeric_confidence_counts_as_zero(self, clean_schedule):
        for task in clean_schedule["tasks"]:
            task["confidence"] = "high"
        evaluation = QualityGateManager().evaluate(clean_schedule)
        assert _gate(evaluation, CONFIDENCE_MINIMUM).score == 0.0

    def test_only_unresolved_high_contradictions_block(self, clean_schedule):
        manager = QualityGateManager()
        clean_schedule["validationMetadata"] = {"contradictions": [
            {"id": "c1", "severity": "high", "resolvedAt": None},
            {"id": "c2", "severity": "medium", "resolvedAt": None},
        ]}
        evaluation = manager.evaluate(clean_schedule)
        assert _gate(evaluation, CONTRADICTION_SEVERITY).detail == ["unresolved high contradiction: c1"]

        clean_schedule["validationMetadata"]["contradictions"][0]["resolvedAt"] = "2025-01-01T00:00:00+00:00"
        assert manager.evaluate(clean_schedule).passed

    def test_schema_failure_is_a_failed_gate(self, clean_schedule):
        del clean_schedule["tasks"][0]["origin"]
        evaluation = QualityGateManager().evaluate(clean_schedule)
        schema = _gate(evaluation, SCHEMA_COMPLIANCE)
        assert schema.score is False
        assert any(line.startswith("tasks.0.origin") for line in schema.detail)

    def test_explicit_field_without_citation_fails_schema(self, clean_schedule):
        clean_schedule["tasks"][1]["duration"]["sourceCitations"] = []
        evaluation = QualityGateManager().evaluate(clean_schedule)
        assert SCHEMA_COMPLIANCE in [f.gate for f in evaluation.failures]

    def test_scenario_c_regulated_task_warns(self, clean_schedule, cited_task):
        clean_schedule["tasks"].append(cited_task("t4", "Submit FDA 510(k) package"))
        evaluation = QualityGateManager().evaluate(clean_schedule)
        assert evaluation.passed
        assert [w.gate for w in evaluation.warnings] == [REGULATORY_FLAGS]
        assert evaluation.warnings[0].detail == ["regulated task without requirement: t4 (FDA)"]

    def test_regulation_detection(self):
        assert detect_regulation("Submit FDA 510(k)") == "FDA"
        assert detect_regulation("HIPAA risk assessment") == "HIPAA"
        assert detect_regulation("Design the logo") is None
        assert detect_regulation(None) is None


class TestQualityGateManager:
    """Registry behaviour and error containment."""

    def test_evaluation_is_deterministic(self, scenario_a_schedule):
        manager = QualityGateManager()
        assert manager.evaluate(scenario_a_schedule) == manager.evaluate(scenario_a_schedule)

    def test_add_gate_overwrites_by_name(self):
        manager = QualityGateManager()
        manager.add_gate(QualityGate(CITATION_COVERAGE, 0.5, True, lambda s: 1.0))
        assert manager.get_gate(CITATION_COVERAGE).threshold == 0.5
        assert len(manager.gates()) == 5

    def test_remove_unknown_gate_is_a_no_op(self):
        manager = QualityGateManager()
        manager.remove_gate("NOPE")
        manager.remove_gate(REGULATORY_FLAGS)
        assert REGULATORY_FLAGS not in [g["name"] for g in manager.gates()]

    def test_raising_blocking_gate_becomes_failure(self, clean_schedule):
        def broken(schedule):
            raise RuntimeError("evaluator blew up")

        manager = QualityGateManager()
        manager.add_gate(QualityGate("BROKEN", 1.0, True, broken))
        evaluation = manager.evaluate(clean_schedule)
        assert not evaluation.passed
        assert evaluation.failures[0].error == "evaluator blew up"

    def test_raising_advisory_gate_becomes_warning(self, clean_schedule):
        def broken(schedule):
            raise RuntimeError("evaluator blew up")

        manager = QualityGateManager()
        manager.add_gate(QualityGate("BROKEN", 1.0, False, broken))
        evaluation = manager.evaluate(clean_schedule)
        assert evaluation.passed
        assert evaluation.warnings[0].to_dict()["error"] == "evaluator blew up"

    def test_plain_float_evaluator(self, clean_schedule):
        manager = QualityGateManager(gates=[QualityGate("HALF", 0.5, True, lambda s: 0.4)])
        evaluation = manager.evaluate(clean_schedule)
        assert evaluation.failures[0].score == 0.4
        assert evaluation.to_dict()["passed"] is False
