"""Claim models, ledger and extractor."""

import pytest

from schedule_guard.claims import (
    Claim,
    ClaimLedger,
    ClaimType,
    Contradiction,
    Origin,
    Severity,
    TaskClaimExtractor,
)
from schedule_guard.claims.models import claim_id_for
from schedule_guard.errors import ClaimExtractionError, LedgerError


def _claim(claim_id, task_id="t1", value=10, claim_type=ClaimType.DURATION):
    return Claim(
        id=claim_id,
        task_id=task_id,
        claim_type=claim_type,
        field_name="duration",
        value=value,
        origin=Origin.INFERRED,
        confidence=0.8,
        subject="build",
    )


class TestClaimModels:
    """Claims and contradictions always carry an id."""

    def test_claim_without_id_is_rejected(self):
        with pytest.raises(ValueError):
            _claim("")

    def test_claim_ids_are_deterministic_per_slot(self):
        assert claim_id_for("t1", "duration") == claim_id_for("t1", "duration")
        assert claim_id_for("t1", "duration") != claim_id_for("t2", "duration")

    def test_normalized_value_defaults_to_value(self):
        assert _claim("c1", value=42).normalized_value == 42

    def test_contradiction_gets_an_id_at_construction(self):
        contradiction = Contradiction(
            claim_type=ClaimType.DURATION,
            claim_ids=("a", "b"),
            values=(1, 2),
            severity=Severity.HIGH,
        )
        assert contradiction.id
        assert not contradiction.is_resolved

    def test_resolve_closes_without_deleting(self):
        contradiction = Contradiction(
            claim_type=ClaimType.DURATION,
            claim_ids=("a", "b"),
            values=(1, 2),
            severity=Severity.HIGH,
        )
        contradiction.resolve("a", "keep_authoritative_claim")
        assert contradiction.is_resolved
        assert contradiction.winning_claim_id == "a"
        assert contradiction.to_dict()["resolutionStrategy"] == "keep_authoritative_claim"


class TestClaimLedger:
    """Indexed storage with strict inserts."""

    def test_indexes_by_task_and_type(self):
        ledger = ClaimLedger()
        ledger.add_claim(_claim("c1", task_id="t1"))
        ledger.add_claim(_claim("c2", task_id="t2"))
        ledger.add_claim(_claim("c3", task_id="t2", claim_type=ClaimType.RESOURCE))

        assert len(ledger) == 3
        assert "c1" in ledger
        assert [c.id for c in ledger.claims_for_task("t2")] == ["c2", "c3"]
        assert [c.id for c in ledger.claims_of_type(ClaimType.DURATION)] == ["c1", "c2"]
        assert ledger.claims_for_task("missing") == []

    def test_duplicate_claim_is_rejected(self):
        ledger = ClaimLedger()
        ledger.add_claim(_claim("c1"))
        with pytest.raises(LedgerError):
            ledger.add_claim(_claim("c1"))

    def test_contradiction_must_reference_known_claims(self):
        ledger = ClaimLedger()
        ledger.add_claim(_claim("c1"))
        contradiction = Contradiction(
            claim_type=ClaimType.DURATION,
            claim_ids=("c1", "ghost"),
            values=(10, 20),
            severity=Severity.HIGH,
        )
        with pytest.raises(LedgerError):
            ledger.add_contradiction(contradiction)

    def test_unresolved_filter_and_export(self):
        ledger = ClaimLedger()
        ledger.add_claim(_claim("c1", value=100))
        ledger.add_claim(_claim("c2", value=145))
        high = Contradiction(
            claim_type=ClaimType.DURATION, claim_ids=("c1", "c2"),
            values=(100, 145), severity=Severity.HIGH,
        )
        ledger.add_contradiction(high)

        assert ledger.unresolved_contradictions(Severity.HIGH) == [high]
        assert ledger.contradictions_for_claim("c2") == [high]

        high.resolve("c1", "keep_authoritative_claim")
        assert ledger.unresolved_contradictions() == []
        snapshot = ledger.export()
        assert len(snapshot.claims) == 2
        assert snapshot.contradictions[0]["resolvedAt"] is not None


class TestTaskClaimExtractor:
    """Task -> ordered, typed claims."""

    def test_field_order_is_fixed(self):
        task = {
            "id": "t1",
            "name": "Submit FDA 510(k)",
            "origin": "inferred",
            "confidence": 0.7,
            "resources": ["Regulatory lead"],
            "regulatoryRequirement": {
                "isRequired": True, "regulation": "FDA", "origin": "inferred", "confidence": 0.8,
            },
            "dependencies": ["t0"],
            "startDate": {"value": "2025-03-01", "origin": "inferred", "confidence": 0.6},
            "duration": {"value": 2, "unit": "weeks", "origin": "inferred", "confidence": 0.7},
        }
        claims = TaskClaimExtractor().extract_claims(task)
        assert [c.claim_type for c in claims] == [
            ClaimType.DURATION,
            ClaimType.DEADLINE,
            ClaimType.DEPENDENCY,
            ClaimType.REQUIREMENT,
            ClaimType.RESOURCE,
        ]

    def test_duration_is_normalized_to_days(self):
        task = {"id": "t1", "name": "Build", "duration": {"value": 2, "unit": "weeks", "origin": "inferred", "confidence": 0.7}}
        (claim,) = TaskClaimExtractor().extract_claims(task)
        assert claim.value == 2
        assert claim.normalized_value == 14.0
        assert claim.subject == "build"

    def test_extraction_is_deterministic(self, cited_task):
        task = cited_task("t1", "Requirements gathering")
        first = TaskClaimExtractor().extract_claims(task)
        second = TaskClaimExtractor().extract_claims(task)
        assert [c.id for c in first] == [c.id for c in second]

    def test_cited_field_carries_its_citation(self, cited_task):
        (claim,) = TaskClaimExtractor().extract_claims(cited_task("t1", "Requirements gathering"))
        assert claim.origin == Origin.EXPLICIT
        assert claim.citation.document_name == "plan.md"

    def test_dependency_inherits_task_provenance(self):
        task = {"id": "t2", "name": "Build", "origin": "inferred", "confidence": 0.6, "dependencies": ["t1"]}
        (claim,) = TaskClaimExtractor().extract_claims(task)
        assert claim.claim_type == ClaimType.DEPENDENCY
        assert claim.value == "t1"
        assert claim.confidence == 0.6
        assert claim.subject == "build->t1"

    def test_non_list_dependencies_are_skipped(self):
        task = {"id": "t2", "name": "Build", "origin": "inferred", "confidence": 0.6,
                "dependencies": "t1", "resources": "Backend team"}
        assert TaskClaimExtractor().extract_claims(task) == []

    def test_requirement_only_when_required(self):
        task = {"id": "t1", "name": "Audit", "regulatoryRequirement": {"isRequired": False}}
        assert TaskClaimExtractor().extract_claims(task) == []

    def test_string_resource_inherits_task_origin(self):
        task = {"id": "t1", "name": "Build", "origin": "explicit", "confidence": 1.0, "resources": ["Backend team"]}
        (claim,) = TaskClaimExtractor().extract_claims(task)
        assert claim.claim_type == ClaimType.RESOURCE
        assert claim.value == "Backend team"
        assert claim.origin == Origin.EXPLICIT

    def test_inference_spelling_maps_to_inferred(self):
        task = {"id": "t1", "name": "Build", "duration": {"value": 3, "origin": "inference", "confidence": 0.5}}
        (claim,) = TaskClaimExtractor().extract_claims(task)
        assert claim.origin == Origin.INFERRED

    def test_absent_fields_produce_no_claims(self):
        assert TaskClaimExtractor().extract_claims({"id": "t1", "name": "Empty"}) == []

    def test_bad_task_raises(self):
        extractor = TaskClaimExtractor()
        with pytest.raises(ClaimExtractionError):
            extractor.extract_claims("not a task")
        with pytest.raises(ClaimExtractionError):
            extractor.extract_claims({"name": "No id"})

    def test_batch_isolates_bad_tasks(self, cited_task):
        results = TaskClaimExtractor().extract_batch([
            cited_task("t1", "Requirements gathering"),
            {"name": "No id"},
        ])
        assert results[0].success and len(results[0].claims) == 1
        assert not results[1].success
        assert "no id" in results[1].error
