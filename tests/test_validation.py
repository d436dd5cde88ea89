"""Validation pipeline -- citations, contradictions, provenance, calibration."""

from datetime import datetime, timedelta, timezone

import pytest

from schedule_guard.claims import Citation, Claim, ClaimLedger, ClaimType, Contradiction, InferenceRationale, Origin, Severity
from schedule_guard.claims.extractor import TaskClaimExtractor
from schedule_guard.validation import (
    CitationVerifier,
    ConfidenceCalibrator,
    ContradictionDetector,
    ProvenanceAuditor,
    ResearchValidationService,
)
from schedule_guard.validation.contradiction_detector import classify_numeric, classify_text
from schedule_guard.validation.models import ProvenanceReport
from schedule_guard.validation.pipeline import index_documents

DOCS = {"plan.md": "Requirements gathering takes 10 days."}


def _claim(claim_id, value, subject="build", origin=Origin.INFERRED, confidence=0.8, **kwargs):
    return Claim(
        id=claim_id,
        task_id=f"task-{claim_id}",
        claim_type=kwargs.pop("claim_type", ClaimType.DURATION),
        field_name="duration",
        value=value,
        origin=origin,
        confidence=confidence,
        subject=subject,
        **kwargs,
    )


class TestCitationVerifier:
    """Structural citation checks, in order."""

    def test_missing_citation(self):
        assert CitationVerifier().verify(None, DOCS).reason == "missing citation"

    def test_document_must_be_a_source(self):
        check = CitationVerifier().verify(Citation(document_name="other.md", start_char=0, end_char=5), DOCS)
        assert not check.valid
        assert not check.document_found

    def test_offsets_required(self):
        check = CitationVerifier().verify(Citation(document_name="plan.md"), DOCS)
        assert not check.valid
        assert check.document_found

    def test_inverted_range(self):
        check = CitationVerifier().verify(Citation(document_name="plan.md", start_char=9, end_char=2), DOCS)
        assert not check.valid

    def test_valid_citation(self):
        check = CitationVerifier().verify(Citation(document_name="plan.md", start_char=0, end_char=12), DOCS)
        assert check.valid


class TestSeverityBands:
    """10% and 30% boundaries fall into the lower band."""

    def test_exactly_ten_percent_is_low(self):
        assert classify_numeric(100, 110) == Severity.LOW

    def test_just_over_ten_percent_is_medium(self):
        assert classify_numeric(100, 111) == Severity.MEDIUM

    def test_exactly_thirty_percent_is_medium(self):
        assert classify_numeric(100, 130) == Severity.MEDIUM

    def test_forty_five_percent_is_high(self):
        assert classify_numeric(100, 145) == Severity.HIGH

    def test_zero_against_nonzero_is_high(self):
        assert classify_numeric(0, 5) == Severity.HIGH

    def test_equal_values_do_not_contradict(self):
        assert classify_numeric(7, 7) is None
        assert classify_text("Backend team", "backend team ") is None

    def test_polarity_pair_is_high(self):
        assert classify_text("fast track", "slow track") == Severity.HIGH

    def test_other_text_is_low(self):
        assert classify_text("Alice", "Bob") == Severity.LOW


class TestContradictionDetector:
    """Pairwise comparison within a claim type and subject."""

    def test_different_subjects_never_contradict(self):
        detector = ContradictionDetector()
        assert detector.compare(_claim("a", 100, subject="build"), _claim("b", 145, subject="launch")) is None

    def test_different_types_never_contradict(self):
        detector = ContradictionDetector()
        other = _claim("b", 145, claim_type=ClaimType.RESOURCE)
        assert detector.compare(_claim("a", 100), other) is None

    def test_detect_all_records_each_pair_once(self):
        ledger = ClaimLedger()
        ledger.add_claim(_claim("a", 100))
        ledger.add_claim(_claim("b", 145))
        detector = ContradictionDetector()

        found = detector.detect_all(ledger)
        assert len(found) == 1
        assert found[0].severity == Severity.HIGH
        assert detector.detect_all(ledger) == []
        assert len(ledger.all_contradictions()) == 1

    def test_contradiction_id_is_order_independent(self):
        detector = ContradictionDetector()
        first = detector.compare(_claim("a", 100), _claim("b", 145))
        second = detector.compare(_claim("b", 145), _claim("a", 100))
        assert first.id == second.id

    def test_exhausted_budget_stops_the_pass(self):
        ledger = ClaimLedger()
        ledger.add_claim(_claim("a", 100))
        ledger.add_claim(_claim("b", 145))
        assert ContradictionDetector(budget_seconds=-1).detect_all(ledger) == []


class TestProvenanceAuditor:
    """Citation and rationale scoring."""

    def _citation(self, **overrides):
        data = dict(
            document_name="plan.md",
            provider="INTERNAL",
            start_char=0,
            end_char=36,
            exact_quote="Requirements gathering takes 10 days",
        )
        data.update(overrides)
        return Citation(**data)

    def test_complete_citation_scores_full(self):
        report = ProvenanceAuditor().audit(_claim("a", 10, citation=self._citation()), DOCS)
        assert report.score == 1.0
        assert not report.hallucination

    def test_quote_not_in_document_is_hallucination(self):
        claim = _claim("a", 10, citation=self._citation(exact_quote="Requirements take 3 days"))
        report = ProvenanceAuditor().audit(claim, DOCS)
        assert report.hallucination
        assert report.score == 0.0

    def test_unsupplied_document_is_hallucination(self):
        claim = _claim("a", 10, citation=self._citation(document_name="ghost.md"))
        assert ProvenanceAuditor().audit(claim, DOCS).score == 0.0

    def test_minor_penalties(self):
        claim = _claim("a", 10, citation=self._citation(provider=None, start_char=None))
        report = ProvenanceAuditor().audit(claim, DOCS)
        assert report.score == 0.8
        assert set(report.penalties) == {"missing_provider", "missing_offsets"}

    def test_stale_retrieval(self):
        now = datetime(2025, 6, 1, tzinfo=timezone.utc)
        retrieved = (now - timedelta(days=60)).isoformat()
        claim = _claim("a", 10, citation=self._citation(retrieved_at=retrieved))
        report = ProvenanceAuditor(stale_after_days=30, now=now).audit(claim, DOCS)
        assert report.stale
        assert report.score == 0.9

    def test_rationale_scoring(self):
        good = _claim("a", 10, rationale=InferenceRationale(method="temporal-logic", explanation="After design"))
        vague = _claim("b", 10, rationale=InferenceRationale(method="guess"))
        auditor = ProvenanceAuditor()
        assert auditor.audit(good, DOCS).score == 1.0
        assert auditor.audit(vague, DOCS).score == 0.6

    def test_no_provenance_at_all(self):
        assert ProvenanceAuditor().audit(_claim("a", 10), DOCS).score == 0.2


class TestConfidenceCalibrator:
    """Bounded adjustments, clamped to [0, 1]."""

    def test_explicit_high_coverage_clamps_to_one(self):
        claim = _claim("a", 10, origin=Origin.EXPLICIT, confidence=1.0)
        assert ConfidenceCalibrator().calibrate(claim, 1.0, [], ProvenanceReport(score=1.0)) == 1.0

    def test_low_coverage_penalty(self):
        claim = _claim("a", 10, confidence=0.8)
        assert ConfidenceCalibrator().calibrate(claim, 0.0, [], ProvenanceReport(score=1.0)) == 0.65

    def test_unresolved_high_contradiction_penalty(self):
        claim = _claim("a", 10, confidence=0.8)
        contradiction = Contradiction(
            claim_type=ClaimType.DURATION, claim_ids=("a", "b"), values=(10, 20), severity=Severity.HIGH,
        )
        calibrator = ConfidenceCalibrator()
        assert calibrator.calibrate(claim, 0.0, [contradiction], ProvenanceReport(score=1.0)) == 0.45

        contradiction.resolve("b", "keep_authoritative_claim")
        assert calibrator.calibrate(claim, 0.0, [contradiction], ProvenanceReport(score=1.0)) == 0.65

    def test_low_provenance_penalty(self):
        claim = _claim("a", 10, confidence=0.5)
        assert ConfidenceCalibrator().calibrate(claim, 0.6, [], ProvenanceReport(score=0.2)) == 0.4

    def test_task_without_claims_uses_fallback(self):
        assert ConfidenceCalibrator().calibrate_task([], 0.7) == 0.7


class TestResearchValidationService:
    """Per-task and whole-schedule validation."""

    def test_index_documents_accepts_both_shapes(self):
        assert index_documents([{"name": "a.md", "content": "x"}]) == {"a.md": "x"}
        assert index_documents({"a.md": "x"}) == {"a.md": "x"}
        assert index_documents(None) == {}

    def test_cited_task_scores_full(self, cited_task, documents):
        service = ResearchValidationService()
        result = service.validate_task(cited_task("t1", "Requirements gathering"), documents)
        assert not result.failed
        assert result.citation_coverage == 1.0
        assert result.provenance_score == 1.0
        assert result.calibrated_confidence == 1.0

    def test_task_without_claims_has_vacuous_coverage(self, documents):
        result = ResearchValidationService().validate_task({"id": "t1", "name": "Kickoff"}, documents)
        assert result.citation_coverage == 1.0

    def test_bad_task_degrades_to_failure(self, documents):
        result = ResearchValidationService().validate_task({"name": "No id"}, documents)
        assert result.failed
        assert result.citation_coverage == 0.0
        assert result.to_metadata()["error"]

    def test_hallucinated_quote_is_flagged(self, documents):
        task = {
            "id": "t1",
            "name": "Build",
            "origin": "explicit",
            "confidence": 1.0,
            "duration": {
                "value": 3,
                "origin": "explicit",
                "confidence": 1.0,
                "sourceCitations": [{
                    "documentName": "plan.md", "provider": "INTERNAL",
                    "startChar": 0, "endChar": 10, "exactQuote": "Build takes 3 days",
                }],
            },
        }
        result = ResearchValidationService().validate_task(task, documents)
        metadata = result.to_metadata()
        assert metadata["hallucinatedClaimIds"] == metadata["claimIds"]
        assert result.provenance_score == 0.0

    @pytest.mark.asyncio
    async def test_schedule_contradictions_found_after_join(self, inferred_task, documents):
        tasks = [
            inferred_task("t1", "Build", days=100),
            inferred_task("t2", "Build", days=145),
            inferred_task("t3", "Launch", days=3),
        ]
        service = ResearchValidationService()
        results = await service.validate_schedule(tasks, documents)

        assert [r.task_id for r in results] == ["t1", "t2", "t3"]
        high = service.ledger.unresolved_contradictions(Severity.HIGH)
        assert len(high) == 1
        assert results[0].contradictions == high
        assert results[2].contradictions == []
        assert results[0].calibrated_confidence < results[2].calibrated_confidence

    @pytest.mark.asyncio
    async def test_one_bad_task_does_not_stop_the_batch(self, cited_task, documents):
        tasks = [cited_task("t1", "Requirements gathering"), "not a task", cited_task("t1", "Duplicate id")]
        results = await ResearchValidationService().validate_schedule(tasks, documents)
        assert not results[0].failed
        assert results[1].failed
        assert results[2].failed

    @pytest.mark.asyncio
    async def test_supplied_extractions_are_what_gets_validated(self, cited_task, inferred_task, documents):
        tasks = [cited_task("t1", "Requirements gathering"), inferred_task("t2", "Build"), "not a task"]
        extractions = TaskClaimExtractor().extract_batch(tasks)
        service = ResearchValidationService()

        results = await service.validate_schedule(tasks, documents, extractions=extractions)

        for extraction in extractions[:2]:
            (claim,) = extraction.claims
            assert service.ledger.get_claim(claim.id) is claim
            assert claim.calibrated_confidence is not None
        assert results[2].failed
        assert results[2].error == extractions[2].error

    @pytest.mark.asyncio
    async def test_extractions_must_match_tasks(self, cited_task, documents):
        with pytest.raises(ValueError):
            await ResearchValidationService().validate_schedule([cited_task("t1", "Build")], documents, extractions=[])
