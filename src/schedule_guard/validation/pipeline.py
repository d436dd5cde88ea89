"""
ResearchValidationService -- runs every check on every claim of a schedule.

Per claim:
  CitationVerifier -> ContradictionDetector -> ProvenanceAuditor -> ConfidenceCalibrator

Batch flow (validate_schedule):
  1. Fan out per task: extract claims (or take the caller's extraction),
     verify citations, audit provenance.
  2. Serialize ledger inserts behind one lock.
  3. Join, then run one contradiction pass over the full ledger.
  4. Calibrate every claim and aggregate per task.

A task that raises at any point comes back as a zero-quality result with
`error` set. The rest of the batch is unaffected.
"""

import asyncio
import logging
from typing import Any, Iterable, Mapping

from ..claims.extractor import ExtractionResult, TaskClaimExtractor
from ..claims.ledger import ClaimLedger
from ..claims.models import Claim, Contradiction
from ..config import PipelineConfig
from ..errors import LedgerError
from .citation_verifier import CitationVerifier
from .confidence_calibrator import ConfidenceCalibrator
from .contradiction_detector import ContradictionDetector
from .models import ClaimValidation, TaskValidationResult
from .provenance_auditor import ProvenanceAuditor

logger = logging.getLogger(__name__)


def index_documents(documents: Iterable[Mapping[str, Any]] | Mapping[str, str] | None) -> dict[str, str]:
    """Accept [{name, content}, ...] or {name: content} and return {name: content}."""
    if not documents:
        return {}
    if isinstance(documents, Mapping):
        return {str(k): str(v) for k, v in documents.items()}
    indexed = {}
    for doc in documents:
        name = doc.get("name") if isinstance(doc, Mapping) else None
        if not name:
            logger.warning("[Validation] Skipping source document without a name")
            continue
        indexed[str(name)] = str(doc.get("content") or "")
    return indexed


def _task_id(task: Any) -> str | None:
    if isinstance(task, Mapping) and task.get("id"):
        return str(task["id"])
    return None


class ResearchValidationService:
    """Validates schedule tasks against their source documents.

    Usage:
        service = ResearchValidationService(config=PipelineConfig())
        results = await service.validate_schedule(schedule["tasks"], documents)
        service.ledger.export()
    """

    def __init__(self, ledger: ClaimLedger | None = None, config: PipelineConfig | None = None):
        config = config or PipelineConfig()
        self.ledger = ledger if ledger is not None else ClaimLedger()
        self._extractor = TaskClaimExtractor()
        self._citations = CitationVerifier()
        self._detector = ContradictionDetector(budget_seconds=config.contradiction_budget_seconds)
        self._auditor = ProvenanceAuditor(stale_after_days=config.stale_citation_days)
        self._calibrator = ConfidenceCalibrator()
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Single task
    # -------------------------------------------------------------------------

    def validate_task(self, task: Mapping[str, Any], documents: Any) -> TaskValidationResult:
        """Validate one task. Contradictions are checked against the ledger so far."""
        task_id = _task_id(task)
        try:
            docs = index_documents(documents)
            checks = self._check_claims(task, docs)
            self._store_claims(checks)
            for check in checks:
                for contradiction in self._detector.detect_for_claim(check.claim, self.ledger):
                    if not self.ledger.has_contradiction(contradiction.id):
                        self.ledger.add_contradiction(contradiction)
            return self._finalize(task, checks)
        except Exception as e:
            logger.error(f"[Validation] Task {task_id} failed: {e}")
            return TaskValidationResult.failure(task_id, str(e))

    # -------------------------------------------------------------------------
    # Whole schedule
    # -------------------------------------------------------------------------

    async def validate_schedule(
        self,
        tasks: list[Mapping[str, Any]],
        documents: Any,
        extractions: list[ExtractionResult] | None = None,
    ) -> list[TaskValidationResult]:
        """Validate every task. Results come back in task order.

        When `extractions` is given (one per task, as returned by
        TaskClaimExtractor.extract_batch) those claims are validated and
        stored as-is; a failed extraction fails its task.
        """
        if extractions is not None and len(extractions) != len(tasks):
            raise ValueError(
                f"Got {len(extractions)} extraction results for {len(tasks)} tasks"
            )
        docs = index_documents(documents)
        logger.info(f"[Validation] Validating {len(tasks)} tasks against {len(docs)} documents")

        staged = await asyncio.gather(*[
            self._stage_task(task, docs, extractions[i] if extractions is not None else None)
            for i, task in enumerate(tasks)
        ])

        # Join point: every claim is in the ledger before contradictions are computed.
        self._detector.detect_all(self.ledger)

        results = []
        for task, (checks, error) in zip(tasks, staged):
            if error is not None:
                results.append(TaskValidationResult.failure(_task_id(task), error))
                continue
            try:
                results.append(self._finalize(task, checks))
            except Exception as e:
                logger.error(f"[Validation] Task {_task_id(task)} failed during calibration: {e}")
                results.append(TaskValidationResult.failure(_task_id(task), str(e)))

        failed = sum(1 for r in results if r.failed)
        logger.info(
            f"[Validation] Complete: {len(results) - failed} validated, {failed} failed, "
            f"{len(self.ledger.all_contradictions())} contradictions"
        )
        return results

    async def _stage_task(
        self, task: Mapping[str, Any], docs: dict[str, str], extraction: ExtractionResult | None
    ) -> tuple[list[ClaimValidation], str | None]:
        if extraction is not None and not extraction.success:
            return [], extraction.error or "claim extraction failed"
        try:
            claims = extraction.claims if extraction is not None else None
            checks = self._check_claims(task, docs, claims)
            async with self._lock:
                self._store_claims(checks)
            return checks, None
        except Exception as e:
            logger.error(f"[Validation] Task {_task_id(task)} failed: {e}")
            return [], str(e)

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _check_claims(
        self, task: Mapping[str, Any], docs: dict[str, str], claims: list[Claim] | None = None
    ) -> list[ClaimValidation]:
        """Extraction (unless claims are supplied), citation verification and
        provenance audit. No ledger access."""
        if claims is None:
            claims = self._extractor.extract_claims(task)
        checks = []
        for claim in claims:
            provenance = self._auditor.audit(claim, docs)
            claim.provenance_score = provenance.score
            checks.append(ClaimValidation(
                claim=claim,
                citation=self._citations.verify(claim.citation, docs),
                provenance=provenance,
            ))
        return checks

    def _store_claims(self, checks: list[ClaimValidation]) -> None:
        duplicates = [c.claim.id for c in checks if c.claim.id in self.ledger]
        if duplicates:
            raise LedgerError(
                f"{len(duplicates)} claim(s) already in the ledger (duplicate task id?)"
            )
        for check in checks:
            self.ledger.add_claim(check.claim)

    def _finalize(self, task: Mapping[str, Any], checks: list[ClaimValidation]) -> TaskValidationResult:
        """Calibrate each claim and aggregate the task result."""
        if checks:
            coverage = sum(1 for c in checks if c.citation.valid) / len(checks)
        else:
            coverage = 1.0

        seen: dict[str, Contradiction] = {}
        for check in checks:
            check.contradictions = self.ledger.contradictions_for_claim(check.claim.id)
            for contradiction in check.contradictions:
                seen.setdefault(contradiction.id, contradiction)
            check.claim.calibrated_confidence = self._calibrator.calibrate(
                check.claim, coverage, check.contradictions, check.provenance
            )

        provenance = (
            sum(c.provenance.score for c in checks) / len(checks) if checks else 1.0
        )
        raw = task.get("confidence")
        fallback = float(raw) if isinstance(raw, (int, float)) and not isinstance(raw, bool) else 0.0
        calibrated = self._calibrator.calibrate_task([c.claim for c in checks], fallback)

        return TaskValidationResult(
            task_id=_task_id(task),
            claims=checks,
            citation_coverage=coverage,
            provenance_score=provenance,
            calibrated_confidence=calibrated,
            contradictions=list(seen.values()),
        )
