"""
ScheduleValidationOrchestrator -- the eight-step validation job.

Step 1: ACCEPT     -- take the supplied schedule or ask the generator for one
Step 2: EXTRACT    -- turn every task into claims
Step 3: VALIDATE   -- citations, provenance, contradictions, calibration
Step 4: ANNOTATE   -- per-task and top-level validationMetadata
Step 5: GATES      -- evaluate every quality gate
Step 6: REPAIR     -- bounded repair loop when a gate fails or warns
Step 7: STRUCTURE  -- final structural check; failure here aborts the job
Step 8: STORE      -- persist and complete

The schedule stays a plain dict from start to finish, so every key attached
in steps 2-6 survives the final structural check.
"""

import copy
import json
import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ..claims.extractor import ExtractionResult, TaskClaimExtractor
from ..claims.ledger import ClaimLedger
from ..claims.models import utc_now
from ..config import PipelineConfig
from ..errors import ScheduleGenerationError, StructuralValidationError
from ..gates.builtin import schedule_tasks
from ..gates.manager import QualityGateManager
from ..gates.models import GateEvaluation, QualityGate
from ..repair.engine import RepairEngine
from ..repair.models import RepairLog
from ..repair.strategies import Repairer
from ..schema import require_valid_structure
from ..validation.models import TaskValidationResult
from ..validation.pipeline import ResearchValidationService, index_documents
from .job import Job, JobTracker

logger = logging.getLogger(__name__)


# =============================================================================
# COLLABORATORS
# =============================================================================


@runtime_checkable
class ScheduleGenerator(Protocol):
    """Produces a schedule when a job does not supply one.

    Example:
        class ModelBackedGenerator:
            async def generate(self, job_input):
                return await call_model(job_input.prompt, job_input.documents)
    """

    async def generate(self, job_input: "JobInput") -> dict[str, Any]: ...


@runtime_checkable
class ScheduleStore(Protocol):
    """Persists a finished schedule and returns its chart id."""

    async def save(self, schedule: dict[str, Any], job_id: str) -> str: ...


class InMemoryScheduleStore:
    """Default store. Keeps schedules in a dict keyed by chart id."""

    def __init__(self):
        self.charts: dict[str, dict[str, Any]] = {}

    async def save(self, schedule: dict[str, Any], job_id: str) -> str:
        chart_id = str(uuid.uuid4())
        self.charts[chart_id] = schedule
        return chart_id


# =============================================================================
# DATA MODELS
# =============================================================================


@dataclass
class JobInput:
    """What a caller hands the orchestrator."""

    schedule: dict[str, Any] | None = None
    documents: Any = field(default_factory=list)  # [{name, content}] or {name: content}
    prompt: str | None = None  # Only used by a generator
    job_id: str | None = None


@dataclass
class JobResult:
    """Validated (possibly repaired) schedule plus its quality report."""

    schedule: dict[str, Any]
    final_quality_gates: GateEvaluation
    repair_log: RepairLog | None
    job: Job
    task_results: list[TaskValidationResult] = field(default_factory=list)

    @property
    def needs_manual_review(self) -> bool:
        return not self.final_quality_gates.passed

    def to_dict(self) -> dict[str, Any]:
        data = {
            "jobId": self.job.id,
            "status": self.job.to_status(),
            "schedule": self.schedule,
            "finalQualityGates": self.final_quality_gates.to_dict(),
        }
        if self.repair_log is not None:
            data["repairLog"] = self.repair_log.to_dict()
        return data


# =============================================================================
# ORCHESTRATOR
# =============================================================================


class ScheduleValidationOrchestrator:
    """
    Runs one validation job end to end.

    Usage:
        orchestrator = ScheduleValidationOrchestrator(config=PipelineConfig())
        orchestrator.remove_gate("REGULATORY_FLAGS")
        result = await orchestrator.run(JobInput(schedule=schedule, documents=docs))

        orchestrator.tracker.status(result.job.id)
        # {"status": "completed", "progress": 100, "chartId": "..."}
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        generator: ScheduleGenerator | None = None,
        store: ScheduleStore | None = None,
        tracker: JobTracker | None = None,
        gate_manager: QualityGateManager | None = None,
    ):
        self.config = config or PipelineConfig()
        self.generator = generator
        self.store = store if store is not None else InMemoryScheduleStore()
        self.tracker = tracker if tracker is not None else JobTracker()
        self.gate_manager = gate_manager or QualityGateManager(config=self.config)
        self._extra_repairers: list[Repairer] = []

    def add_gate(self, gate: QualityGate, repairer: Repairer | None = None) -> None:
        """Register a gate, optionally with the strategy that repairs it."""
        self.gate_manager.add_gate(gate)
        if repairer is not None:
            self._extra_repairers.append(repairer)

    def remove_gate(self, name: str) -> None:
        self.gate_manager.remove_gate(name)

    async def run(self, job_input: JobInput) -> JobResult:
        """Execute all eight steps. Raises only on steps 1 and 7."""
        job = self.tracker.create(job_input.job_id)
        logger.info(f"[Orchestrator] Job {job.id} started")

        # Step 1: Accept or generate
        try:
            schedule = await self._accept_schedule(job_input)
        except Exception as e:
            job.fail(str(e))
            logger.error(f"[Orchestrator] Job {job.id} failed: {e}")
            raise
        job.advance("accept_schedule")
        tasks = schedule_tasks(schedule)

        # Step 2: Extract
        extractions = TaskClaimExtractor().extract_batch(tasks)
        claim_count = sum(len(r.claims) for r in extractions)
        logger.info(f"[Orchestrator] Extracted {claim_count} claims from {len(tasks)} tasks")
        job.advance("extract_claims")

        # Step 3: Validate (fans out per task, joins before contradictions)
        ledger = ClaimLedger()
        service = ResearchValidationService(ledger=ledger, config=self.config)
        documents = index_documents(job_input.documents)
        results = await service.validate_schedule(tasks, documents, extractions=extractions)
        job.advance("validate_claims")

        # Step 4: Attach metadata
        self._attach_metadata(schedule, tasks, results, ledger, extractions)
        job.advance("attach_metadata")

        # Step 5: Gates
        evaluation = self.gate_manager.evaluate(schedule)
        job.advance("evaluate_gates")

        # Step 6: Repair when a blocking gate failed or an advisory gate warned
        repair_log = None
        if not evaluation.clean:
            engine = RepairEngine(config=self.config, ledger=ledger)
            for repairer in self._extra_repairers:
                engine.register(repairer)
            report = engine.repair_until_passing(schedule, self.gate_manager)
            evaluation = report.final_evaluation
            repair_log = report.log
            logger.info(
                f"[Orchestrator] Repair {'complete' if report.fully_repaired else 'incomplete'} "
                f"after {report.attempts} attempts"
            )
        job.advance("repair")

        # Step 7: Final structural validation (fatal)
        try:
            require_valid_structure(schedule)
        except StructuralValidationError as e:
            job.fail(str(e))
            logger.error(f"[Orchestrator] Job {job.id} failed final validation: {e}")
            self._write_report(job, schedule, evaluation, repair_log)
            raise
        job.advance("final_validation")

        # Step 8: Store
        chart_id = await self.store.save(schedule, job.id)
        job.complete(chart_id)

        result = JobResult(
            schedule=schedule,
            final_quality_gates=evaluation,
            repair_log=repair_log,
            job=job,
            task_results=results,
        )
        self._write_report(job, schedule, evaluation, repair_log)
        logger.info(
            f"[Orchestrator] Job {job.id} complete: gates {'PASSED' if evaluation.passed else 'FAILED'}, "
            f"{len(evaluation.warnings)} warnings, chart {chart_id}"
        )
        return result

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    async def _accept_schedule(self, job_input: JobInput) -> dict[str, Any]:
        if job_input.schedule is not None:
            schedule = job_input.schedule
        elif self.generator is not None:
            schedule = await self.generator.generate(job_input)
        else:
            raise ScheduleGenerationError("No schedule supplied and no generator configured")

        if not isinstance(schedule, dict):
            raise ScheduleGenerationError(
                f"Schedule must be an object, got {type(schedule).__name__}"
            )
        # The caller's dict is never mutated.
        return copy.deepcopy(schedule)

    def _attach_metadata(
        self,
        schedule: dict[str, Any],
        tasks: list[dict[str, Any]],
        results: list[TaskValidationResult],
        ledger: ClaimLedger,
        extractions: list[ExtractionResult],
    ) -> None:
        for task, result in zip(tasks, results):
            existing = task.get("validationMetadata")
            metadata = dict(existing) if isinstance(existing, dict) else {}
            metadata.update(result.to_metadata())
            task["validationMetadata"] = metadata
            if not result.failed:
                task["confidence"] = round(result.calibrated_confidence, 4)

        snapshot = ledger.export()
        validated = [r for r in results if not r.failed]
        existing = schedule.get("validationMetadata")
        top = dict(existing) if isinstance(existing, dict) else {}
        top.update({
            "validatedAt": utc_now(),
            "taskCount": len(tasks),
            "claimCount": len(snapshot.claims),
            "contradictions": list(snapshot.contradictions),
            "averageCitationCoverage": _mean([r.citation_coverage for r in validated]),
            "averageProvenanceScore": _mean([r.provenance_score for r in validated]),
            "failedTaskIds": [r.task_id for r in results if r.failed],
            "extractionErrors": [
                {"taskId": e.task_id, "error": e.error} for e in extractions if not e.success
            ],
        })
        schedule["validationMetadata"] = top

    def _write_report(
        self,
        job: Job,
        schedule: dict[str, Any],
        evaluation: GateEvaluation,
        repair_log: RepairLog | None,
    ) -> None:
        """Write the job report when a reports directory is configured."""
        if self.config.reports_dir is None:
            return
        report_dir = Path(self.config.reports_dir)
        report_dir.mkdir(parents=True, exist_ok=True)
        path = report_dir / f"{job.id}.json"
        data = {
            "jobId": job.id,
            "status": job.to_status(),
            "finalQualityGates": evaluation.to_dict(),
            "repairLog": repair_log.to_dict() if repair_log else None,
            "schedule": schedule,
        }
        try:
            with open(path, "w") as f:
                json.dump(data, f, indent=2, default=str)
            logger.debug(f"[Orchestrator] Report: {path}")
        except Exception as e:
            logger.warning(f"[Orchestrator] Report write failed: {e}")


def _mean(values: list[float]) -> float:
    if not values:
        return 1.0
    return round(sum(values) / len(values), 4)
