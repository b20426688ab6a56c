# catalog_admin/domain/reconciliation/jobs.py
import asyncio
import logging
from typing import Callable, Dict, List, Optional
from uuid import uuid4

from catalog_admin.core.config import settings
from catalog_admin.core.errors import NotFoundError, ReconciliationCancelled
from catalog_admin.domain.reconciliation.schemas import (
    JobStatus,
    ParsedStockFile,
    ReconciliationJobOut,
    ReconciliationProgress,
)
from catalog_admin.domain.reconciliation.service import BulkReconciliationEngine, CancellationToken

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = (JobStatus.COMPLETED, JobStatus.CANCELLED, JobStatus.FAILED)


class ReconciliationJob:
    def __init__(self, parsed: ParsedStockFile):
        self.id = uuid4().hex
        self.parsed = parsed
        self.status = JobStatus.PENDING
        self.progress = ReconciliationProgress(total=parsed.valid_rows)
        self.message: Optional[str] = None
        self.token = CancellationToken()
        self.task: Optional[asyncio.Task] = None

    @property
    def done(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def to_out(self) -> ReconciliationJobOut:
        return ReconciliationJobOut(
            id=self.id,
            file_name=self.parsed.file_name,
            status=self.status,
            progress=self.progress,
            message=self.message,
            errors=self.parsed.errors,
        )


class ReconciliationJobRegistry:
    """Runs stock-file reconciliations in the background and tracks them by id.

    Only the most recent `history_limit` finished jobs are kept. A finished
    job drops its parsed rows; its progress, message and parse errors stay
    available for status polling.
    """

    def __init__(
        self,
        engine: BulkReconciliationEngine,
        on_finished: Optional[Callable[[], None]] = None,
        history_limit: Optional[int] = None,
    ):
        self.engine = engine
        self.on_finished = on_finished
        self.history_limit = settings.RECONCILIATION_JOB_HISTORY if history_limit is None else history_limit
        self._jobs: Dict[str, ReconciliationJob] = {}

    def start(self, parsed: ParsedStockFile) -> ReconciliationJob:
        job = ReconciliationJob(parsed)
        self._jobs[job.id] = job
        job.task = asyncio.create_task(self._run(job))
        return job

    def get(self, job_id: str) -> ReconciliationJob:
        job = self._jobs.get(job_id)
        if job is None:
            raise NotFoundError(f"Reconciliation job {job_id} not found")
        return job

    def list_jobs(self) -> List[ReconciliationJob]:
        return list(self._jobs.values())

    def cancel(self, job_id: str) -> ReconciliationJob:
        job = self.get(job_id)
        if not job.done:
            job.token.cancel()
        return job

    def _prune(self) -> None:
        finished = [job_id for job_id, job in self._jobs.items() if job.done]
        excess = len(finished) - self.history_limit
        for job_id in finished[:max(excess, 0)]:
            del self._jobs[job_id]

    def _record_progress(self, job: ReconciliationJob, progress: ReconciliationProgress) -> None:
        job.progress = progress

    async def _run(self, job: ReconciliationJob) -> None:
        job.status = JobStatus.RUNNING
        try:
            job.progress = await self.engine.reconcile(
                job.parsed.rows,
                on_progress=lambda progress: self._record_progress(job, progress),
                cancel_token=job.token,
            )
        except ReconciliationCancelled:
            job.status = JobStatus.CANCELLED
            job.message = (
                f"Import cancelled: {job.progress.processed} of {job.progress.total} rows were applied"
            )
            logger.info("Job %s: %s", job.id, job.message)
        except Exception:
            job.status = JobStatus.FAILED
            job.message = "Stock import failed"
            logger.exception("Job %s failed", job.id)
        else:
            job.status = JobStatus.COMPLETED
            job.message = (
                f"{job.progress.updated} updated, {job.progress.created} created, "
                f"{job.progress.skipped} skipped"
            )
        finally:
            job.parsed.rows = []
            self._prune()
            if self.on_finished is not None:
                self.on_finished()
