"""In-memory print job queue with concurrent fan-out and job retention."""

import asyncio
import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from itertools import count

from pydantic import BaseModel

from printpool.encoder import EncodingError, encode
from printpool.models.job import JobStatus, PrintJob, TargetResult
from printpool.models.printer import PrinterTarget
from printpool.models.request import CashDrawerContent, PrintContent, PrintRequest
from printpool.registry import PrinterRegistry
from printpool.transport.base import BaseTransport

logger = logging.getLogger(__name__)

NO_PRINTER_CONFIGURED = "No printer configured"
NOTHING_TO_PRINT = "Nothing to print"
PRINTER_NOT_FOUND = "Printer not found"
PRINTER_DISABLED = "Printer disabled"
NO_ADDRESS_CONFIGURED = "No IP configured"

JobListener = Callable[[PrintJob], None]


class PrinterStats(BaseModel):
    """Running per-printer counters kept for the operator."""

    jobs_completed: int = 0
    jobs_failed: int = 0
    last_error: str | None = None
    last_active_at: datetime | None = None


def aggregate_status(results: Mapping[str, TargetResult]) -> JobStatus:
    """Terminal status for a set of per-printer results."""
    succeeded = sum(1 for result in results.values() if result.ok)
    if succeeded == 0:
        return JobStatus.FAILED
    if succeeded < len(results):
        return JobStatus.PARTIAL
    return JobStatus.SUCCEEDED


def _single_target_problem(target: PrinterTarget | None) -> str | None:
    """Reason a directly addressed printer cannot take a job, if any."""
    if target is None:
        return PRINTER_NOT_FOUND
    if not target.enabled:
        return PRINTER_DISABLED
    if not target.address:
        return NO_ADDRESS_CONFIGURED
    return None


class PrintJobQueue:
    """Accepts print requests and fans each one out to its target printers.

    `submit` returns immediately; target resolution, encoding and delivery
    run in a background task per job. Subscribers receive a snapshot of the
    job on every status change of every job.
    """

    def __init__(
        self,
        registry: PrinterRegistry,
        transport: BaseTransport,
        retention_seconds: float = 300.0,
    ) -> None:
        self.retention_seconds = retention_seconds
        self._registry = registry
        self._transport = transport
        self._jobs: dict[str, PrintJob] = {}  # job_id -> job for status tracking
        self._tasks: dict[str, asyncio.Task] = {}
        self._evictions: dict[str, asyncio.TimerHandle] = {}
        self._listeners: dict[int, JobListener] = {}
        self._listener_ids = count()
        self._stats: dict[str, PrinterStats] = {}

    def submit(self, target_class: str, content: PrintContent, printer_id: str | None = None) -> str:
        """Submit print content for every enabled printer of a class.

        Cash drawer kicks go to the first enabled printer of the class only.
        Must be called from within a running event loop.

        Args:
            target_class: Printer class that should receive the job.
            content: Receipt, label, image or cash drawer content.
            printer_id: Send to this one printer instead of the whole class.

        Returns:
            The new job's ID.
        """
        request = PrintRequest(target_class=target_class, content=content, printer_id=printer_id)
        job = PrintJob(request=request)
        job_id = str(job.id)

        self._jobs[job_id] = job
        destination = f"printer {printer_id!r}" if printer_id else f"class {target_class!r}"
        logger.info(f"Job {job_id} queued for {destination} ({content.kind})")
        self._notify(job)

        task = asyncio.get_running_loop().create_task(self._run(job), name=f"print-job-{job_id}")
        self._tasks[job_id] = task
        return job_id

    def subscribe(self, listener: JobListener) -> Callable[[], None]:
        """Register a callback for job status changes.

        Returns:
            A function that removes this subscription; calling it more than
            once has no further effect.
        """
        token = next(self._listener_ids)
        self._listeners[token] = listener
        logger.debug(f"Listener added (total: {len(self._listeners)})")

        def unsubscribe() -> None:
            if self._listeners.pop(token, None) is not None:
                logger.debug(f"Listener removed (total: {len(self._listeners)})")

        return unsubscribe

    def is_available(self, printer_class: str) -> bool:
        """Check if at least one enabled printer of a class is configured."""
        return self._registry.has_enabled_target(printer_class)

    def get_job(self, job_id: str) -> PrintJob | None:
        """Get a tracked job by ID (None once evicted)."""
        return self._jobs.get(job_id)

    async def wait(self, job_id: str) -> PrintJob:
        """Wait for a job to reach a terminal status.

        Raises:
            KeyError: If the job is unknown or already evicted.
        """
        job = self._jobs.get(job_id)
        if job is None:
            raise KeyError(job_id)
        task = self._tasks.get(job_id)
        if task is not None and not task.done():
            await asyncio.shield(task)
        return job

    def printer_stats(self, printer_id: str) -> PrinterStats:
        """Counters for a printer (zeroed if it has not been used)."""
        return self._stats.get(printer_id, PrinterStats()).model_copy()

    async def close(self) -> None:
        """Wait for in-flight jobs and drop all tracked jobs."""
        pending = [task for task in self._tasks.values() if not task.done()]
        if pending:
            logger.info(f"Waiting for {len(pending)} in-flight job(s)")
            await asyncio.gather(*pending, return_exceptions=True)
        for handle in self._evictions.values():
            handle.cancel()
        self._evictions.clear()
        self._tasks.clear()
        self._jobs.clear()

    async def _run(self, job: PrintJob) -> None:
        try:
            await self._process(job)
        except Exception as e:
            logger.exception(f"Job {job.id} crashed")
            if not job.is_terminal:
                job.error_message = f"Internal error: {e}"
                job.transition(JobStatus.FAILED)
                self._finish(job)

    async def _process(self, job: PrintJob) -> None:
        request = job.request
        await self._registry.load()
        if request.printer_id is not None:
            target = self._registry.get(request.printer_id)
            problem = _single_target_problem(target)
            if problem:
                logger.error(f"Job {job.id}: cannot print to {request.printer_id!r} - {problem}")
                self._fail(job, problem)
                return
            targets = [target]
        else:
            targets = self._registry.enabled_targets_for(request.target_class)
            if not targets:
                logger.error(f"Job {job.id}: no enabled printers for class {request.target_class!r}")
                self._fail(job, NO_PRINTER_CONFIGURED)
                return
            if isinstance(request.content, CashDrawerContent):
                # One drawer per till: kick only the first printer of the class
                targets = targets[:1]

        try:
            encoded = encode(request.content)
        except EncodingError as e:
            logger.error(f"Job {job.id}: encoding failed - {e}")
            self._fail(job, f"Encoding failed: {e}")
            return

        for warning in encoded.warnings:
            logger.warning(f"Job {job.id}: {warning}")
        job.warnings.extend(encoded.warnings)

        if not encoded.payload:
            self._fail(job, NOTHING_TO_PRINT)
            return

        job.transition(JobStatus.SENDING)
        logger.info(f"Job {job.id} sending {len(encoded.payload)} bytes to {len(targets)} printer(s)")
        self._notify(job)

        await asyncio.gather(*(self._send_one(job, target, encoded.payload) for target in targets))

        status = aggregate_status(job.target_results)
        if status != JobStatus.SUCCEEDED:
            names = {target.id: target.name for target in targets}
            job.error_message = "Failed printers: " + ", ".join(
                f"{names[printer_id]} ({job.target_results[printer_id].error})" for printer_id in job.failed_targets
            )
        job.transition(status)
        self._finish(job)

    async def _send_one(self, job: PrintJob, target: PrinterTarget, payload: bytes) -> None:
        try:
            result = await self._transport.send(target.address, target.port, payload)
            target_result = TargetResult(ok=result.ok, error=result.error)
        except Exception as e:
            # Transports report failures in their result; anything raised is a bug there
            logger.exception(f"Job {job.id}: transport raised for {target.id}")
            target_result = TargetResult(ok=False, error=str(e) or type(e).__name__)

        job.target_results[target.id] = target_result
        self._record(target, target_result)
        if target_result.ok:
            logger.info(f"Job {job.id}: {target.name} ({target.endpoint}) OK")
        else:
            logger.error(f"Job {job.id}: {target.name} ({target.endpoint}) {target_result.error}")

    def _record(self, target: PrinterTarget, result: TargetResult) -> None:
        stats = self._stats.setdefault(target.id, PrinterStats())
        stats.last_active_at = datetime.now()
        if result.ok:
            stats.jobs_completed += 1
            stats.last_error = None
        else:
            stats.jobs_failed += 1
            stats.last_error = result.error

    def _fail(self, job: PrintJob, reason: str) -> None:
        job.error_message = reason
        job.transition(JobStatus.FAILED)
        self._finish(job)

    def _finish(self, job: PrintJob) -> None:
        logger.info(f"Job {job.id} {job.status}" + (f": {job.error_message}" if job.error_message else ""))
        self._notify(job)
        self._schedule_eviction(str(job.id))

    def _schedule_eviction(self, job_id: str) -> None:
        loop = asyncio.get_running_loop()
        self._evictions[job_id] = loop.call_later(self.retention_seconds, self._evict, job_id)

    def _evict(self, job_id: str) -> None:
        self._evictions.pop(job_id, None)
        self._tasks.pop(job_id, None)
        if self._jobs.pop(job_id, None) is not None:
            logger.debug(f"Job {job_id} evicted")

    def _notify(self, job: PrintJob) -> None:
        snapshot = job.model_copy(deep=True)
        for listener in list(self._listeners.values()):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error(f"Listener error: {e}")
