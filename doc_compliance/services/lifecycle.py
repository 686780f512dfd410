"""
Document lifecycle tracking.

A tracking session polls the external status provider for one document
until it reaches a terminal state (completed / error) or the wall-clock
bound elapses (timeout). Each session owns its DocumentJob exclusively and
resolves with exactly one TrackingResult. Cancelling the task running
track() stops polling immediately.
"""

import asyncio
import inspect
from typing import Awaitable, Callable
from loguru import logger

from ..models.jobs import DocumentJob, JobStatus, StatusSnapshot, TrackingOutcome, TrackingResult

StatusProvider = Callable[[str], Awaitable[StatusSnapshot]]
SnapshotCallback = Callable[[DocumentJob, StatusSnapshot], object]


class DocumentLifecycleTracker:
    """
    Polls a status provider until a document reaches a terminal state.

    Policy:
    - poll immediately, then every poll_interval seconds
    - each poll is one idempotent read; failures at the transport level end
      the session with an error outcome (no retry)
    - repeated or out-of-order statuses are tolerated; the job never moves
      backwards
    - a session that sees no terminal status within timeout seconds ends
      with a timeout outcome
    - a progress callback that raises ends the session with an error outcome
    """

    def __init__(self, poll_interval: float = 2.0, timeout: float = 120.0):
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        self.poll_interval = poll_interval
        self.timeout = timeout

    async def track(
        self,
        job_id: str,
        provider: StatusProvider,
        on_snapshot: SnapshotCallback | None = None,
    ) -> TrackingResult:
        """
        Track one document to its terminal outcome.

        Args:
            job_id: Identifier returned by the submission trigger
            provider: Async callable returning the current StatusSnapshot
            on_snapshot: Optional progress callback (sync or async), called
                with the job and each accepted snapshot

        Returns:
            TrackingResult with outcome completed, error or timeout
        """
        job = DocumentJob(id=job_id)
        logger.info("Tracking document", job_id=job_id, timeout=self.timeout, interval=self.poll_interval)

        try:
            async with asyncio.timeout(self.timeout) as bound:
                result = await self._poll_until_terminal(job, provider, on_snapshot)
        except TimeoutError:
            if not bound.expired():
                raise
            if job.status.is_terminal:
                # Bound elapsed inside the final progress callback
                outcome = TrackingOutcome.COMPLETED if job.status == JobStatus.COMPLETED else TrackingOutcome.ERROR
                return TrackingResult(job=job, outcome=outcome)
            job.mark_timed_out()
            logger.warning("Document tracking timed out", job_id=job_id, attempts=job.attempts)
            return TrackingResult(
                job=job,
                outcome=TrackingOutcome.TIMEOUT,
                error_message=f"Processing timeout after {self.timeout:g}s",
            )

        logger.info(
            "Document tracking finished",
            job_id=job_id,
            outcome=result.outcome.value,
            attempts=job.attempts,
        )
        return result

    async def _poll_until_terminal(
        self,
        job: DocumentJob,
        provider: StatusProvider,
        on_snapshot: SnapshotCallback | None,
    ) -> TrackingResult:
        while True:
            job.record_poll()
            try:
                snapshot = await provider(job.id)
            except Exception as e:
                logger.error(f"Status poll failed for {job.id}: {e!r}")
                job.mark_failed()
                return TrackingResult(
                    job=job,
                    outcome=TrackingOutcome.ERROR,
                    error_message=f"Status poll failed: {e}",
                )

            previous = job.status
            job.observe(snapshot.status)
            if snapshot.status.rank < previous.rank:
                logger.debug(
                    "Ignoring out-of-order status",
                    job_id=job.id,
                    current=previous.value,
                    observed=snapshot.status.value,
                )
            elif on_snapshot is not None:
                try:
                    maybe = on_snapshot(job, snapshot)
                    if inspect.isawaitable(maybe):
                        await maybe
                except Exception as e:
                    logger.error(f"Progress callback failed for {job.id}: {e!r}")
                    if not job.is_terminal:
                        job.mark_failed()
                    return TrackingResult(
                        job=job,
                        outcome=TrackingOutcome.ERROR,
                        snapshot=snapshot,
                        error_message=f"Progress callback failed: {e}",
                    )

            if job.status == JobStatus.COMPLETED:
                return TrackingResult(job=job, outcome=TrackingOutcome.COMPLETED, snapshot=snapshot)
            if job.status == JobStatus.ERROR:
                return TrackingResult(
                    job=job,
                    outcome=TrackingOutcome.ERROR,
                    snapshot=snapshot,
                    error_message=snapshot.error_message or "Document processing failed",
                )

            await asyncio.sleep(self.poll_interval)

    async def track_pair(
        self,
        invoice_job_id: str,
        reference_job_id: str,
        provider: StatusProvider,
        on_snapshot: SnapshotCallback | None = None,
    ) -> tuple[TrackingResult, TrackingResult]:
        """
        Track two documents concurrently and join on both.

        Fails fast: as soon as either session ends in error or timeout the
        other is cancelled and the failure is raised as
        DocumentProcessingError (ProcessingTimeoutError for timeouts).
        """
        invoice_task = asyncio.create_task(self.track(invoice_job_id, provider, on_snapshot))
        reference_task = asyncio.create_task(self.track(reference_job_id, provider, on_snapshot))
        tasks = (invoice_task, reference_task)

        try:
            pending = set(tasks)
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    result = task.result()
                    if not result.succeeded:
                        logger.warning(
                            "Paired tracking failed",
                            job_id=result.job.id,
                            outcome=result.outcome.value,
                        )
                        result.raise_for_outcome()
            return invoice_task.result(), reference_task.result()
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)


def create_tracker(timeout: float = None, poll_interval: float = None, dual: bool = False) -> DocumentLifecycleTracker:
    """
    Factory for a tracker using configured defaults.

    dual selects the two-document bound instead of the single-document one.
    """
    from ..core.config import settings

    if timeout is None:
        timeout = settings.dual_document_timeout_seconds if dual else settings.single_document_timeout_seconds
    return DocumentLifecycleTracker(
        poll_interval=poll_interval if poll_interval is not None else settings.poll_interval_seconds,
        timeout=timeout,
    )
