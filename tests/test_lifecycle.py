"""
Tests for document lifecycle tracking: polling, timeout, cancellation and
the fail-fast join of two concurrent sessions.
"""

import asyncio

import pytest
from doc_compliance.core.errors import (
    DocumentProcessingError,
    InvalidTransitionError,
    ProcessingTimeoutError,
)
from doc_compliance.models.jobs import DocumentJob, JobStatus, TrackingOutcome
from doc_compliance.services.lifecycle import DocumentLifecycleTracker, create_tracker


def fast_tracker(timeout=2.0):
    return DocumentLifecycleTracker(poll_interval=0.01, timeout=timeout)


class TestDocumentJob:
    """Tests for the job state machine"""

    def test_moves_forward(self):
        job = DocumentJob(id="job-1")
        assert job.observe(JobStatus.PROCESSING) is True
        assert job.observe(JobStatus.COMPLETED) is True
        assert job.terminal_at is not None

    def test_repeated_status_is_noop(self):
        job = DocumentJob(id="job-1")
        job.observe(JobStatus.PROCESSING)
        assert job.observe(JobStatus.PROCESSING) is False
        assert job.status == JobStatus.PROCESSING

    def test_regression_is_ignored(self):
        job = DocumentJob(id="job-1")
        job.observe(JobStatus.PROCESSING)
        assert job.observe(JobStatus.UPLOADING) is False
        assert job.status == JobStatus.PROCESSING

    def test_terminal_state_is_final(self):
        job = DocumentJob(id="job-1")
        job.observe(JobStatus.COMPLETED)
        assert job.observe(JobStatus.COMPLETED) is False
        with pytest.raises(InvalidTransitionError):
            job.observe(JobStatus.ERROR)
        with pytest.raises(InvalidTransitionError):
            job.mark_timed_out()

    def test_direct_jump_to_terminal(self):
        job = DocumentJob(id="job-1")
        assert job.observe(JobStatus.ERROR) is True
        assert job.is_terminal


class TestTrack:
    """Tests for a single tracking session"""

    def test_completes(self, scripted_provider):
        provider = scripted_provider({"job-1": [
            "uploading",
            "processing",
            {"status": "completed", "extractedText": "Invoice text", "documentType": "invoice"},
        ]})
        seen = []

        result = asyncio.run(fast_tracker().track(
            "job-1", provider, lambda job, snap: seen.append(snap.status)
        ))

        assert result.outcome == TrackingOutcome.COMPLETED
        assert result.succeeded
        assert result.snapshot.extracted_text == "Invoice text"
        assert result.job.status == JobStatus.COMPLETED
        assert result.job.attempts == 3
        assert seen == [JobStatus.UPLOADING, JobStatus.PROCESSING, JobStatus.COMPLETED]

    def test_polls_immediately(self, scripted_provider):
        provider = scripted_provider({"job-1": ["completed"]})
        tracker = DocumentLifecycleTracker(poll_interval=60, timeout=5)

        result = asyncio.run(tracker.track("job-1", provider))

        assert result.outcome == TrackingOutcome.COMPLETED
        assert provider.calls["job-1"] == 1

    def test_backend_error(self, scripted_provider):
        provider = scripted_provider({"job-1": [
            "processing",
            {"status": "error", "errorMessage": "OCR failed"},
        ]})

        result = asyncio.run(fast_tracker().track("job-1", provider))

        assert result.outcome == TrackingOutcome.ERROR
        assert result.error_message == "OCR failed"
        assert result.job.status == JobStatus.ERROR
        with pytest.raises(DocumentProcessingError) as exc:
            result.raise_for_outcome()
        assert not isinstance(exc.value, ProcessingTimeoutError)
        assert exc.value.job_id == "job-1"

    def test_timeout(self, scripted_provider):
        """A job that never leaves processing times out with its own outcome"""
        provider = scripted_provider({"job-1": ["processing"]})

        result = asyncio.run(fast_tracker(timeout=0.1).track("job-1", provider))

        assert result.outcome == TrackingOutcome.TIMEOUT
        assert result.job.timed_out is True
        assert result.job.status == JobStatus.PROCESSING
        assert result.error_message == "Processing timeout after 0.1s"
        assert result.job.attempts >= 2
        with pytest.raises(ProcessingTimeoutError):
            result.raise_for_outcome()

    def test_no_polls_after_timeout(self, scripted_provider):
        provider = scripted_provider({"job-1": ["processing"]})

        async def run():
            await fast_tracker(timeout=0.05).track("job-1", provider)
            calls = provider.calls["job-1"]
            await asyncio.sleep(0.05)
            return calls

        calls = asyncio.run(run())
        assert provider.calls["job-1"] == calls

    def test_out_of_order_status_is_ignored(self, scripted_provider):
        provider = scripted_provider({"job-1": ["processing", "uploading", "processing", "completed"]})
        seen = []

        result = asyncio.run(fast_tracker().track(
            "job-1", provider, lambda job, snap: seen.append((snap.status, job.status))
        ))

        assert result.outcome == TrackingOutcome.COMPLETED
        assert (JobStatus.UPLOADING, JobStatus.PROCESSING) not in seen
        assert [s for s, _ in seen] == [JobStatus.PROCESSING, JobStatus.PROCESSING, JobStatus.COMPLETED]

    def test_transport_failure_ends_with_error(self, scripted_provider):
        provider = scripted_provider({"job-1": ["processing", ConnectionError("backend down")]})

        result = asyncio.run(fast_tracker().track("job-1", provider))

        assert result.outcome == TrackingOutcome.ERROR
        assert "backend down" in result.error_message
        assert result.job.status == JobStatus.ERROR
        assert provider.calls["job-1"] == 2

    def test_async_callback(self, scripted_provider):
        provider = scripted_provider({"job-1": ["processing", "completed"]})
        seen = []

        async def on_snapshot(job, snapshot):
            await asyncio.sleep(0)
            seen.append(snapshot.status)

        result = asyncio.run(fast_tracker().track("job-1", provider, on_snapshot))

        assert result.succeeded
        assert seen == [JobStatus.PROCESSING, JobStatus.COMPLETED]

    def test_callback_timeout_error_is_not_a_tracking_timeout(self, scripted_provider):
        """Only the tracking bound expiring produces a timeout outcome"""
        provider = scripted_provider({"job-1": ["processing"]})

        def on_snapshot(job, snapshot):
            raise TimeoutError("ui socket timed out")

        result = asyncio.run(fast_tracker(timeout=10).track("job-1", provider, on_snapshot))

        assert result.outcome == TrackingOutcome.ERROR
        assert result.job.timed_out is False
        assert result.job.status == JobStatus.ERROR
        assert result.error_message == "Progress callback failed: ui socket timed out"
        assert provider.calls["job-1"] == 1

    def test_callback_failure_after_completion(self, scripted_provider):
        provider = scripted_provider({"job-1": ["completed"]})

        async def on_snapshot(job, snapshot):
            raise RuntimeError("progress sink closed")

        result = asyncio.run(fast_tracker().track("job-1", provider, on_snapshot))

        assert result.outcome == TrackingOutcome.ERROR
        assert result.snapshot.status == JobStatus.COMPLETED
        with pytest.raises(DocumentProcessingError, match="progress sink closed"):
            result.raise_for_outcome()

    def test_cancellation_stops_polling(self, scripted_provider):
        provider = scripted_provider({"job-1": ["processing"]})

        async def run():
            task = asyncio.create_task(fast_tracker(timeout=10).track("job-1", provider))
            await asyncio.sleep(0.05)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            calls = provider.calls["job-1"]
            await asyncio.sleep(0.05)
            return calls

        calls = asyncio.run(run())
        assert calls > 0
        assert provider.calls["job-1"] == calls


class TestTrackPair:
    """Tests for tracking an invoice and a Bill of Entry together"""

    def test_both_complete(self, scripted_provider):
        provider = scripted_provider({
            "inv-1": ["processing", {"status": "completed", "structuredFields": {"invoiceNumber": "INV-1"}}],
            "boe-1": ["processing", "processing", {"status": "completed"}],
        })

        invoice, reference = asyncio.run(fast_tracker().track_pair("inv-1", "boe-1", provider))

        assert invoice.job.id == "inv-1"
        assert reference.job.id == "boe-1"
        assert invoice.succeeded and reference.succeeded
        assert invoice.snapshot.structured_fields == {"invoiceNumber": "INV-1"}

    def test_fails_fast_on_error(self, scripted_provider):
        """An error on one document cancels the other session and is raised"""
        provider = scripted_provider({
            "inv-1": ["processing"],
            "boe-1": ["processing", {"status": "error", "errorMessage": "Unreadable scan"}],
        })

        async def run():
            with pytest.raises(DocumentProcessingError) as exc:
                await fast_tracker(timeout=10).track_pair("inv-1", "boe-1", provider)
            calls = provider.calls["inv-1"]
            await asyncio.sleep(0.05)
            return exc.value, calls

        error, calls = asyncio.run(run())
        assert error.job_id == "boe-1"
        assert str(error) == "Unreadable scan"
        assert not isinstance(error, ProcessingTimeoutError)
        assert provider.calls["inv-1"] == calls

    def test_timeout_is_raised_as_timeout(self, scripted_provider):
        provider = scripted_provider({
            "inv-1": ["completed"],
            "boe-1": ["processing"],
        })

        with pytest.raises(ProcessingTimeoutError) as exc:
            asyncio.run(fast_tracker(timeout=0.1).track_pair("inv-1", "boe-1", provider))
        assert exc.value.job_id == "boe-1"


class TestFactory:
    def test_validates_arguments(self):
        with pytest.raises(ValueError):
            DocumentLifecycleTracker(poll_interval=0)
        with pytest.raises(ValueError):
            DocumentLifecycleTracker(timeout=-1)

    def test_configured_bounds(self):
        assert create_tracker().timeout == 120
        assert create_tracker(dual=True).timeout == 300
        assert create_tracker().poll_interval == 2
        assert create_tracker(timeout=5, poll_interval=0.5).timeout == 5
