"""
Lifecycle models for documents tracked through the external processing backend.
"""

from datetime import datetime, UTC
from enum import Enum
from typing import Any
from pydantic import BaseModel, ConfigDict, Field

from .entities import Entity
from ..core.errors import (
    DocumentProcessingError,
    InvalidTransitionError,
    ProcessingTimeoutError,
)


class JobStatus(str, Enum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


_STATUS_RANK = {
    JobStatus.UPLOADING: 0,
    JobStatus.PROCESSING: 1,
    JobStatus.COMPLETED: 2,
    JobStatus.ERROR: 2,
}


class TrackingOutcome(str, Enum):
    COMPLETED = "completed"
    ERROR = "error"
    TIMEOUT = "timeout"


class StatusSnapshot(BaseModel):
    """One read of a document's state from the status provider"""
    model_config = ConfigDict(populate_by_name=True)

    status: JobStatus
    progress: int | None = None
    document_type: str | None = Field(default=None, alias="documentType")
    extracted_text: str | None = Field(default=None, alias="extractedText")
    entities: list[Entity] | None = None
    structured_fields: dict[str, Any] | None = Field(default=None, alias="structuredFields")
    error_message: str | None = Field(default=None, alias="errorMessage")


def _now() -> datetime:
    return datetime.now(UTC)


class DocumentJob(BaseModel):
    """
    Lifecycle record for one submitted document.

    Owned by exactly one tracking session. Status only moves forward;
    re-observing the same or an earlier status is a no-op, and terminal
    states are final.
    """

    id: str
    status: JobStatus = JobStatus.UPLOADING
    submitted_at: datetime = Field(default_factory=_now)
    terminal_at: datetime | None = None
    last_poll_at: datetime | None = None
    attempts: int = 0
    timed_out: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal or self.timed_out

    def record_poll(self) -> None:
        self.attempts += 1
        self.last_poll_at = _now()

    def observe(self, status: JobStatus) -> bool:
        """
        Apply an observed status.

        Returns True when the job moved to a new state. Raises
        InvalidTransitionError when the job is already terminal and the
        observation would change it.
        """
        if self.is_terminal:
            if status == self.status:
                return False
            raise InvalidTransitionError(
                f"Job {self.id} is terminal ({self.status.value}); cannot move to {status.value}"
            )
        if status.rank <= self.status.rank:
            return False
        self.status = status
        if status.is_terminal:
            self.terminal_at = _now()
        return True

    def mark_timed_out(self) -> None:
        if self.is_terminal:
            raise InvalidTransitionError(f"Job {self.id} is already terminal ({self.status.value})")
        self.timed_out = True
        self.terminal_at = _now()

    def mark_failed(self) -> None:
        """Transport-level failure ends the session with an error state"""
        if self.is_terminal:
            raise InvalidTransitionError(f"Job {self.id} is already terminal ({self.status.value})")
        self.status = JobStatus.ERROR
        self.terminal_at = _now()


class TrackingResult(BaseModel):
    """The single terminal outcome of a tracking session"""

    job: DocumentJob
    outcome: TrackingOutcome
    snapshot: StatusSnapshot | None = None
    error_message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == TrackingOutcome.COMPLETED

    def raise_for_outcome(self) -> "TrackingResult":
        if self.outcome == TrackingOutcome.TIMEOUT:
            raise ProcessingTimeoutError(
                self.error_message or f"Processing timeout for document {self.job.id}",
                job_id=self.job.id,
            )
        if self.outcome == TrackingOutcome.ERROR:
            raise DocumentProcessingError(
                self.error_message or f"Document processing failed for {self.job.id}",
                job_id=self.job.id,
            )
        return self
