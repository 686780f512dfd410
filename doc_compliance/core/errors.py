"""
Exception types for the document compliance pipeline.

Tracking failures (backend error status, transport failure, timeout) all
derive from DocumentProcessingError so callers can handle them through one
channel, while ProcessingTimeoutError stays distinguishable when needed.
"""


class DocumentPipelineError(Exception):
    """Base class for all pipeline errors"""


class DocumentProcessingError(DocumentPipelineError):
    """A tracked document did not reach a successful terminal state"""

    def __init__(self, message: str, job_id: str | None = None):
        super().__init__(message)
        self.job_id = job_id


class ProcessingTimeoutError(DocumentProcessingError):
    """No terminal status arrived within the tracking bound"""

    def __init__(self, message: str, job_id: str | None = None, timeout: float | None = None):
        super().__init__(message, job_id=job_id)
        self.timeout = timeout


class InvalidTransitionError(DocumentPipelineError):
    """A job was asked to leave a terminal state"""


class ReconciliationPreconditionError(DocumentPipelineError):
    """Reconciliation was requested for documents that did not both complete"""
