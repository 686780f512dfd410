import httpx
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from ..core.config import settings
from ..models.entities import EntityType
from ..models.jobs import StatusSnapshot

# Document store payloads occasionally use these in place of our statuses
_STATUS_ALIASES = {
    "uploaded": "uploading",
    "pending": "uploading",
    "queued": "uploading",
    "running": "processing",
    "in_progress": "processing",
    "done": "completed",
    "succeeded": "completed",
    "failed": "error",
}


class StatusProviderError(Exception):
    """The document backend could not be reached or returned garbage"""


def _known_entities(entities):
    if entities is None:
        return None
    known = {t.value for t in EntityType}
    kept = [e for e in entities if isinstance(e, dict) and e.get("type") in known]
    if len(kept) != len(entities):
        logger.debug("Dropped entities of unknown type", dropped=len(entities) - len(kept))
    return kept


def snapshot_from_document(document: dict) -> StatusSnapshot:
    """Map a document store record to a StatusSnapshot"""
    status = str(document.get("status", "")).strip().lower()
    status = _STATUS_ALIASES.get(status, status)
    try:
        return StatusSnapshot.model_validate({
            "status": status,
            "progress": document.get("progress"),
            "documentType": document.get("documentType"),
            "extractedText": document.get("extractedText"),
            "entities": _known_entities(document.get("entities")),
            "structuredFields": document.get("structuredFields") or document.get("structuredData"),
            "errorMessage": document.get("errorMessage") or document.get("error"),
        })
    except PydanticValidationError as e:
        raise StatusProviderError(f"Unrecognized document payload: {e.errors()}") from e


class HttpStatusProvider:
    """
    Reads document status from the document processing backend.

    Calling the provider performs one GET /documents/{job_id}; it has no side
    effects on the job. Usable as the StatusProvider of a lifecycle tracker.
    """

    def __init__(
        self,
        base_url: str = None,
        token: str | None = None,
        timeout: float = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url or settings.document_api_base_url).rstrip("/")
        self.token = token if token is not None else settings.document_api_token
        self.timeout = timeout if timeout is not None else settings.document_api_timeout
        self._client = client

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    async def __call__(self, job_id: str) -> StatusSnapshot:
        url = f"{self.base_url}/documents/{job_id}"
        try:
            if self._client is not None:
                r = await self._client.get(url, headers=self._headers())
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    r = await client.get(url, headers=self._headers())
            r.raise_for_status()
            body = r.json()
        except httpx.HTTPError as e:
            raise StatusProviderError(f"Status request for {job_id} failed: {e}") from e
        except ValueError as e:
            raise StatusProviderError(f"Status response for {job_id} is not JSON") from e

        if isinstance(body, dict) and body.get("success") is False:
            raise StatusProviderError(body.get("message") or body.get("error") or "Backend reported failure")

        document = body.get("document", body) if isinstance(body, dict) else None
        if not isinstance(document, dict):
            raise StatusProviderError(f"Status response for {job_id} has no document")

        snapshot = snapshot_from_document(document)
        logger.debug("Polled document status", job_id=job_id, status=snapshot.status.value)
        return snapshot
