from fastapi import APIRouter, Depends, HTTPException, Query
from loguru import logger

from ..deps import get_pipeline
from ...core.errors import DocumentProcessingError, ProcessingTimeoutError
from ...services.pipeline import DocumentCompliancePipeline

router = APIRouter(prefix="/documents", tags=["documents"])


@router.post("/{job_id}/analysis")
async def analyze_document(
    job_id: str,
    document_type: str = Query("auto", alias="documentType"),
    pipeline: DocumentCompliancePipeline = Depends(get_pipeline),
):
    """
    Track a submitted document until processing finishes, then evaluate it.

    Returns 502 if processing failed and 504 if it did not finish in time;
    either way no compliance verdict exists for the document.
    """
    try:
        analysis = await pipeline.analyze_document(job_id, document_type)
    except ProcessingTimeoutError as e:
        logger.warning(f"Analysis timed out for {job_id}: {e}")
        raise HTTPException(status_code=504, detail=str(e))
    except DocumentProcessingError as e:
        logger.warning(f"Analysis failed for {job_id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    return analysis.to_report()
