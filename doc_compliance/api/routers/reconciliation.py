from fastapi import APIRouter, Depends, HTTPException
from loguru import logger

from ..deps import CompareRequest, ReconcileJobsRequest, StructuredCompareRequest, get_pipeline
from ...core.errors import DocumentProcessingError, ProcessingTimeoutError
from ...models.reconciliation import DocumentExtraction
from ...services.pipeline import DocumentCompliancePipeline
from ...services.reconciler import reconcile_documents

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@router.post("/compare")
async def compare(req: CompareRequest):
    """
    Compare an invoice extraction against its Bill of Entry extraction.

    Both extractions must come from documents that finished processing.
    """
    comparison = reconcile_documents(req.invoice, req.reference)
    return comparison.to_report()


@router.post("/compare/structured")
async def compare_structured(req: StructuredCompareRequest):
    """Compare two raw structuredFields payloads from the document backend"""
    comparison = reconcile_documents(
        DocumentExtraction.from_structured_fields(req.invoice_fields),
        DocumentExtraction.from_structured_fields(req.reference_fields),
    )
    return comparison.to_report()


@router.post("/jobs")
async def reconcile_jobs(req: ReconcileJobsRequest, pipeline: DocumentCompliancePipeline = Depends(get_pipeline)):
    """
    Wait for both documents to finish processing, then reconcile them.

    Fails fast if either document errors or times out.
    """
    logger.info(
        "Reconciliation request received",
        invoice_job_id=req.invoice_job_id,
        reference_job_id=req.reference_job_id,
    )
    try:
        comparison = await pipeline.reconcile_jobs(req.invoice_job_id, req.reference_job_id)
    except ProcessingTimeoutError as e:
        raise HTTPException(status_code=504, detail=str(e))
    except DocumentProcessingError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return comparison.to_report()
