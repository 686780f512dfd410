from fastapi import APIRouter, HTTPException
from loguru import logger

from ..deps import AnnotateRequest, EvaluateRequest
from ...services.rule_engine import create_rule_engine
from ...services.suggestions import annotate

router = APIRouter(prefix="/compliance", tags=["compliance"])


@router.post("/evaluate")
async def evaluate(req: EvaluateRequest):
    """
    Evaluate extracted document text against the compliance rules.

    Example request:
    {
        "documentType": "invoice",
        "text": "Invoice Number: INV-001 ... $5,000.00 ... 15/01/2024 ... Buyer: ABC",
        "entities": []
    }

    Example response:
    {
        "isValid": true,
        "score": 100,
        "checks": [{"name": "has_content", "passed": true, ...}, ...]
    }
    """
    logger.info(
        "Compliance evaluation request received",
        document_type=req.document_type,
        content_length=len(req.text) if req.text else 0,
        entity_count=len(req.entities),
    )
    result = create_rule_engine().evaluate(req.document_type, req.text, req.entities)
    return result.to_report()


@router.post("/annotate")
async def annotate_document(req: AnnotateRequest):
    """Return validation errors and prioritized corrections for a document"""
    compliance = req.compliance or create_rule_engine().evaluate(req.document_type, req.text, req.entities)
    try:
        annotation = annotate(req.text, req.document_type, req.entities, compliance)
    except Exception as e:
        logger.error(f"Annotation failed: {str(e)}")
        raise HTTPException(status_code=400, detail=str(e))
    return {"compliance": compliance.to_report(), **annotation.to_report()}
