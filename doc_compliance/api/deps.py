from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..models.compliance import ComplianceResult
from ..models.entities import Entity
from ..models.reconciliation import DocumentExtraction
from ..services.pipeline import DocumentCompliancePipeline
from ..services.status_provider import HttpStatusProvider


class CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class EvaluateRequest(CamelRequest):
    document_type: str = "other"
    text: str | None = ""
    entities: list[Entity] = []


class AnnotateRequest(EvaluateRequest):
    compliance: ComplianceResult | None = None  # Evaluated on the fly when omitted


class CompareRequest(CamelRequest):
    invoice: DocumentExtraction
    reference: DocumentExtraction


class StructuredCompareRequest(CamelRequest):
    """Raw backend structuredFields for both documents"""
    invoice_fields: dict = Field(default_factory=dict)
    reference_fields: dict = Field(default_factory=dict)


class ReconcileJobsRequest(CamelRequest):
    invoice_job_id: str
    reference_job_id: str


def get_pipeline() -> DocumentCompliancePipeline:
    """Pipeline wired to the configured document backend (overridable in tests)"""
    return DocumentCompliancePipeline(HttpStatusProvider())
