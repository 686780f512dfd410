"""
Orchestration of the document compliance pipeline.

Single document:  track -> evaluate compliance -> annotate
Dual document:    track both concurrently -> join (fail fast) -> reconcile

Tracking failures are raised as DocumentProcessingError (ProcessingTimeoutError
for timeouts) and are never converted into empty-but-successful results.
"""

from loguru import logger

from ..core.errors import ReconciliationPreconditionError
from ..models.compliance import Annotation, ComplianceResult, Correction, ReportModel, ValidationError
from ..models.entities import DocumentType, Entity
from ..models.jobs import TrackingResult
from ..models.reconciliation import BOEComparison, DocumentExtraction
from .document_profile import classify_document_type, detect_language
from .lifecycle import DocumentLifecycleTracker, SnapshotCallback, StatusProvider, create_tracker
from .reconciler import DocumentReconciler
from .rule_engine import ComplianceRuleEngine, create_rule_engine
from .suggestions import SuggestionGenerator


class DocumentAnalysis(ReportModel):
    """Compliance analysis of one successfully processed document"""
    job_id: str
    document_type: DocumentType
    language: str
    extracted_text: str
    entities: list[Entity] = []
    compliance: ComplianceResult
    errors: list[ValidationError] = []
    corrections: list[Correction] = []
    extraction: DocumentExtraction

    @classmethod
    def build(cls, job_id: str, document_type: DocumentType, text: str, entities: list[Entity],
              compliance: ComplianceResult, annotation: Annotation, extraction: DocumentExtraction):
        return cls(
            job_id=job_id,
            document_type=document_type,
            language=detect_language(text),
            extracted_text=text,
            entities=entities,
            compliance=compliance,
            errors=annotation.errors,
            corrections=annotation.corrections,
            extraction=extraction,
        )


def resolve_document_type(requested, result: TrackingResult) -> DocumentType:
    """Explicit type, else what the backend reported, else text heuristics"""
    if requested and str(requested).lower() != "auto":
        return DocumentType.parse(requested)
    snapshot = result.snapshot
    if snapshot and snapshot.document_type:
        reported = DocumentType.parse(snapshot.document_type)
        if reported != DocumentType.OTHER:
            return reported
    return classify_document_type(snapshot.extracted_text if snapshot else None)


def extraction_of(result: TrackingResult) -> DocumentExtraction:
    snapshot = result.snapshot
    return DocumentExtraction.from_structured_fields(snapshot.structured_fields if snapshot else None)


class DocumentCompliancePipeline:
    """
    Ties the lifecycle tracker, rule engine, suggestion generator and
    reconciler together for one status provider.
    """

    def __init__(
        self,
        provider: StatusProvider,
        single_tracker: DocumentLifecycleTracker | None = None,
        dual_tracker: DocumentLifecycleTracker | None = None,
        rule_engine: ComplianceRuleEngine | None = None,
        suggestions: SuggestionGenerator | None = None,
        reconciler: DocumentReconciler | None = None,
    ):
        from ..core.config import settings

        self.provider = provider
        self.single_tracker = single_tracker or create_tracker()
        self.dual_tracker = dual_tracker or create_tracker(dual=True)
        self.rule_engine = rule_engine or create_rule_engine()
        self.suggestions = suggestions or SuggestionGenerator(settings.incomplete_document_threshold)
        self.reconciler = reconciler or DocumentReconciler()

    def analyze_result(self, result: TrackingResult, document_type="auto") -> DocumentAnalysis:
        """Evaluate and annotate an already tracked document"""
        result.raise_for_outcome()
        snapshot = result.snapshot
        text = (snapshot.extracted_text if snapshot else None) or ""
        entities = (snapshot.entities if snapshot else None) or []
        doc_type = resolve_document_type(document_type, result)

        compliance = self.rule_engine.evaluate(doc_type, text, entities)
        annotation = self.suggestions.annotate(text, doc_type, entities, compliance)
        return DocumentAnalysis.build(
            result.job.id, doc_type, text, entities, compliance, annotation, extraction_of(result)
        )

    async def analyze_document(
        self,
        job_id: str,
        document_type="auto",
        on_snapshot: SnapshotCallback | None = None,
    ) -> DocumentAnalysis:
        result = await self.single_tracker.track(job_id, self.provider, on_snapshot)
        analysis = self.analyze_result(result, document_type)
        logger.info(
            "Document analyzed",
            job_id=job_id,
            document_type=analysis.document_type.value,
            score=analysis.compliance.score,
            is_valid=analysis.compliance.is_valid,
        )
        return analysis

    def reconcile_tracked(self, invoice_result: TrackingResult, reference_result: TrackingResult) -> BOEComparison:
        """Reconcile two tracking results; both must have completed successfully"""
        for role, result in (("invoice", invoice_result), ("reference", reference_result)):
            if not result.succeeded:
                raise ReconciliationPreconditionError(
                    f"Cannot reconcile: {role} document {result.job.id} ended with {result.outcome.value}"
                )
        return self.reconciler.reconcile(extraction_of(invoice_result), extraction_of(reference_result))

    async def reconcile_jobs(
        self,
        invoice_job_id: str,
        reference_job_id: str,
        on_snapshot: SnapshotCallback | None = None,
    ) -> BOEComparison:
        invoice_result, reference_result = await self.dual_tracker.track_pair(
            invoice_job_id, reference_job_id, self.provider, on_snapshot
        )
        return self.reconcile_tracked(invoice_result, reference_result)
