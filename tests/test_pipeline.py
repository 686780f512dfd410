"""
End-to-end tests of the pipeline against scripted status providers
"""

import asyncio

import pytest
from doc_compliance.core.errors import (
    DocumentProcessingError,
    ProcessingTimeoutError,
    ReconciliationPreconditionError,
)
from doc_compliance.models.entities import DocumentType
from doc_compliance.models.jobs import DocumentJob, JobStatus, StatusSnapshot, TrackingOutcome, TrackingResult
from doc_compliance.models.reconciliation import OverallStatus
from doc_compliance.services.document_profile import classify_document_type, detect_language
from doc_compliance.services.lifecycle import DocumentLifecycleTracker
from doc_compliance.services.pipeline import DocumentCompliancePipeline, resolve_document_type

INVOICE_FIELDS = {
    "invoiceNumber": "INV-2024-001",
    "invoiceDate": "15/01/2024",
    "exporterName": "ABC Exports Pvt Ltd",
    "consigneeName": "Global Imports LLC",
    "totalValue": "USD 25,487.50",
    "currency": "USD",
    "portOfLoading": "Mumbai",
    "portOfDischarge": "New York",
    "hsCodes": ["6109.10.00", "8471.30.00", "INVALID"],
}

BOE_FIELDS = {
    "boeNumber": "BOE-2024-0012345",
    "invoiceNumber": "INV-2024-001",
    "invoiceDate": "15/01/2024",
    "exporterName": "ABC EXPORTS PVT LTD",
    "consigneeName": "Global Imports LLC",
    "totalValue": "USD 25,500.00",
    "currency": "USD",
    "portOfLoading": "INMAA",
    "portOfDischarge": "USNYC",
    "hsCodes": ["6109.10.00", "8471.30.00", "7306.30.00"],
    "countryOfOrigin": "India",
}


def make_pipeline(provider, timeout=2.0):
    tracker = DocumentLifecycleTracker(poll_interval=0.01, timeout=timeout)
    return DocumentCompliancePipeline(provider, single_tracker=tracker, dual_tracker=tracker)


def completed(job_id, **snapshot):
    return TrackingResult(
        job=DocumentJob(id=job_id, status=JobStatus.COMPLETED),
        outcome=TrackingOutcome.COMPLETED,
        snapshot=StatusSnapshot(status=JobStatus.COMPLETED, **snapshot),
    )


class TestAnalyzeDocument:
    """Single-document flow: track, evaluate, annotate"""

    def test_completed_invoice(self, scripted_provider, invoice_text):
        provider = scripted_provider({"job-1": [
            "uploading",
            {"status": "processing", "progress": 50},
            {
                "status": "completed",
                "documentType": "invoice",
                "extractedText": invoice_text,
                "entities": [{"type": "amount", "value": "$5,000.00", "confidence": 0.9, "position": {"start": 0, "end": 9}}],
                "structuredFields": {"invoiceNumber": "INV-001"},
            },
        ]})

        analysis = asyncio.run(make_pipeline(provider).analyze_document("job-1"))

        assert analysis.document_type == DocumentType.INVOICE
        assert analysis.compliance.score == 100
        assert analysis.compliance.is_valid
        assert analysis.errors == []
        assert analysis.corrections == []
        assert analysis.language == "en"
        assert analysis.extraction.invoice_number == "INV-001"

    def test_type_is_inferred_from_text(self, scripted_provider, boe_text):
        provider = scripted_provider({"job-1": [{"status": "completed", "extractedText": boe_text}]})

        analysis = asyncio.run(make_pipeline(provider).analyze_document("job-1"))

        assert analysis.document_type == DocumentType.BOE
        assert len(analysis.compliance.checks) == 4

    def test_explicit_type_wins(self, scripted_provider, boe_text):
        provider = scripted_provider({"job-1": [
            {"status": "completed", "documentType": "boe", "extractedText": boe_text},
        ]})

        analysis = asyncio.run(make_pipeline(provider).analyze_document("job-1", "packing_list"))

        assert analysis.document_type == DocumentType.PACKING_LIST

    def test_error_is_raised_not_scored(self, scripted_provider):
        provider = scripted_provider({"job-1": ["processing", {"status": "error", "errorMessage": "Corrupt PDF"}]})

        with pytest.raises(DocumentProcessingError, match="Corrupt PDF"):
            asyncio.run(make_pipeline(provider).analyze_document("job-1"))

    def test_timeout_is_raised(self, scripted_provider):
        provider = scripted_provider({"job-1": ["processing"]})

        with pytest.raises(ProcessingTimeoutError):
            asyncio.run(make_pipeline(provider, timeout=0.05).analyze_document("job-1"))

    def test_report_is_camel_case(self, scripted_provider, invoice_text):
        provider = scripted_provider({"job-1": [{"status": "completed", "extractedText": invoice_text}]})

        report = asyncio.run(make_pipeline(provider).analyze_document("job-1", "invoice")).to_report()

        assert report["jobId"] == "job-1"
        assert report["documentType"] == "invoice"
        assert report["compliance"]["isValid"] is True
        assert report["errors"][0]["field"] == "amount"


class TestReconcileJobs:
    """Dual-document flow: track both, join, reconcile"""

    def test_reconciles_completed_documents(self, scripted_provider):
        provider = scripted_provider({
            "inv-1": ["processing", {"status": "completed", "structuredFields": INVOICE_FIELDS}],
            "boe-1": ["processing", "processing", {"status": "completed", "structuredFields": BOE_FIELDS}],
        })
        progress = []

        comparison = asyncio.run(make_pipeline(provider).reconcile_jobs(
            "inv-1", "boe-1", lambda job, snap: progress.append(job.id)
        ))

        assert comparison.match_percentage == 75
        assert comparison.overall_status == OverallStatus.FAILED
        assert comparison.reference_number == "BOE-2024-0012345"
        assert set(progress) == {"inv-1", "boe-1"}

    def test_error_on_one_document_aborts(self, scripted_provider):
        provider = scripted_provider({
            "inv-1": [{"status": "error", "errorMessage": "Unreadable scan"}],
            "boe-1": ["processing"],
        })

        with pytest.raises(DocumentProcessingError) as exc:
            asyncio.run(make_pipeline(provider).reconcile_jobs("inv-1", "boe-1"))
        assert exc.value.job_id == "inv-1"

    def test_precondition_is_enforced(self):
        pipeline = DocumentCompliancePipeline(provider=None)
        failed = TrackingResult(
            job=DocumentJob(id="boe-1", status=JobStatus.ERROR),
            outcome=TrackingOutcome.ERROR,
            error_message="Unreadable scan",
        )

        with pytest.raises(ReconciliationPreconditionError):
            pipeline.reconcile_tracked(completed("inv-1", structuredFields=INVOICE_FIELDS), failed)

    def test_reconcile_tracked(self):
        pipeline = DocumentCompliancePipeline(provider=None)
        comparison = pipeline.reconcile_tracked(
            completed("inv-1", structuredFields=BOE_FIELDS),
            completed("boe-1", structuredFields=BOE_FIELDS),
        )
        assert comparison.overall_status == OverallStatus.PASSED


class TestDocumentProfile:
    def test_classify(self, invoice_text, boe_text):
        assert classify_document_type(invoice_text) == DocumentType.INVOICE
        assert classify_document_type(boe_text) == DocumentType.BOE
        assert classify_document_type("PACKING LIST\nCarton 1: 20 pcs, gross weight 12kg") == DocumentType.PACKING_LIST

    def test_weak_evidence_is_other(self):
        assert classify_document_type("Meeting notes from Tuesday") == DocumentType.OTHER
        assert classify_document_type("") == DocumentType.OTHER
        assert classify_document_type(None) == DocumentType.OTHER

    def test_language(self):
        assert detect_language("Commercial invoice") == "en"
        assert detect_language("Счёт-фактура") == "ru"
        assert detect_language(None) == "en"

    def test_backend_type_is_preferred(self, boe_text):
        result = completed("job-1", documentType="Invoice", extractedText=boe_text)
        assert resolve_document_type("auto", result) == DocumentType.INVOICE

    def test_unknown_backend_type_falls_back_to_text(self, boe_text):
        result = completed("job-1", documentType="scan", extractedText=boe_text)
        assert resolve_document_type(None, result) == DocumentType.BOE
