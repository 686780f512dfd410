"""
Suggestion / correction generator.

Layers human-actionable remediation on top of a ComplianceResult. Strictly
read-only: the compliance result it is given is never modified.
"""

from dataclasses import dataclass
from loguru import logger

from ..models.compliance import (
    Annotation,
    ComplianceResult,
    Correction,
    Priority,
    Severity,
    ValidationError,
)
from ..models.entities import DocumentType, Entity, EntityType, entities_of, has_entity


SEVERITY_PRIORITY = {
    Severity.ERROR: Priority.HIGH,
    Severity.WARNING: Priority.MEDIUM,
    Severity.INFO: Priority.LOW,
}


@dataclass(frozen=True)
class Remedy:
    type: str
    field: str
    message: str
    suggestion: str
    example: str | None = None
    priority: Priority | None = None  # None = derive from check severity


# Known fixes for failed checks, keyed by check name
REMEDIES: dict[str, Remedy] = {
    "has_content": Remedy(
        "completion", "content",
        "Document text is missing or too short",
        "Re-scan or re-upload the full document so all pages are captured",
    ),
    "has_dates": Remedy(
        "format_field", "date",
        "No recognizable date found",
        "Add the document date in DD/MM/YYYY format",
        example="15/01/2024",
    ),
    "has_invoice_number": Remedy(
        "add_field", "invoice_number",
        "Invoice number is missing",
        "Add a unique invoice number labelled 'Invoice Number'",
        example="Invoice Number: INV-2024-001",
    ),
    "has_amounts": Remedy(
        "add_field", "amount",
        "Monetary amounts are missing",
        "State the invoice total with its currency",
        example="Total: USD 25,487.50",
    ),
    "has_parties": Remedy(
        "add_field", "parties",
        "Buyer/seller details are missing",
        "Name the shipper (exporter) and consignee (buyer) with addresses",
        example="Shipper: ABC Exports Pvt Ltd / Consignee: Global Imports LLC",
    ),
    "has_customs_declaration": Remedy(
        "compliance_fix", "customs_declaration",
        "Customs declaration details are missing",
        "Include the customs declaration and duty assessment section",
    ),
    "has_hs_codes": Remedy(
        "add_field", "hs_code",
        "HS codes are missing",
        "Declare an 8-digit HS code for every line item",
        example="6109.10.00",
        priority=Priority.HIGH,
    ),
    "has_items": Remedy(
        "add_field", "items",
        "Item descriptions are missing",
        "List every item with a clear product description",
    ),
    "has_quantities": Remedy(
        "add_field", "quantity",
        "Quantities are missing",
        "Give the quantity and unit for each item",
        example="Qty: 100 pieces",
    ),
}


class SuggestionGenerator:
    """Derives validation errors and prioritized corrections for a document"""

    def __init__(self, incomplete_threshold: int = 200):
        self.incomplete_threshold = incomplete_threshold

    def annotate(
        self,
        text: str | None,
        document_type,
        entities: list[Entity] | None,
        compliance: ComplianceResult,
    ) -> Annotation:
        text = text or ""
        entities = entities or []
        doc_type = DocumentType.parse(document_type)

        errors: list[ValidationError] = []
        corrections: list[Correction] = []

        for check in compliance.failed_checks:
            remedy = REMEDIES.get(check.name)
            errors.append(ValidationError(
                type="missing_field" if check.severity == Severity.ERROR else "incomplete_info",
                field=check.name,
                message=check.message,
                severity=check.severity,
                suggestion=remedy.suggestion if remedy else
                f"Please add the missing {check.name.replace('_', ' ')} information",
            ))
            if remedy:
                corrections.append(Correction(
                    type=remedy.type,
                    field=remedy.field,
                    message=remedy.message,
                    suggestion=remedy.suggestion,
                    example=remedy.example,
                    priority=remedy.priority or SEVERITY_PRIORITY[check.severity],
                ))

        errors.extend(self._entity_errors(doc_type, entities))
        corrections.extend(self._document_corrections(text, doc_type, entities))

        logger.debug(
            "Annotated document",
            document_type=doc_type.value,
            errors=len(errors),
            corrections=len(corrections),
        )
        return Annotation(errors=errors, corrections=corrections)

    @staticmethod
    def _entity_errors(doc_type: DocumentType, entities: list[Entity]) -> list[ValidationError]:
        errors = []
        if doc_type == DocumentType.INVOICE and not has_entity(entities, EntityType.AMOUNT):
            errors.append(ValidationError(
                type="missing_field",
                field="amount",
                message="Missing invoice amounts",
                suggestion="Include all monetary amounts with currency",
            ))
        if doc_type == DocumentType.BOE and not has_entity(entities, EntityType.HS_CODE):
            errors.append(ValidationError(
                type="missing_field",
                field="hs_code",
                message="Missing HS codes",
                suggestion="Add HS codes for all products",
            ))
        return errors

    def _document_corrections(self, text: str, doc_type: DocumentType, entities: list[Entity]) -> list[Correction]:
        corrections = []
        lowered = text.lower()

        products = entities_of(entities, EntityType.PRODUCT)
        if products and not has_entity(entities, EntityType.HS_CODE):
            names = ", ".join(p.value for p in products)
            corrections.append(Correction(
                type="hs_code",
                field="hs_code",
                message=f"No HS codes found for products: {names}",
                suggestion=f"Look up and add HS codes for products: {names}",
                example="8471.30.00",
                priority=Priority.HIGH,
            ))

        if doc_type == DocumentType.INVOICE and "gst" not in lowered:
            corrections.append(Correction(
                type="compliance_fix",
                field="gst",
                message="GST registration number not found",
                suggestion="Add GST registration number for tax compliance",
                example="GSTIN: 27AAPFU0939F1ZV",
                priority=Priority.HIGH,
            ))

        if doc_type == DocumentType.BOE and "origin" not in lowered:
            corrections.append(Correction(
                type="compliance_fix",
                field="country_of_origin",
                message="Country of origin not declared",
                suggestion="Include country of origin certificate",
                example="Country of Origin: India",
                priority=Priority.HIGH,
            ))

        if len(text) < self.incomplete_threshold:
            corrections.append(Correction(
                type="completion",
                field="content",
                message="Document appears incomplete",
                suggestion="Ensure all required fields are filled",
                priority=Priority.MEDIUM,
            ))

        return corrections


def annotate(
    text: str | None,
    document_type,
    entities: list[Entity] | None,
    compliance: ComplianceResult,
) -> Annotation:
    """Annotate with the configured incomplete-document threshold"""
    from ..core.config import settings

    return SuggestionGenerator(settings.incomplete_document_threshold).annotate(
        text, document_type, entities, compliance
    )
