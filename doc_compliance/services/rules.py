"""
Declarative compliance rule tables.

Each document type gets the base rules followed by its own type-specific
rules. Order matters: checks are reported (and scored) in declaration order.
"""

import re
from dataclasses import dataclass
from typing import Callable

from ..models.compliance import Severity
from ..models.entities import DocumentType


@dataclass(frozen=True)
class Rule:
    name: str
    predicate: Callable[[str], bool]
    success_message: str
    error_message: str
    severity: Severity


def pattern_rule(name: str, pattern: str, success_message: str, error_message: str,
                 severity: Severity, flags: int = 0) -> Rule:
    """Build a rule that passes when the regex matches anywhere in the text"""
    regex = re.compile(pattern, flags)
    return Rule(
        name=name,
        predicate=lambda text: regex.search(text) is not None,
        success_message=success_message,
        error_message=error_message,
        severity=severity,
    )


DATE_PATTERN = r"\d{1,2}[/\-]\d{1,2}[/\-]\d{2,4}"
INVOICE_NUMBER_PATTERN = r"invoice.*number|inv.*#|bill.*number"
AMOUNT_PATTERN = r"\$[\d,]+\.?\d*|\d+\.?\d*\s*(USD|INR|EUR)"
PARTY_PATTERN = r"(buyer|seller|consignee|shipper)"
CUSTOMS_PATTERN = r"customs|declaration|duty"
HS_CODE_PATTERN = r"\d{4}\.\d{2}\.\d{2}"
ITEM_PATTERN = r"item|product|description"
QUANTITY_PATTERN = r"quantity|qty|pieces|units"


def build_base_rules(min_content_length: int = 50) -> tuple[Rule, ...]:
    return (
        Rule(
            name="has_content",
            predicate=lambda text: len(text) > min_content_length,
            success_message="Document has sufficient content",
            error_message="Document appears to be empty or incomplete",
            severity=Severity.ERROR,
        ),
        pattern_rule(
            "has_dates", DATE_PATTERN,
            "Document contains dates", "Document missing date information",
            Severity.WARNING,
        ),
    )


BASE_RULES = build_base_rules()

TYPE_SPECIFIC_RULES: dict[DocumentType, tuple[Rule, ...]] = {
    DocumentType.INVOICE: (
        pattern_rule(
            "has_invoice_number", INVOICE_NUMBER_PATTERN,
            "Invoice number found", "Missing invoice number",
            Severity.ERROR, re.IGNORECASE,
        ),
        pattern_rule(
            "has_amounts", AMOUNT_PATTERN,
            "Monetary amounts found", "Missing monetary amounts",
            Severity.ERROR, re.IGNORECASE,
        ),
        pattern_rule(
            "has_parties", PARTY_PATTERN,
            "Party information found", "Missing party information",
            Severity.WARNING, re.IGNORECASE,
        ),
    ),
    DocumentType.BOE: (
        pattern_rule(
            "has_customs_declaration", CUSTOMS_PATTERN,
            "Customs declaration found", "Missing customs declaration",
            Severity.ERROR, re.IGNORECASE,
        ),
        pattern_rule(
            "has_hs_codes", HS_CODE_PATTERN,
            "HS codes found", "Missing HS codes",
            Severity.ERROR,
        ),
    ),
    DocumentType.PACKING_LIST: (
        pattern_rule(
            "has_items", ITEM_PATTERN,
            "Item descriptions found", "Missing item descriptions",
            Severity.ERROR, re.IGNORECASE,
        ),
        pattern_rule(
            "has_quantities", QUANTITY_PATTERN,
            "Quantity information found", "Missing quantity information",
            Severity.WARNING, re.IGNORECASE,
        ),
    ),
}


def get_rules(document_type: DocumentType, base_rules: tuple[Rule, ...] = BASE_RULES) -> list[Rule]:
    """Base rules plus the type-specific rules (unknown types get base rules only)"""
    return [*base_rules, *TYPE_SPECIFIC_RULES.get(document_type, ())]
