"""
Cross-document reconciliation (commercial invoice vs Bill of Entry).

Aligns the canonical fields of two finalized extractions, classifies each
as match / mismatch / missing and aggregates a match percentage and overall
status. Pure: no I/O, no retries. Callers must only pass extractions of
documents whose tracking completed successfully.
"""

from dataclasses import dataclass
from decimal import Decimal
from loguru import logger

from ..models.reconciliation import (
    BOEComparison,
    CanonicalField,
    DocumentExtraction,
    FieldComparison,
    FieldKind,
    FieldStatus,
    OverallStatus,
)
from .normalization import (
    fold,
    format_variance,
    hs_digits,
    is_missing,
    is_valid_hs_code,
    normalize_company,
    normalize_country,
    normalize_currency,
    normalize_identifier,
    parse_amount,
    parse_date,
    ports_match,
    rounded_percentage,
)

NOT_SPECIFIED = "Not specified"


@dataclass
class Verdict:
    matched: bool
    variance: str | None = None
    suggestion: str | None = None


@dataclass
class FieldPair:
    label: str
    kind: FieldKind | None  # None for fields outside the canonical set
    invoice_value: str | None
    reference_value: str | None
    required: bool


def _compare_identifier(inv: str, ref: str, reference_label: str) -> Verdict:
    if normalize_identifier(inv) == normalize_identifier(ref):
        return Verdict(True)
    return Verdict(False, suggestion=f"{reference_label} references a different invoice number - confirm the linked invoice")


def _compare_date(inv: str, ref: str, reference_label: str) -> Verdict:
    inv_date, ref_date = parse_date(inv), parse_date(ref)
    if inv_date and ref_date:
        matched = inv_date == ref_date
    else:
        matched = fold(inv) == fold(ref)
    if matched:
        return Verdict(True)
    return Verdict(False, suggestion=f"Invoice date differs from the date declared on the {reference_label}")


def _compare_party(inv: str, ref: str, reference_label: str) -> Verdict:
    if normalize_company(inv) == normalize_company(ref):
        return Verdict(True)
    return Verdict(False, suggestion=f"Update {reference_label} to match exact company name")


def _compare_amount(inv: str, ref: str, reference_label: str) -> Verdict:
    inv_amount, ref_amount = parse_amount(inv), parse_amount(ref)
    if inv_amount is None or ref_amount is None:
        if fold(inv) == fold(ref):
            return Verdict(True)
        return Verdict(False, suggestion="Total value could not be parsed - verify calculation")

    inv_currency, inv_value = inv_amount
    ref_currency, ref_value = ref_amount
    if inv_currency and ref_currency and inv_currency != ref_currency:
        return Verdict(False, suggestion=f"Totals are in different currencies ({inv_currency} vs {ref_currency}) - verify calculation")
    if inv_value == ref_value:
        return Verdict(True)

    difference = ref_value - inv_value
    variance = format_variance(difference, inv_currency or ref_currency)
    base = max(abs(inv_value), abs(ref_value))
    if base and abs(difference) / base < Decimal("0.01"):
        suggestion = "Minor variance in total value - verify calculation"
    else:
        suggestion = f"Total value differs by {variance} - verify calculation"
    return Verdict(False, variance=variance, suggestion=suggestion)


def _compare_currency(inv: str, ref: str, reference_label: str) -> Verdict:
    if normalize_currency(inv) == normalize_currency(ref):
        return Verdict(True)
    return Verdict(False, suggestion=f"Invoice and {reference_label} must declare the same currency")


def _compare_port(inv: str, ref: str, reference_label: str) -> Verdict:
    if fold(inv) == fold(ref):
        return Verdict(True)
    if ports_match(inv, ref):
        return Verdict(True, suggestion=f"Port codes match ({inv} = {ref})")
    return Verdict(False, suggestion=f"Port differs between invoice and {reference_label} - confirm routing")


def _compare_hs_code(inv: str, ref: str, reference_label: str) -> Verdict:
    inv_valid, ref_valid = is_valid_hs_code(inv), is_valid_hs_code(ref)
    if inv_valid and ref_valid and hs_digits(inv) == hs_digits(ref):
        return Verdict(True)
    if not inv_valid and ref_valid:
        suggestion = f"Invoice has invalid HS code, {reference_label} shows correct code"
    elif inv_valid and not ref_valid:
        suggestion = f"{reference_label} has invalid HS code, invoice shows correct code"
    elif not inv_valid and not ref_valid:
        suggestion = "Both documents have invalid HS codes - classify the item"
    else:
        suggestion = "HS classification differs - confirm the correct code with your customs broker"
    return Verdict(False, suggestion=suggestion)


def _compare_country(inv: str, ref: str, reference_label: str) -> Verdict:
    if normalize_country(inv) == normalize_country(ref):
        return Verdict(True)
    return Verdict(False, suggestion="Country of origin differs - verify the certificate of origin")


COMPARATORS = {
    FieldKind.IDENTIFIER: _compare_identifier,
    FieldKind.DATE: _compare_date,
    FieldKind.PARTY: _compare_party,
    FieldKind.AMOUNT: _compare_amount,
    FieldKind.CURRENCY: _compare_currency,
    FieldKind.PORT: _compare_port,
    FieldKind.HS_CODE: _compare_hs_code,
    FieldKind.COUNTRY: _compare_country,
}


def _describe(label: str) -> str:
    # "HS Code - Item 3" -> "HS code for item 3"
    if label.startswith("HS Code - Item "):
        return f"HS code for item {label.rsplit(' ', 1)[-1]}"
    return label if label.isupper() else label.lower()


class DocumentReconciler:
    """
    Field-by-field comparison of an invoice against a reference document.

    Args:
        reference_label: How the reference document is named in suggestions
        required_fields: Canonical fields whose absence fails the comparison
            (defaults to all canonical fields)
    """

    def __init__(self, reference_label: str = "BOE", required_fields: set[CanonicalField] | None = None):
        self.reference_label = reference_label
        self.required_fields = set(CanonicalField) if required_fields is None else set(required_fields)

    def pairs(self, invoice: DocumentExtraction, reference: DocumentExtraction) -> list[FieldPair]:
        pairs = []
        for field in CanonicalField:
            required = field in self.required_fields
            if field == CanonicalField.HS_CODES:
                count = max(len(invoice.hs_codes), len(reference.hs_codes), 1)
                for i in range(count):
                    pairs.append(FieldPair(
                        label=f"HS Code - Item {i + 1}",
                        kind=FieldKind.HS_CODE,
                        invoice_value=invoice.hs_codes[i] if i < len(invoice.hs_codes) else None,
                        reference_value=reference.hs_codes[i] if i < len(reference.hs_codes) else None,
                        required=required,
                    ))
                continue
            pairs.append(FieldPair(
                label=field.label,
                kind=field.kind,
                invoice_value=invoice.value_of(field),
                reference_value=reference.value_of(field),
                required=required,
            ))

        # Fields outside the canonical set are reported, never dropped
        for key in sorted(set(invoice.additional_fields) | set(reference.additional_fields)):
            pairs.append(FieldPair(
                label=key,
                kind=None,
                invoice_value=invoice.additional_fields.get(key),
                reference_value=reference.additional_fields.get(key),
                required=False,
            ))
        return pairs

    def compare_pair(self, pair: FieldPair) -> FieldComparison:
        inv_missing, ref_missing = is_missing(pair.invoice_value), is_missing(pair.reference_value)
        invoice_value = NOT_SPECIFIED if inv_missing else str(pair.invoice_value).strip()
        reference_value = NOT_SPECIFIED if ref_missing else str(pair.reference_value).strip()

        if inv_missing or ref_missing:
            if inv_missing and ref_missing:
                target = "both documents"
            elif inv_missing:
                target = "invoice"
            else:
                target = self.reference_label
            return FieldComparison(
                field=pair.label,
                invoice_value=invoice_value,
                reference_value=reference_value,
                status=FieldStatus.MISSING,
                suggestion=f"Add {_describe(pair.label)} to {target}",
            )

        if pair.kind is None:
            return FieldComparison(
                field=pair.label,
                invoice_value=invoice_value,
                reference_value=reference_value,
                status=FieldStatus.MISSING,
                suggestion=f"{pair.label} is not in the shared extraction schema - verify manually",
            )

        verdict = COMPARATORS[pair.kind](invoice_value, reference_value, self.reference_label)
        return FieldComparison(
            field=pair.label,
            invoice_value=invoice_value,
            reference_value=reference_value,
            status=FieldStatus.MATCH if verdict.matched else FieldStatus.MISMATCH,
            variance=verdict.variance,
            suggestion=verdict.suggestion,
        )

    def reconcile(self, invoice: DocumentExtraction, reference: DocumentExtraction) -> BOEComparison:
        pairs = self.pairs(invoice, reference)
        results = [self.compare_pair(p) for p in pairs]

        matches = sum(1 for r in results if r.status == FieldStatus.MATCH)
        percentage = rounded_percentage(matches, len(results))

        required_missing = any(
            r.status == FieldStatus.MISSING and p.required for p, r in zip(pairs, results)
        )
        if required_missing:
            overall = OverallStatus.FAILED
        elif any(r.status != FieldStatus.MATCH for r in results):
            overall = OverallStatus.WARNING
        else:
            overall = OverallStatus.PASSED

        comparison = BOEComparison(
            invoice_number=invoice.invoice_number or "N/A",
            reference_number=reference.document_number or "N/A",
            match_percentage=percentage,
            overall_status=overall,
            results=results,
            invoice_fields=invoice.field_count,
            reference_fields=reference.field_count,
        )

        logger.info(
            "Documents reconciled",
            invoice_number=comparison.invoice_number,
            reference_number=comparison.reference_number,
            match_percentage=percentage,
            overall_status=overall.value,
            compared=len(results),
        )
        return comparison


def reconcile_documents(
    invoice: DocumentExtraction,
    reference: DocumentExtraction,
    required_fields: set[CanonicalField] | None = None,
) -> BOEComparison:
    """Reconcile an invoice extraction against its Bill of Entry extraction"""
    return DocumentReconciler(required_fields=required_fields).reconcile(invoice, reference)
