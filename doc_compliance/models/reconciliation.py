"""
Models for cross-document reconciliation (commercial invoice vs Bill of Entry).
"""

from enum import Enum
from typing import Any
from loguru import logger
from pydantic import BaseModel, Field

from .compliance import ReportModel


class FieldStatus(str, Enum):
    MATCH = "match"
    MISMATCH = "mismatch"
    MISSING = "missing"


class OverallStatus(str, Enum):
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"


class FieldKind(str, Enum):
    """How values of a canonical field are normalized and compared"""
    IDENTIFIER = "identifier"
    DATE = "date"
    PARTY = "party"
    AMOUNT = "amount"
    CURRENCY = "currency"
    PORT = "port"
    HS_CODE = "hs_code"
    COUNTRY = "country"


class CanonicalField(str, Enum):
    """Fields both extraction schemas agree on, in report order"""
    INVOICE_NUMBER = "invoice_number"
    INVOICE_DATE = "invoice_date"
    EXPORTER_NAME = "exporter_name"
    CONSIGNEE_NAME = "consignee_name"
    TOTAL_VALUE = "total_value"
    CURRENCY = "currency"
    PORT_OF_LOADING = "port_of_loading"
    PORT_OF_DISCHARGE = "port_of_discharge"
    HS_CODES = "hs_codes"
    COUNTRY_OF_ORIGIN = "country_of_origin"

    @property
    def label(self) -> str:
        return _FIELD_LABELS[self]

    @property
    def kind(self) -> FieldKind:
        return _FIELD_KINDS[self]


_FIELD_LABELS = {
    CanonicalField.INVOICE_NUMBER: "Invoice Number",
    CanonicalField.INVOICE_DATE: "Invoice Date",
    CanonicalField.EXPORTER_NAME: "Exporter Name",
    CanonicalField.CONSIGNEE_NAME: "Consignee",
    CanonicalField.TOTAL_VALUE: "Total Invoice Value",
    CanonicalField.CURRENCY: "Currency",
    CanonicalField.PORT_OF_LOADING: "Port of Loading",
    CanonicalField.PORT_OF_DISCHARGE: "Port of Discharge",
    CanonicalField.HS_CODES: "HS Code",
    CanonicalField.COUNTRY_OF_ORIGIN: "Country of Origin",
}

_FIELD_KINDS = {
    CanonicalField.INVOICE_NUMBER: FieldKind.IDENTIFIER,
    CanonicalField.INVOICE_DATE: FieldKind.DATE,
    CanonicalField.EXPORTER_NAME: FieldKind.PARTY,
    CanonicalField.CONSIGNEE_NAME: FieldKind.PARTY,
    CanonicalField.TOTAL_VALUE: FieldKind.AMOUNT,
    CanonicalField.CURRENCY: FieldKind.CURRENCY,
    CanonicalField.PORT_OF_LOADING: FieldKind.PORT,
    CanonicalField.PORT_OF_DISCHARGE: FieldKind.PORT,
    CanonicalField.HS_CODES: FieldKind.HS_CODE,
    CanonicalField.COUNTRY_OF_ORIGIN: FieldKind.COUNTRY,
}

# Backend structuredFields keys (camelCase and snake_case) per canonical field
_FIELD_KEYS: dict[CanonicalField, tuple[str, ...]] = {
    CanonicalField.INVOICE_NUMBER: ("invoiceNumber", "invoice_number", "invoiceNo", "invoiceId"),
    CanonicalField.INVOICE_DATE: ("invoiceDate", "invoice_date", "date"),
    CanonicalField.EXPORTER_NAME: ("exporterName", "exporter_name", "exporter", "shipper", "seller"),
    CanonicalField.CONSIGNEE_NAME: ("consigneeName", "consignee_name", "consignee", "buyer", "importer"),
    CanonicalField.TOTAL_VALUE: ("totalValue", "total_value", "totalInvoiceValue", "invoiceTotal", "total"),
    CanonicalField.CURRENCY: ("currency", "currencyCode"),
    CanonicalField.PORT_OF_LOADING: ("portOfLoading", "port_of_loading", "loadingPort"),
    CanonicalField.PORT_OF_DISCHARGE: ("portOfDischarge", "port_of_discharge", "dischargePort"),
    CanonicalField.HS_CODES: ("hsCodes", "hs_codes", "hsCode"),
    CanonicalField.COUNTRY_OF_ORIGIN: ("countryOfOrigin", "country_of_origin", "origin"),
}

_DOCUMENT_NUMBER_KEYS = ("documentNumber", "document_number", "boeNumber", "boe_number", "billOfEntryNumber")


class DocumentExtraction(BaseModel):
    """Structured fields of one finalized document, ready for reconciliation"""

    document_number: str | None = None
    invoice_number: str | None = None
    invoice_date: str | None = None
    exporter_name: str | None = None
    consignee_name: str | None = None
    total_value: str | None = None
    currency: str | None = None
    port_of_loading: str | None = None
    port_of_discharge: str | None = None
    hs_codes: list[str] = []
    country_of_origin: str | None = None
    # Fields outside the canonical set, compared by name
    additional_fields: dict[str, str] = {}

    def value_of(self, field: CanonicalField):
        return getattr(self, field.value)

    @property
    def field_count(self) -> int:
        count = sum(
            1 for f in CanonicalField
            if f != CanonicalField.HS_CODES and _present(self.value_of(f))
        )
        return count + len([c for c in self.hs_codes if _present(c)]) + len(self.additional_fields)

    @classmethod
    def from_structured_fields(cls, fields: dict[str, Any] | None) -> "DocumentExtraction":
        """Build from the backend's loosely-keyed structuredFields payload"""
        fields = dict(fields or {})
        values: dict[str, Any] = {}
        consumed: set[str] = set()

        for canonical, keys in _FIELD_KEYS.items():
            for key in keys:
                if key in fields and key not in consumed:
                    consumed.add(key)
                    if canonical.value not in values:
                        values[canonical.value] = fields[key]

        for key in _DOCUMENT_NUMBER_KEYS:
            if key in fields:
                consumed.add(key)
                values.setdefault("document_number", fields[key])

        hs = values.get("hs_codes")
        if hs is None:
            values["hs_codes"] = []
        elif isinstance(hs, (list, tuple)):
            values["hs_codes"] = [_item_code(item) for item in hs]
        else:
            values["hs_codes"] = [str(hs)]

        for key, value in list(values.items()):
            if key != "hs_codes" and value is not None and not isinstance(value, str):
                values[key] = str(value)

        additional = {
            k: str(v) for k, v in fields.items()
            if k not in consumed and v is not None and not isinstance(v, (dict, list))
        }
        if additional:
            logger.debug("Keeping non-canonical extraction fields", fields=sorted(additional))

        return cls(**values, additional_fields=additional)


def _item_code(item) -> str:
    # Line items may arrive as {"hsCode": "..."} objects
    if isinstance(item, dict):
        return str(item.get("hsCode") or item.get("hs_code") or "")
    return str(item)


def _present(value) -> bool:
    return value is not None and str(value).strip() != ""


class FieldComparison(ReportModel):
    field: str
    invoice_value: str
    reference_value: str
    status: FieldStatus
    variance: str | None = None
    suggestion: str | None = None


class BOEComparison(ReportModel):
    invoice_number: str
    reference_number: str
    match_percentage: int = Field(ge=0, le=100)
    overall_status: OverallStatus
    results: list[FieldComparison] = []
    invoice_fields: int = 0
    reference_fields: int = 0
