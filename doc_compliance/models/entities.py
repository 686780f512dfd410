"""
Canonical representation of facts extracted from a document.

Entities are produced by the external extraction step (OCR + model) and are
only ever read by this package, so the models are frozen.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class EntityType(str, Enum):
    COMPANY = "company"
    PERSON = "person"
    DATE = "date"
    AMOUNT = "amount"
    HS_CODE = "hs_code"
    PRODUCT = "product"
    LOCATION = "location"


class DocumentType(str, Enum):
    INVOICE = "invoice"
    BOE = "boe"
    PACKING_LIST = "packing_list"
    CERTIFICATE = "certificate"
    SHIPPING_BILL = "shipping_bill"
    OTHER = "other"

    @classmethod
    def parse(cls, value) -> "DocumentType":
        """Coerce a loose backend string ("Invoice", "packing-list") to a DocumentType"""
        if isinstance(value, cls):
            return value
        if not value:
            return cls.OTHER
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            return cls.OTHER


class Span(BaseModel):
    """Character offsets of an entity in the source text"""
    model_config = ConfigDict(frozen=True)

    start: int = Field(ge=0)
    end: int = Field(ge=0)

    @model_validator(mode="after")
    def _check_order(self):
        if self.end < self.start:
            raise ValueError("span end must not precede span start")
        return self


class Entity(BaseModel):
    """A typed fact extracted from a document"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: EntityType
    value: str
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    # Backend payloads call this "position"
    span: Span = Field(default_factory=lambda: Span(start=0, end=0), alias="position")

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, v):
        return v if isinstance(v, str) else str(v)


def has_entity(entities: list[Entity], entity_type: EntityType) -> bool:
    return any(e.type == entity_type for e in entities)


def entities_of(entities: list[Entity], entity_type: EntityType) -> list[Entity]:
    return [e for e in entities if e.type == entity_type]
