from enum import Enum
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ReportModel(BaseModel):
    """Base for report models: camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_report(self) -> dict:
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


class ValidationCheck(ReportModel):
    name: str
    passed: bool
    message: str
    severity: Severity


class ComplianceResult(ReportModel):
    """Outcome of evaluating one document against its rule set"""
    is_valid: bool
    score: int = Field(ge=0, le=100)
    checks: list[ValidationCheck] = []

    @property
    def failed_checks(self) -> list[ValidationCheck]:
        return [c for c in self.checks if not c.passed]


class ValidationError(ReportModel):
    """One failed check (or missing entity) surfaced to the user"""
    type: Literal["missing_field", "invalid_format", "incomplete_info", "compliance_issue"]
    field: str
    message: str
    severity: Severity = Severity.ERROR
    suggestion: str


class Correction(ReportModel):
    """Actionable remediation item with a priority"""
    type: Literal["add_field", "format_field", "recalculate", "compliance_fix", "hs_code", "completion"]
    field: str
    message: str
    suggestion: str
    example: str | None = None
    priority: Priority


class Annotation(ReportModel):
    errors: list[ValidationError] = []
    corrections: list[Correction] = []
