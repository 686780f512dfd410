"""
Rule-based compliance evaluation for extracted documents.

Pure and synchronous: every rule predicate runs against the full extracted
text, producing one ValidationCheck per rule. The engine is total over all
text inputs, empty strings included; a malformed document simply fails more
checks.
"""

from loguru import logger
from pydantic import BaseModel, Field

from ..models.compliance import ComplianceResult, ValidationCheck
from ..models.entities import DocumentType, Entity
from .normalization import rounded_percentage
from .rules import Rule, build_base_rules, get_rules


class ComplianceRulesConfig(BaseModel):
    """Configuration for compliance rules (loaded from environment)"""
    pass_threshold: int = Field(default=70, ge=0, le=100)
    min_content_length: int = 50


class ComplianceRuleEngine:
    """
    Evaluates a document's text against the base and type-specific rules.

    Configuration:
    - pass_threshold: minimum score for a document to be considered valid
    - min_content_length: characters required by the has_content rule
    """

    def __init__(self, config: ComplianceRulesConfig = None):
        self.config = config or ComplianceRulesConfig()
        self._base_rules = build_base_rules(self.config.min_content_length)

    def rules_for(self, document_type) -> list[Rule]:
        return get_rules(DocumentType.parse(document_type), self._base_rules)

    def evaluate(
        self,
        document_type,
        text: str | None,
        entities: list[Entity] | None = None,
    ) -> ComplianceResult:
        """
        Evaluate compliance for one document.

        Args:
            document_type: DocumentType or loose string; unrecognized types
                are evaluated with the base rules only
            text: Full extracted text (None is treated as empty)
            entities: Extracted entities (accepted for interface symmetry;
                current rules are text-only)

        Returns:
            ComplianceResult with checks in rule-declaration order
        """
        text = text or ""
        doc_type = DocumentType.parse(document_type)
        checks = [self._run_rule(rule, text) for rule in self.rules_for(doc_type)]

        passed = sum(1 for c in checks if c.passed)
        score = rounded_percentage(passed, len(checks))
        is_valid = bool(checks) and score >= self.config.pass_threshold

        logger.info(
            "Compliance evaluated",
            document_type=doc_type.value,
            score=score,
            passed=passed,
            total=len(checks),
            is_valid=is_valid,
            entity_count=len(entities or []),
        )

        return ComplianceResult(is_valid=is_valid, score=score, checks=checks)

    @staticmethod
    def _run_rule(rule: Rule, text: str) -> ValidationCheck:
        try:
            passed = bool(rule.predicate(text))
        except Exception as e:
            # A broken predicate counts as a failed check
            logger.error(f"Rule {rule.name} raised: {e!r}")
            passed = False
        return ValidationCheck(
            name=rule.name,
            passed=passed,
            message=rule.success_message if passed else rule.error_message,
            severity=rule.severity,
        )


def create_rule_engine(
    pass_threshold: int = None,
    min_content_length: int = None,
) -> ComplianceRuleEngine:
    """
    Factory function to create a rule engine with optional overrides.

    Uses environment variables as defaults, can be overridden per request.
    """
    from ..core.config import settings

    config = ComplianceRulesConfig(
        pass_threshold=pass_threshold if pass_threshold is not None else settings.compliance_pass_threshold,
        min_content_length=min_content_length if min_content_length is not None else settings.min_content_length,
    )
    return ComplianceRuleEngine(config)


def evaluate_compliance(document_type, text: str | None, entities: list[Entity] | None = None) -> ComplianceResult:
    """Evaluate with the configured default engine"""
    return create_rule_engine().evaluate(document_type, text, entities)
