"""Document compliance pipeline: rule evaluation, annotation, lifecycle tracking and reconciliation."""

from .services.reconciler import reconcile_documents
from .services.rule_engine import evaluate_compliance
from .services.suggestions import annotate

__all__ = ["annotate", "evaluate_compliance", "reconcile_documents"]
