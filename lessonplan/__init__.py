"""
Teaching Plan Backend

Canonical lesson-plan document, copy-on-write editing, reconciliation of
extracted plans, and persistence.
"""

from lessonplan.schema import TeachingPlan, default_document
from lessonplan.paths import get_value, set_value
from lessonplan.reconcile import reconcile

__all__ = ["TeachingPlan", "default_document", "get_value", "set_value", "reconcile"]
