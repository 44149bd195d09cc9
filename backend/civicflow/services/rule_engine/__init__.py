"""Rule engine for scoring applications against program rules."""

from .attributes import AttributeSet
from .documents import detect_missing_documents
from .evaluator import CriterionEvaluator
from .scoring import EligibilityScorer

__all__ = [
    "AttributeSet",
    "CriterionEvaluator",
    "EligibilityScorer",
    "detect_missing_documents",
]
