"""Cross-validation rules and confidence scoring."""

from .cross_validation import CrossValidator, CrossValidationReport
from .scoring import ConfidenceScorer, classify_confidence

__all__ = [
    "CrossValidator",
    "CrossValidationReport",
    "ConfidenceScorer",
    "classify_confidence",
]
