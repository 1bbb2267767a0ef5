"""Confidence scoring and status classification."""

import logging
import math
from typing import Optional

from ..models.documents import PhotoAnalysis
from ..models.verification import FindingKind, VerificationResult, VerificationStatus
from ..utils.config import RulesConfig
from .cross_validation import CrossValidationReport

logger = logging.getLogger(__name__)


def classify_confidence(confidence: int, rules: Optional[RulesConfig] = None) -> VerificationStatus:
    """
    Map a confidence score to a status.

    >= 85 verified, 70-84 flagged, below 70 disputed (thresholds from config).
    """
    rules = rules or RulesConfig()
    if confidence >= rules.verified_threshold:
        return VerificationStatus.VERIFIED
    if confidence >= rules.flagged_threshold:
        return VerificationStatus.FLAGGED
    return VerificationStatus.DISPUTED


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ConfidenceScorer:
    """Reduces cross-validation findings and photo evidence to a scored verdict."""

    def __init__(self, rules: Optional[RulesConfig] = None):
        self.rules = rules or RulesConfig()

    def score(self, report: CrossValidationReport, photos: PhotoAnalysis) -> int:
        """
        Compute the 0-100 confidence score.

        Starts from the base score, adds photo evidence bonuses, subtracts
        discrepancy penalties, then nudges by photo-analysis confidence
        around its midpoint. The total is clamped before rounding.
        """
        rules = self.rules
        confidence = rules.base_confidence

        if photos.work_completed:
            confidence += rules.work_completed_bonus
        if photos.equipment_confirmed:
            confidence += rules.equipment_confirmed_bonus
        if report.has(FindingKind.CREW_DISCREPANCY):
            confidence -= rules.crew_discrepancy_penalty
        if report.has(FindingKind.MOBILIZATION_FEES):
            confidence -= rules.mobilization_penalty

        # A fallback analysis has confidence 0 and so pulls the score down
        photo_confidence = photos.confidence or 0.0
        confidence += (photo_confidence - rules.photo_confidence_midpoint) * rules.photo_confidence_weight

        clamped = max(0.0, min(100.0, confidence))
        return _round_half_up(clamped)

    def build_result(self, report: CrossValidationReport, photos: PhotoAnalysis) -> VerificationResult:
        """Score the report and assemble the final VerificationResult."""
        confidence = self.score(report, photos)
        status = classify_confidence(confidence, self.rules)

        logger.info(f"Verification scored: confidence={confidence}, status={status.value}")

        return VerificationResult(
            status=status,
            confidence=confidence,
            findings=dict(report.findings),
            flags=list(report.flags),
            recommendations=list(report.recommendations),
        )
