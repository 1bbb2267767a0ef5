"""Tests for confidence scoring and status classification."""

import pytest

from backend.models.documents import LineItem
from backend.models.verification import FindingKind, VerificationStatus
from backend.orchestration.fallbacks import fallback_photo_analysis, fallback_work_order
from backend.rules.cross_validation import CrossValidationReport, CrossValidator
from backend.rules.scoring import ConfidenceScorer, classify_confidence
from backend.utils.config import RulesConfig
from conftest import make_invoice, make_photos, make_work_order


@pytest.mark.parametrize(
    "confidence, status",
    [
        (100, VerificationStatus.VERIFIED),
        (85, VerificationStatus.VERIFIED),
        (84, VerificationStatus.FLAGGED),
        (70, VerificationStatus.FLAGGED),
        (69, VerificationStatus.DISPUTED),
        (0, VerificationStatus.DISPUTED),
    ],
)
def test_classify_confidence_thresholds(confidence, status):
    assert classify_confidence(confidence) is status


def test_clean_job_with_strong_photos_is_verified():
    """50 + 20 + 10 + (90 - 50) * 0.3 = 92."""
    invoice = make_invoice([LineItem("Asphalt material", quantity=3, unit_price=100, amount=300)])
    photos = make_photos(work_completed=True, equipment_confirmed=True, confidence=90)
    report = CrossValidator().validate(invoice, make_work_order(), photos)

    result = ConfidenceScorer().build_result(report, photos)

    assert result.confidence == 92
    assert result.status is VerificationStatus.VERIFIED


def test_invoice_without_evidence_is_disputed():
    """Fallback photos contribute -15 through the photo-confidence nudge."""
    invoice = make_invoice([])
    photos = fallback_photo_analysis().data
    report = CrossValidator().validate(invoice, fallback_work_order(invoice).data, photos)

    result = ConfidenceScorer().build_result(report, photos)

    assert result.confidence == 35
    assert result.status is VerificationStatus.DISPUTED
    assert list(result.findings) == [FindingKind.PHOTO_VERIFICATION]


def test_discrepancy_penalties():
    """50 + 20 + 10 - 15 - 10 + 12 = 67."""
    photos = make_photos(confidence=90)
    report = CrossValidator().validate(make_invoice(), make_work_order(), photos)

    result = ConfidenceScorer().build_result(report, photos)

    assert result.confidence == 67
    assert result.status is VerificationStatus.DISPUTED
    assert result.findings_dict()["crewDiscrepancy"]["potentialOvercharge"] == 2000


def test_half_scores_round_up():
    """50 + (45 - 50) * 0.3 = 48.5, which rounds to 49."""
    photos = make_photos(work_completed=False, equipment_confirmed=False, confidence=45)

    assert ConfidenceScorer().score(CrossValidationReport(), photos) == 49


def test_score_is_clamped_to_100():
    photos = make_photos(confidence=100)
    scorer = ConfidenceScorer(RulesConfig(base_confidence=90))

    assert scorer.score(CrossValidationReport(), photos) == 100


def test_score_is_clamped_to_0():
    photos = make_photos(work_completed=False, equipment_confirmed=False, confidence=0)
    scorer = ConfidenceScorer(RulesConfig(base_confidence=5))

    assert scorer.score(CrossValidationReport(), photos) == 0
