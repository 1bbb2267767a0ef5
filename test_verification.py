"""Tests for the verification orchestrator."""

import pytest

from backend.models.documents import Provenance
from backend.models.verification import FindingKind, VerificationStatus
from backend.orchestration.fallbacks import (
    NO_PHOTOS_SCOPE,
    NO_WORK_ORDER_NUMBER,
    fallback_photo_analysis,
    fallback_work_order,
)
from backend.orchestration.verification import VerificationOrchestrator
from backend.utils.errors import ExtractionFailure, ErrorType, ValidationError
from conftest import FakeExtraction, make_invoice, make_upload


def _failure(error_type=ErrorType.WORK_ORDER_EXTRACTION_FAILED):
    return ExtractionFailure.for_document(error_type, "doc.pdf", RuntimeError("model timed out"))


def test_fallbacks_are_tagged_and_empty():
    invoice = make_invoice()

    work_order = fallback_work_order(invoice)
    photos = fallback_photo_analysis()

    assert work_order.provenance is Provenance.FALLBACK
    assert work_order.data.work_order_number == NO_WORK_ORDER_NUMBER
    assert work_order.data.crew == [] and work_order.data.equipment == []
    assert work_order.data.date == invoice.date
    assert photos.is_fallback
    assert photos.data.work_completed is False
    assert photos.data.crew_visible == 0
    assert photos.data.confidence == 0
    assert photos.data.work_scope == NO_PHOTOS_SCOPE


@pytest.mark.asyncio
async def test_invoice_only_submission_uses_fallbacks():
    extraction = FakeExtraction()
    orchestrator = VerificationOrchestrator(extraction)

    run = await orchestrator.verify(make_upload("invoice.pdf"))

    assert extraction.calls == ["invoice"]
    assert run.work_order.is_fallback
    assert run.photos.is_fallback
    assert run.result.finding(FindingKind.CREW_DISCREPANCY) is None
    assert run.result.findings_dict()["photoVerification"]["workScope"] == NO_PHOTOS_SCOPE
    # Only the mobilization rule can fire: 50 - 10 - 15 = 25
    assert run.result.confidence == 25
    assert run.result.status is VerificationStatus.DISPUTED


@pytest.mark.asyncio
async def test_full_submission_uses_extracted_evidence():
    extraction = FakeExtraction()
    orchestrator = VerificationOrchestrator(extraction)

    run = await orchestrator.verify(
        make_upload("invoice.pdf"),
        make_upload("work-order.pdf"),
        [make_upload("site-0.jpg"), make_upload("site-1.jpg")],
    )

    assert sorted(extraction.calls) == ["invoice", "photos", "work_order"]
    assert run.work_order.provenance is Provenance.EXTRACTED
    assert run.photos.provenance is Provenance.EXTRACTED
    assert set(run.result.findings) == {
        FindingKind.CREW_DISCREPANCY,
        FindingKind.MOBILIZATION_FEES,
        FindingKind.PHOTO_VERIFICATION,
    }
    assert run.result.flags == ["crew_hour_discrepancy", "high_mobilization_fees"]
    assert set(run.timings) == {"invoice", "optional"}
    assert all(seconds >= 0 for seconds in run.timings.values())


@pytest.mark.asyncio
async def test_optional_extractions_run_concurrently_after_invoice():
    extraction = FakeExtraction(delay=0.05)
    orchestrator = VerificationOrchestrator(extraction)

    await orchestrator.verify(
        make_upload("invoice.pdf"),
        make_upload("work-order.pdf"),
        [make_upload("site-0.jpg")],
    )

    assert extraction.calls[0] == "invoice"
    assert extraction.max_active == 2


@pytest.mark.asyncio
async def test_missing_invoice_is_rejected_before_extraction():
    extraction = FakeExtraction()
    orchestrator = VerificationOrchestrator(extraction)

    with pytest.raises(ValidationError) as exc_info:
        await orchestrator.verify(None, make_upload("work-order.pdf"))

    assert exc_info.value.code == "missing_required_input"
    assert extraction.calls == []


@pytest.mark.asyncio
async def test_supplied_work_order_failure_is_not_replaced_by_fallback():
    extraction = FakeExtraction(failures={"work_order": _failure()})
    orchestrator = VerificationOrchestrator(extraction)

    with pytest.raises(ExtractionFailure) as exc_info:
        await orchestrator.verify(make_upload("invoice.pdf"), make_upload("work-order.pdf"))

    assert exc_info.value.code == "extraction_failed"


@pytest.mark.asyncio
async def test_invoice_failure_stops_the_run():
    extraction = FakeExtraction(failures={"invoice": _failure(ErrorType.INVOICE_EXTRACTION_FAILED)})
    orchestrator = VerificationOrchestrator(extraction)

    with pytest.raises(ExtractionFailure):
        await orchestrator.verify(
            make_upload("invoice.pdf"),
            make_upload("work-order.pdf"),
            [make_upload("site-0.jpg")],
        )

    assert extraction.calls == ["invoice"]
