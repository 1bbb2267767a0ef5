"""Tests for the persistence orchestrator and local storage backend."""

import pytest

from backend.models.documents import LineItem
from backend.models.verification import InvoiceStatus
from backend.orchestration.persistence import (
    PersistenceOrchestrator,
    build_storage_key,
    claimed_hours_for_record,
)
from backend.rules.cross_validation import CrossValidator
from backend.rules.scoring import ConfidenceScorer
from backend.storage.file_storage import FileStorage
from backend.utils.errors import PersistenceFailure
from conftest import (
    MemoryStorage,
    make_invoice,
    make_photos,
    make_submission,
    make_upload,
    make_work_order,
)

TIMESTAMP = 1700000000000


def _result(invoice):
    photos = make_photos()
    report = CrossValidator().validate(invoice, make_work_order(), photos)
    return ConfidenceScorer().build_result(report, photos)


def test_build_storage_key():
    assert build_storage_key("user-1", TIMESTAMP, "invoice", "pdf") == "user-1/1700000000000-invoice.pdf"
    assert build_storage_key("user-1", TIMESTAMP, "photo", "jpg", 2) == "user-1/1700000000000-photo-2.jpg"


def test_claimed_hours_uses_first_line_item():
    assert claimed_hours_for_record(make_invoice()) == 40
    assert claimed_hours_for_record(make_invoice([])) == 0
    assert claimed_hours_for_record(make_invoice([LineItem("Misc")])) == 0


@pytest.mark.asyncio
async def test_persist_writes_invoice_analysis_and_documents():
    storage = MemoryStorage(invoice_id="inv-1")
    invoice = make_invoice()
    result = _result(invoice)

    report = await PersistenceOrchestrator(storage).persist(make_submission(), invoice, result, TIMESTAMP)

    assert report.invoice_id == "inv-1"
    assert report.complete
    assert storage.invoices[0]["status"] == result.status.value
    assert storage.invoices[0]["ai_confidence"] == result.confidence
    assert storage.invoices[0]["claimed_hours"] == 40
    assert storage.analyses[0]["invoice_id"] == "inv-1"
    assert storage.analyses[0]["flags"] == result.flags
    assert set(storage.uploads) == {
        "user-1/1700000000000-invoice.pdf",
        "user-1/1700000000000-workorder.pdf",
        "user-1/1700000000000-photo-0.jpg",
        "user-1/1700000000000-photo-1.jpg",
    }
    assert sorted(doc.file_type for doc in report.documents) == ["invoice", "photo", "photo", "work_order"]


@pytest.mark.asyncio
async def test_failed_invoice_insert_writes_nothing_else():
    storage = MemoryStorage(fail_invoice=True)
    invoice = make_invoice()

    with pytest.raises(PersistenceFailure) as exc_info:
        await PersistenceOrchestrator(storage).persist(make_submission(), invoice, _result(invoice), TIMESTAMP)

    assert exc_info.value.code == "persistence_failed"
    assert storage.analyses == []
    assert storage.uploads == {}
    assert storage.documents == []


@pytest.mark.asyncio
async def test_missing_invoice_id_is_a_persistence_failure():
    storage = MemoryStorage(invoice_id=None)
    invoice = make_invoice()

    with pytest.raises(PersistenceFailure):
        await PersistenceOrchestrator(storage).persist(make_submission(), invoice, _result(invoice), TIMESTAMP)

    assert storage.uploads == {}


@pytest.mark.asyncio
async def test_single_photo_failure_leaves_other_documents_stored():
    storage = MemoryStorage(fail_upload_keys=["photo-1"])
    invoice = make_invoice()
    submission = make_submission(photo_count=3)

    report = await PersistenceOrchestrator(storage).persist(submission, invoice, _result(invoice), TIMESTAMP)

    assert len(storage.invoices) == 1
    assert report.analysis_saved
    assert "user-1/1700000000000-photo-0.jpg" in storage.uploads
    assert "user-1/1700000000000-photo-2.jpg" in storage.uploads
    assert "user-1/1700000000000-photo-1.jpg" not in storage.uploads
    assert len(report.documents) == 4
    assert len(report.warnings) == 1
    assert report.warnings[0]["error_type"] == "DOCUMENT_UPLOAD_FAILED"
    assert not report.complete


@pytest.mark.asyncio
async def test_failed_analysis_insert_still_stores_documents():
    storage = MemoryStorage(fail_analysis=True)
    invoice = make_invoice()

    report = await PersistenceOrchestrator(storage).persist(
        make_submission(work_order=False, photo_count=0), invoice, _result(invoice), TIMESTAMP
    )

    assert not report.analysis_saved
    assert [doc.file_type for doc in report.documents] == ["invoice"]
    assert report.warnings[0]["error_type"] == "ANALYSIS_INSERT_FAILED"


@pytest.mark.asyncio
async def test_file_storage_round_trip(tmp_path):
    storage = FileStorage(
        records_dir=str(tmp_path / "records"),
        documents_dir=str(tmp_path / "documents"),
    )
    invoice = make_invoice()
    result = _result(invoice)
    submission = make_submission(photo_count=1)
    submission.photos[0] = make_upload("site.png", b"\x89PNG\r\n\x1a\n", "image/png")

    report = await PersistenceOrchestrator(storage).persist(submission, invoice, result, TIMESTAMP)

    detail = storage.get_invoice(report.invoice_id)
    assert detail["invoice"]["invoice_number"] == "INV-1001"
    assert detail["analysis"]["confidence_score"] == result.confidence
    assert detail["analysis"]["findings"]["mobilizationFees"]["claimed"] == 300
    assert len(detail["documents"]) == 3
    assert storage.load_document("user-1/1700000000000-photo-0.png") == b"\x89PNG\r\n\x1a\n"

    assert [row["id"] for row in storage.list_invoices("user-1")] == [report.invoice_id]
    assert storage.list_invoices("someone-else") == []
    stats = storage.invoice_stats("user-1")
    assert stats["total"] == 1
    assert stats[result.status.value] == 1
    assert storage.get_invoice("missing") is None


def test_file_storage_rejects_keys_outside_documents_dir(tmp_path):
    storage = FileStorage(
        records_dir=str(tmp_path / "records"),
        documents_dir=str(tmp_path / "documents"),
    )

    with pytest.raises(ValueError):
        storage.upload_document(b"x", "../escape.pdf")


@pytest.mark.asyncio
async def test_stored_status_and_stats_use_invoice_statuses(tmp_path):
    storage = FileStorage(
        records_dir=str(tmp_path / "records"),
        documents_dir=str(tmp_path / "documents"),
    )

    assert storage.invoice_stats("user-1") == {
        "total": 0, "pending": 0, "verified": 0, "flagged": 0, "disputed": 0,
    }

    invoice = make_invoice()
    result = _result(invoice)
    report = await PersistenceOrchestrator(storage).persist(
        make_submission(work_order=False, photo_count=0), invoice, result, TIMESTAMP
    )

    stored_status = storage.get_invoice(report.invoice_id)["invoice"]["status"]
    assert InvoiceStatus(stored_status).value == result.status.value
    stats = storage.invoice_stats("user-1")
    assert set(stats) == {"total"} | {status.value for status in InvoiceStatus}
    assert stats["total"] == 1
