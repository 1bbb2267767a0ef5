"""Tests for the FastAPI submission interface."""

import pytest
from fastapi.testclient import TestClient

import server
from backend.utils.config import UploadLimitsConfig
from backend.utils.errors import ErrorType, ExtractionFailure
from backend.verifier import InvoiceVerifier
from conftest import FakeExtraction, MemoryStorage

INVOICE_FILE = ("invoice", ("invoice.pdf", b"%PDF-1.4 invoice", "application/pdf"))
WORK_ORDER_FILE = ("workOrder", ("work-order.pdf", b"%PDF-1.4 work order", "application/pdf"))
PHOTO_FILES = [
    ("photos", ("site-0.jpg", b"\xff\xd8\xff one", "image/jpeg")),
    ("photos", ("site-1.jpg", b"\xff\xd8\xff two", "image/jpeg")),
]


@pytest.fixture
def verifier():
    return InvoiceVerifier(FakeExtraction(), MemoryStorage())


@pytest.fixture
def client(verifier):
    server.app.dependency_overrides[server.verifier_dependency] = lambda: verifier
    yield TestClient(server.app)
    server.app.dependency_overrides.clear()


def test_verify_full_submission(client, verifier):
    response = client.post(
        "/api/verify",
        data={"userId": "user-1"},
        files=[INVOICE_FILE, WORK_ORDER_FILE, *PHOTO_FILES],
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["invoice"]["invoice_number"] == "INV-1001"
    assert body["verification"]["status"] == "disputed"
    assert body["verification"]["flags"] == ["crew_hour_discrepancy", "high_mobilization_fees"]
    assert body["verification"]["findings"]["crewDiscrepancy"]["potentialOvercharge"] == 2000
    assert body["persistence"]["complete"] is True
    assert len(verifier.storage.uploads) == 4


def test_verify_requires_invoice(client):
    response = client.post("/api/verify", data={"userId": "user-1"}, files=[WORK_ORDER_FILE])

    assert response.status_code == 400
    assert response.json()["code"] == "missing_required_input"


def test_verify_requires_user_id(client, verifier):
    response = client.post("/api/verify", files=[INVOICE_FILE])

    assert response.status_code == 400
    assert response.json()["code"] == "missing_required_input"
    assert verifier.verification.extraction.calls == []


def test_verify_rejects_too_many_photos(client, verifier):
    verifier.upload_limits = UploadLimitsConfig(max_files_per_type=1)

    response = client.post("/api/verify", data={"userId": "user-1"}, files=[INVOICE_FILE, *PHOTO_FILES])

    assert response.status_code == 400
    assert "Too many files" in response.json()["error"]


def test_extraction_failure_maps_to_502():
    failure = ExtractionFailure.for_document(
        ErrorType.PHOTO_ANALYSIS_FAILED, "2 photo(s)", RuntimeError("model unavailable")
    )
    verifier = InvoiceVerifier(FakeExtraction(failures={"photos": failure}), MemoryStorage())
    server.app.dependency_overrides[server.verifier_dependency] = lambda: verifier
    try:
        response = TestClient(server.app).post(
            "/api/verify", data={"userId": "user-1"}, files=[INVOICE_FILE, *PHOTO_FILES]
        )
    finally:
        server.app.dependency_overrides.clear()

    assert response.status_code == 502
    assert response.json()["code"] == "extraction_failed"
    assert verifier.storage.invoices == []


def test_persistence_failure_maps_to_500():
    verifier = InvoiceVerifier(FakeExtraction(), MemoryStorage(fail_invoice=True))
    server.app.dependency_overrides[server.verifier_dependency] = lambda: verifier
    try:
        response = TestClient(server.app).post(
            "/api/verify", data={"userId": "user-1"}, files=[INVOICE_FILE]
        )
    finally:
        server.app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json()["code"] == "persistence_failed"


def test_invoice_read_endpoints(client):
    created = client.post("/api/verify", data={"userId": "user-1"}, files=[INVOICE_FILE]).json()
    invoice_id = created["persistence"]["invoice_id"]

    listing = client.get("/api/invoices", params={"userId": "user-1"}).json()
    assert [row["id"] for row in listing["invoices"]] == [invoice_id]

    stats = client.get("/api/invoices/stats", params={"userId": "user-1"}).json()
    assert stats["total"] == 1
    assert stats["disputed"] == 1

    detail = client.get(f"/api/invoices/{invoice_id}").json()
    assert detail["invoice"]["id"] == invoice_id
    assert detail["analysis"]["confidence_score"] == created["verification"]["confidence"]
    assert [doc["file_type"] for doc in detail["documents"]] == ["invoice"]

    assert client.get("/api/invoices/does-not-exist").status_code == 404


def test_healthcheck(client):
    assert client.get("/healthz").json() == {"status": "ok"}
