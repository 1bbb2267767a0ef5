"""Shared fakes and builders for the invoice verifier tests."""

import asyncio
import threading
import uuid
from typing import Any, Dict, List, Optional

import pytest

from backend.models.documents import InvoiceData, LineItem, PhotoAnalysis, WorkOrderData
from backend.models.submission import DocumentUpload, SubmissionInput
from backend.models.verification import InvoiceStatus


def make_invoice(line_items: Optional[List[LineItem]] = None, invoice_number: str = "INV-1001") -> InvoiceData:
    if line_items is None:
        line_items = [
            LineItem(description="40 hours labor", quantity=40, unit_price=50, amount=2000),
            LineItem(description="Mobilization fee", quantity=2, unit_price=150, amount=300),
        ]
    return InvoiceData(
        invoice_number=invoice_number,
        contractor="Acme Paving",
        date="2024-03-01",
        due_date="2024-03-31",
        line_items=line_items,
        subtotal=2300,
        tax=0,
        total=2300,
    )


def make_work_order(crew=("A", "B"), hours=(20, 20)) -> WorkOrderData:
    return WorkOrderData(
        work_order_number="WO-77",
        crew=list(crew),
        hours_per_crew=list(hours),
        equipment=["Skid steer"],
        work_description="Driveway resurfacing",
        date="2024-03-01",
    )


def make_photos(work_completed=True, equipment_confirmed=True, confidence=90) -> PhotoAnalysis:
    return PhotoAnalysis(
        work_completed=work_completed,
        crew_visible=2,
        equipment_confirmed=equipment_confirmed,
        estimated_work_hours="6-8 hours",
        work_scope="Fresh asphalt on driveway",
        confidence=confidence,
    )


def make_upload(filename: str, data: bytes = b"%PDF-1.4 test", content_type: str = "application/pdf") -> DocumentUpload:
    return DocumentUpload(filename=filename, content_type=content_type, data=data)


def make_submission(work_order=True, photo_count=2, user_id="user-1") -> SubmissionInput:
    return SubmissionInput(
        user_id=user_id,
        invoice=make_upload("invoice.pdf"),
        work_order=make_upload("work-order.pdf") if work_order else None,
        photos=[
            make_upload(f"site-{i}.jpg", b"\xff\xd8\xff photo", "image/jpeg")
            for i in range(photo_count)
        ],
    )


class FakeExtraction:
    """Extraction adapter returning canned records, with optional failures and delays."""

    def __init__(self, invoice=None, work_order=None, photos=None, failures=None, delay=0.0):
        self.invoice = invoice or make_invoice()
        self.work_order = work_order or make_work_order()
        self.photos = photos or make_photos()
        self.failures: Dict[str, Exception] = failures or {}
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0

    async def _run(self, name: str, value):
        self.calls.append(name)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(self.delay)
            if name in self.failures:
                raise self.failures[name]
            return value
        finally:
            self.active -= 1

    async def extract_invoice(self, document):
        return await self._run("invoice", self.invoice)

    async def extract_work_order(self, document):
        return await self._run("work_order", self.work_order)

    async def analyze_photos(self, documents):
        return await self._run("photos", self.photos)


class MemoryStorage:
    """In-memory storage collaborator that can be told to fail specific writes."""

    def __init__(self, fail_invoice=False, fail_analysis=False, fail_upload_keys=(), invoice_id="auto"):
        self.fail_invoice = fail_invoice
        self.fail_analysis = fail_analysis
        self.fail_upload_keys = set(fail_upload_keys)
        self.invoice_id = invoice_id
        self.invoices: List[Dict[str, Any]] = []
        self.analyses: List[Dict[str, Any]] = []
        self.documents: List[Dict[str, Any]] = []
        self.uploads: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def insert_invoice(self, record):
        if self.fail_invoice:
            raise RuntimeError("invoices table unavailable")
        if self.invoice_id is None:
            return {}
        row = {**record, "id": str(uuid.uuid4()) if self.invoice_id == "auto" else self.invoice_id}
        with self._lock:
            self.invoices.append(row)
        return row

    def insert_analysis(self, record):
        if self.fail_analysis:
            raise RuntimeError("invoice_analyses table unavailable")
        with self._lock:
            self.analyses.append(record)
        return record

    def upload_document(self, content, key):
        if any(marker in key for marker in self.fail_upload_keys):
            raise RuntimeError(f"bucket rejected {key}")
        with self._lock:
            self.uploads[key] = content
        return {"path": key}

    def insert_document_metadata(self, record):
        with self._lock:
            self.documents.append(record)
        return record

    def get_invoice(self, invoice_id):
        for row in self.invoices:
            if row["id"] == invoice_id:
                return {
                    "invoice": row,
                    "analysis": next((a for a in self.analyses if a["invoice_id"] == invoice_id), None),
                    "documents": [d for d in self.documents if d["invoice_id"] == invoice_id],
                }
        return None

    def list_invoices(self, user_id):
        return [row for row in self.invoices if row["user_id"] == user_id]

    def invoice_stats(self, user_id):
        stats = {"total": 0, **{status.value: 0 for status in InvoiceStatus}}
        for row in self.list_invoices(user_id):
            stats["total"] += 1
            stats[row["status"]] += 1
        return stats


@pytest.fixture
def extraction():
    return FakeExtraction()


@pytest.fixture
def storage():
    return MemoryStorage()
