"""Persistence orchestrator: invoice record, analysis and document uploads."""

import asyncio
import logging
import time
from typing import List, Optional

from ..models.documents import InvoiceData
from ..models.submission import (
    DocumentUpload,
    PersistenceReport,
    StoredDocument,
    SubmissionInput,
)
from ..models.verification import InvoiceStatus, VerificationResult
from ..utils.errors import ErrorType, PartialPersistenceWarning, PersistenceFailure

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_EXTENSION = "pdf"
DEFAULT_PHOTO_EXTENSION = "jpg"


def build_storage_key(
    user_id: str,
    timestamp: int,
    kind: str,
    extension: str,
    index: Optional[int] = None
) -> str:
    """Compose ``{user_id}/{timestamp}-{kind}[-{index}].{ext}``."""
    suffix = f"-{index}" if index is not None else ""
    return f"{user_id}/{timestamp}-{kind}{suffix}.{extension}"


def claimed_hours_for_record(invoice: InvoiceData) -> float:
    """Quantity of the first line item, or 0 when there are none."""
    if not invoice.line_items:
        return 0
    return invoice.line_items[0].quantity or 0


class PersistenceOrchestrator:
    """
    Writes a verified submission to storage.

    Only the invoice summary insert is mandatory. The analysis insert and
    each document upload are best-effort: failures are logged and recorded
    on the returned report, and never undo writes that already succeeded.

    Attributes:
        storage: Storage collaborator (insert_invoice, insert_analysis,
            upload_document, insert_document_metadata)
    """

    def __init__(self, storage):
        self.storage = storage
        logger.info(f"Initialized PersistenceOrchestrator with {type(storage).__name__}")

    async def persist(
        self,
        submission: SubmissionInput,
        invoice: InvoiceData,
        result: VerificationResult,
        timestamp: Optional[int] = None
    ) -> PersistenceReport:
        """
        Persist the invoice, its analysis and the submitted documents.

        Args:
            submission: Original submission (user and documents)
            invoice: Extracted invoice data
            result: Verification result
            timestamp: Submission timestamp in milliseconds for storage keys

        Returns:
            PersistenceReport describing what was written

        Raises:
            PersistenceFailure: If the invoice summary record cannot be written
        """
        if timestamp is None:
            timestamp = int(time.time() * 1000)

        invoice_row = await self._insert_invoice(submission.user_id, invoice, result)
        invoice_id = str(invoice_row["id"])
        report = PersistenceReport(invoice_id=invoice_id, invoice_record=invoice_row)

        await self._insert_analysis(invoice_id, result, report)

        uploads = [
            (submission.invoice, "invoice", "invoice", None, DEFAULT_DOCUMENT_EXTENSION)
        ]
        if submission.work_order is not None:
            uploads.append(
                (submission.work_order, "workorder", "work_order", None, DEFAULT_DOCUMENT_EXTENSION)
            )
        for index, photo in enumerate(submission.photos):
            uploads.append((photo, "photo", "photo", index, DEFAULT_PHOTO_EXTENSION))

        outcomes = await asyncio.gather(*[
            self._store_document(
                document=document,
                key=build_storage_key(
                    submission.user_id,
                    timestamp,
                    kind,
                    document.extension or default_extension,
                    index
                ),
                file_type=file_type,
                invoice_id=invoice_id,
                report=report,
            )
            for document, kind, file_type, index, default_extension in uploads
        ])
        report.documents = [stored for stored in outcomes if stored is not None]

        if report.warnings:
            logger.warning(
                f"Invoice {invoice_id} persisted with {len(report.warnings)} partial failure(s); "
                f"{len(report.documents)}/{len(uploads)} documents stored"
            )
        else:
            logger.info(f"Invoice {invoice_id} persisted with {len(report.documents)} documents")

        return report

    async def _insert_invoice(self, user_id: str, invoice: InvoiceData, result: VerificationResult) -> dict:
        record = {
            "user_id": user_id,
            "invoice_number": invoice.invoice_number,
            "contractor_name": invoice.contractor,
            "total_amount": invoice.total,
            "claimed_hours": claimed_hours_for_record(invoice),
            "invoice_date": invoice.date,
            "due_date": invoice.due_date,
            "status": InvoiceStatus(result.status.value).value,
            "ai_confidence": result.confidence,
        }
        try:
            row = await asyncio.to_thread(self.storage.insert_invoice, record)
        except Exception as e:
            logger.error(f"Failed to save invoice {invoice.invoice_number}: {str(e)}")
            raise PersistenceFailure.invoice_insert_failed(invoice.invoice_number, e) from e

        if not row or row.get("id") is None:
            error = ValueError("storage returned no invoice id")
            logger.error(f"Failed to save invoice {invoice.invoice_number}: {error}")
            raise PersistenceFailure.invoice_insert_failed(invoice.invoice_number, error)

        return {**record, **row}

    async def _insert_analysis(self, invoice_id: str, result: VerificationResult, report: PersistenceReport) -> None:
        record = {
            "invoice_id": invoice_id,
            "findings": result.findings_dict(),
            "flags": list(result.flags),
            "recommendations": list(result.recommendations),
            "confidence_score": result.confidence,
        }
        try:
            await asyncio.to_thread(self.storage.insert_analysis, record)
            report.analysis_saved = True
        except Exception as e:
            self._record_warning(report, ErrorType.ANALYSIS_INSERT_FAILED, f"analysis:{invoice_id}", e)

    async def _store_document(
        self,
        document: DocumentUpload,
        key: str,
        file_type: str,
        invoice_id: str,
        report: PersistenceReport
    ) -> Optional[StoredDocument]:
        try:
            upload = await asyncio.to_thread(self.storage.upload_document, document.data, key)
        except Exception as e:
            self._record_warning(report, ErrorType.DOCUMENT_UPLOAD_FAILED, key, e)
            return None

        stored = StoredDocument(
            file_name=document.filename,
            file_type=file_type,
            file_url=(upload or {}).get("path", key),
            file_size=document.size,
        )
        try:
            await asyncio.to_thread(
                self.storage.insert_document_metadata,
                {"invoice_id": invoice_id, **stored.to_dict()}
            )
        except Exception as e:
            self._record_warning(report, ErrorType.DOCUMENT_METADATA_FAILED, key, e)
            return None

        return stored

    def _record_warning(
        self,
        report: PersistenceReport,
        error_type: ErrorType,
        target: str,
        error: Exception
    ) -> None:
        warning = PartialPersistenceWarning.from_failure(error_type, target, error)
        logger.warning(f"Partial persistence: {warning}")
        report.warnings.append(warning.to_dict())
