"""FastAPI submission interface for the construction invoice verifier."""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from backend.models.submission import DocumentUpload, SubmissionInput
from backend.utils.config import UploadLimitsConfig
from backend.utils.errors import (
    ExtractionFailure,
    PersistenceFailure,
    ValidationError,
    VerificationError,
)
from backend.verifier import InvoiceVerifier, get_verifier

logger = logging.getLogger(__name__)

APP_TITLE = "Construction Invoice Verifier"

ERROR_STATUS = {
    ValidationError: 400,
    ExtractionFailure: 502,
    PersistenceFailure: 500,
}


app = FastAPI(title=APP_TITLE)


def verifier_dependency() -> InvoiceVerifier:
    return get_verifier()


def _error_response(error: VerificationError) -> JSONResponse:
    status_code = 500
    for error_class, code in ERROR_STATUS.items():
        if isinstance(error, error_class):
            status_code = code
            break
    return JSONResponse(
        status_code=status_code,
        content={"error": error.message, "code": error.code},
    )


@app.exception_handler(VerificationError)
async def verification_error_handler(request, exc: VerificationError) -> JSONResponse:
    logger.error(f"Verification request failed: {exc}")
    return _error_response(exc)


async def _read_upload(file: Optional[UploadFile]) -> Optional[DocumentUpload]:
    if file is None or not file.filename:
        return None
    data = await file.read()
    if not data:
        raise ValidationError.upload_rejected(f"{file.filename} is empty.")
    return DocumentUpload(
        filename=file.filename,
        content_type=file.content_type or "application/octet-stream",
        data=data,
        size=len(data),
    )


def _validate_uploads(groups: Dict[str, List[DocumentUpload]], limits: UploadLimitsConfig) -> None:
    total_size = 0
    for key, items in groups.items():
        if len(items) > limits.max_files_per_type:
            raise ValidationError.upload_rejected(
                f"Too many files for {key}. Max {limits.max_files_per_type} allowed."
            )
        for item in items:
            if item.size > limits.max_file_size_mb * 1024 * 1024:
                raise ValidationError.upload_rejected(
                    f"{item.filename} exceeds the per-file limit of {limits.max_file_size_mb} MB."
                )
            total_size += item.size
    if total_size > limits.max_total_mb * 1024 * 1024:
        raise ValidationError.upload_rejected(
            f"Combined upload size exceeds limit of {limits.max_total_mb} MB."
        )


@app.post("/api/verify")
async def verify_invoice(
    invoice: Optional[UploadFile] = File(default=None),
    workOrder: Optional[UploadFile] = File(default=None),
    photos: List[UploadFile] = File(default=[]),
    userId: Optional[str] = Form(default=None),
    verifier: InvoiceVerifier = Depends(verifier_dependency),
) -> JSONResponse:
    invoice_upload = await _read_upload(invoice)
    if invoice_upload is None or not userId:
        raise ValidationError.missing_input("invoice" if invoice_upload is None else "userId")

    work_order_upload = await _read_upload(workOrder)
    photo_uploads = [upload for upload in [await _read_upload(photo) for photo in photos] if upload]

    _validate_uploads({
        "invoice": [invoice_upload],
        "workOrder": [work_order_upload] if work_order_upload else [],
        "photos": photo_uploads,
    }, verifier.upload_limits)

    submission = SubmissionInput(
        user_id=userId,
        invoice=invoice_upload,
        work_order=work_order_upload,
        photos=photo_uploads,
    )
    outcome = await verifier.submit(submission)
    return JSONResponse(jsonable_encoder(outcome.to_dict()))


@app.get("/api/invoices")
async def list_invoices(
    userId: str,
    verifier: InvoiceVerifier = Depends(verifier_dependency),
) -> JSONResponse:
    invoices = verifier.storage.list_invoices(userId)
    return JSONResponse(jsonable_encoder({"invoices": invoices}))


@app.get("/api/invoices/stats")
async def invoice_stats(
    userId: str,
    verifier: InvoiceVerifier = Depends(verifier_dependency),
) -> JSONResponse:
    return JSONResponse(verifier.storage.invoice_stats(userId))


@app.get("/api/invoices/{invoice_id}")
async def invoice_detail(
    invoice_id: str,
    verifier: InvoiceVerifier = Depends(verifier_dependency),
) -> JSONResponse:
    detail: Optional[Dict[str, Any]] = verifier.storage.get_invoice(invoice_id)
    if detail is None:
        raise HTTPException(status_code=404, detail="Invoice not found.")
    return JSONResponse(jsonable_encoder(detail))


@app.get("/healthz")
async def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server:app", host="0.0.0.0", port=int(os.getenv("PORT", "8000")))
