"""Submission input and outcome data models."""

from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any

from .verification import VerificationResult


@dataclass
class DocumentUpload:
    """
    An uploaded file as received from the caller.

    Attributes:
        filename: Original filename
        content_type: MIME type reported by the client
        data: Raw file bytes
        size: Size in bytes
    """
    filename: str
    content_type: str
    data: bytes
    size: int = 0

    def __post_init__(self):
        if not self.size:
            self.size = len(self.data)

    @property
    def extension(self) -> Optional[str]:
        """Lower-cased filename extension without the dot, if any."""
        name = self.filename or ""
        if "." not in name:
            return None
        suffix = name.rsplit(".", 1)[-1].lower()
        return suffix or None


@dataclass
class SubmissionInput:
    """
    Input data for an invoice verification submission.

    Attributes:
        user_id: Identifier of the submitting user
        invoice: The invoice document (required)
        work_order: Optional work order document
        photos: Optional job-site photos
    """
    user_id: str
    invoice: DocumentUpload
    work_order: Optional[DocumentUpload] = None
    photos: List[DocumentUpload] = field(default_factory=list)


@dataclass
class StoredDocument:
    """Metadata for a document that was uploaded and recorded."""
    file_name: str
    file_type: str  # "invoice" | "work_order" | "photo"
    file_url: str
    file_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_name": self.file_name,
            "file_type": self.file_type,
            "file_url": self.file_url,
            "file_size": self.file_size,
        }


@dataclass
class PersistenceReport:
    """
    What the persistence step managed to write.

    The invoice record always exists when a report is returned; the rest
    is best-effort and may be partial.

    Attributes:
        invoice_id: Identifier assigned to the invoice record
        invoice_record: The stored invoice summary record
        analysis_saved: Whether the analysis record was written
        documents: Documents uploaded and recorded
        warnings: Serialized best-effort failures
    """
    invoice_id: str
    invoice_record: Dict[str, Any] = field(default_factory=dict)
    analysis_saved: bool = False
    documents: List[StoredDocument] = field(default_factory=list)
    warnings: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.analysis_saved and not self.warnings

    def to_dict(self) -> Dict[str, Any]:
        return {
            "invoice_id": self.invoice_id,
            "analysis_saved": self.analysis_saved,
            "documents": [doc.to_dict() for doc in self.documents],
            "warnings": list(self.warnings),
            "complete": self.complete,
        }


@dataclass
class SubmissionOutcome:
    """Verification result plus what was persisted for it."""
    verification: VerificationResult
    persistence: PersistenceReport

    @property
    def invoice_id(self) -> str:
        return self.persistence.invoice_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "invoice": self.persistence.invoice_record,
            "verification": self.verification.to_dict(),
            "persistence": self.persistence.to_dict(),
        }
