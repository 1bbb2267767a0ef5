"""Data models for invoice verification."""

from .documents import (
    LineItem,
    InvoiceData,
    WorkOrderData,
    PhotoAnalysis,
    Provenance,
    SourcedEvidence,
)
from .verification import (
    VerificationStatus,
    InvoiceStatus,
    FindingKind,
    CrewDiscrepancyFinding,
    MobilizationFeesFinding,
    WorkScopeFinding,
    PhotoVerificationFinding,
    VerificationResult,
)
from .submission import (
    DocumentUpload,
    SubmissionInput,
    StoredDocument,
    PersistenceReport,
    SubmissionOutcome,
)

__all__ = [
    "LineItem",
    "InvoiceData",
    "WorkOrderData",
    "PhotoAnalysis",
    "Provenance",
    "SourcedEvidence",
    "VerificationStatus",
    "InvoiceStatus",
    "FindingKind",
    "CrewDiscrepancyFinding",
    "MobilizationFeesFinding",
    "WorkScopeFinding",
    "PhotoVerificationFinding",
    "VerificationResult",
    "DocumentUpload",
    "SubmissionInput",
    "StoredDocument",
    "PersistenceReport",
    "SubmissionOutcome",
]
