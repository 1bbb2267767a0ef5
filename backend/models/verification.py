"""Verification findings and result data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Any, Union

from .documents import PhotoAnalysis


class VerificationStatus(Enum):
    """Outcome classification of a verification run."""
    VERIFIED = "verified"
    FLAGGED = "flagged"
    DISPUTED = "disputed"


class InvoiceStatus(Enum):
    """Status stored on an invoice record. PENDING is never produced by verification."""
    PENDING = "pending"
    VERIFIED = "verified"
    FLAGGED = "flagged"
    DISPUTED = "disputed"


class FindingKind(Enum):
    """Kinds of findings; values are the keys used in the serialized findings mapping."""
    CREW_DISCREPANCY = "crewDiscrepancy"
    MOBILIZATION_FEES = "mobilizationFees"
    WORK_SCOPE = "workScope"
    PHOTO_VERIFICATION = "photoVerification"


@dataclass(frozen=True)
class CrewDiscrepancyFinding:
    """
    Billed hours do not line up with the hours recorded per crew member.

    Attributes:
        status: Display status (e.g., "⚠️ WARNING")
        invoice_claims: What the invoice bills, e.g. "40 hours"
        work_order_shows: What the work order records
        question: Clarification to put to the contractor
        potential_overcharge: Estimated overcharge in invoice currency
    """
    status: str
    invoice_claims: str
    work_order_shows: str
    question: str
    potential_overcharge: Optional[float] = None

    kind = FindingKind.CREW_DISCREPANCY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "invoiceClaims": self.invoice_claims,
            "workOrderShows": self.work_order_shows,
            "question": self.question,
            "potentialOvercharge": self.potential_overcharge,
        }


@dataclass(frozen=True)
class MobilizationFeesFinding:
    """
    Mobilization billed for more than one unit.

    Attributes:
        status: Display status (e.g., "⚠️ REVIEW NEEDED")
        claimed: Billed mobilization amount
        question: Clarification to put to the contractor
        potential_overcharge: Estimated overcharge in invoice currency
    """
    status: str
    claimed: Optional[float]
    question: str
    potential_overcharge: Optional[float] = None

    kind = FindingKind.MOBILIZATION_FEES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "claimed": self.claimed,
            "question": self.question,
            "potentialOvercharge": self.potential_overcharge,
        }


@dataclass(frozen=True)
class WorkScopeFinding:
    """Claimed hours set against the described scope of work."""
    status: str
    claimed_hours: float
    work_description: str

    kind = FindingKind.WORK_SCOPE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "claimedHours": self.claimed_hours,
            "workDescription": self.work_description,
        }


@dataclass(frozen=True)
class PhotoVerificationFinding:
    """The photo analysis (extracted or fallback) attached to every run."""
    analysis: PhotoAnalysis

    kind = FindingKind.PHOTO_VERIFICATION

    def to_dict(self) -> Dict[str, Any]:
        return self.analysis.to_dict()


Finding = Union[
    CrewDiscrepancyFinding,
    MobilizationFeesFinding,
    WorkScopeFinding,
    PhotoVerificationFinding,
]


@dataclass(frozen=True)
class VerificationResult:
    """
    Verdict for one invoice submission.

    Attributes:
        status: verified / flagged / disputed, derived from confidence
        confidence: Integer confidence score, 0-100
        findings: At most one finding per kind; a missing kind did not trigger
        flags: Machine-readable rule identifiers, in trigger order
        recommendations: Human-readable next steps, in trigger order
    """
    status: VerificationStatus
    confidence: int
    findings: Dict[FindingKind, Finding] = field(default_factory=dict)
    flags: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def finding(self, kind: FindingKind) -> Optional[Finding]:
        return self.findings.get(kind)

    def findings_dict(self) -> Dict[str, Any]:
        return {kind.value: finding.to_dict() for kind, finding in self.findings.items()}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "confidence": self.confidence,
            "findings": self.findings_dict(),
            "flags": list(self.flags),
            "recommendations": list(self.recommendations),
        }
