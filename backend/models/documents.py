"""Structured data extracted from invoices, work orders, and job-site photos."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Dict, Any, Generic, TypeVar


@dataclass(frozen=True)
class LineItem:
    """
    A single billed line on a construction invoice.

    Attributes:
        description: Free-text description (e.g., "40 hours labor")
        quantity: Billed quantity, None when not shown on the document
        unit_price: Price per unit, None when not shown
        amount: Line total, None when not shown
    """
    description: str
    quantity: Optional[float] = None
    unit_price: Optional[float] = None
    amount: Optional[float] = None


@dataclass(frozen=True)
class InvoiceData:
    """
    Invoice fields extracted from the submitted invoice document.

    Attributes:
        invoice_number: Invoice identifier
        contractor: Contractor / vendor name
        date: Invoice date (YYYY-MM-DD when the model could normalize it)
        due_date: Payment due date
        line_items: Billed lines in document order
        subtotal: Amount before tax
        tax: Tax amount
        total: Amount including tax
    """
    invoice_number: str
    contractor: str
    date: Optional[str]
    due_date: Optional[str]
    line_items: List[LineItem] = field(default_factory=list)
    subtotal: Optional[float] = None
    tax: Optional[float] = None
    total: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "invoiceNumber": self.invoice_number,
            "contractor": self.contractor,
            "date": self.date,
            "dueDate": self.due_date,
            "lineItems": [
                {
                    "description": item.description,
                    "quantity": item.quantity,
                    "unitPrice": item.unit_price,
                    "amount": item.amount,
                }
                for item in self.line_items
            ],
            "subtotal": self.subtotal,
            "tax": self.tax,
            "total": self.total,
        }


@dataclass(frozen=True)
class WorkOrderData:
    """
    Crew, hours, and equipment recorded on a work order.

    ``hours_per_crew`` is parallel to ``crew``: index i of one belongs to
    index i of the other.

    Attributes:
        work_order_number: Work order identifier ("N/A" for the fallback)
        crew: Crew member names
        hours_per_crew: Regular hours worked per crew member
        equipment: Equipment names
        work_description: Description of the work performed
        date: Work date
    """
    work_order_number: str
    crew: List[str] = field(default_factory=list)
    hours_per_crew: List[float] = field(default_factory=list)
    equipment: List[str] = field(default_factory=list)
    work_description: str = ""
    date: Optional[str] = None

    @property
    def crew_count(self) -> int:
        return len(self.crew)

    @property
    def total_crew_hours(self) -> float:
        """Sum of crew hours, or 0 when the hours list does not line up with the crew list."""
        if len(self.hours_per_crew) != len(self.crew):
            return 0.0
        return float(sum(self.hours_per_crew))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workOrderNumber": self.work_order_number,
            "crew": list(self.crew),
            "hoursPerCrew": list(self.hours_per_crew),
            "equipment": list(self.equipment),
            "workDescription": self.work_description,
            "date": self.date,
        }


@dataclass(frozen=True)
class PhotoAnalysis:
    """
    Evidence read from job-site photos.

    Attributes:
        work_completed: Whether the photos show the work as finished
        crew_visible: Number of workers visible across the photos
        equipment_confirmed: Whether billed equipment is visible
        estimated_work_hours: Free-text range, e.g. "6-8 hours"
        work_scope: Description of the work visible
        confidence: Model confidence in this analysis, 0-100
    """
    work_completed: bool
    crew_visible: int
    equipment_confirmed: bool
    estimated_work_hours: str
    work_scope: str
    confidence: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "workCompleted": self.work_completed,
            "crewVisible": self.crew_visible,
            "equipmentConfirmed": self.equipment_confirmed,
            "estimatedWorkHours": self.estimated_work_hours,
            "workScope": self.work_scope,
            "confidence": self.confidence,
        }


class Provenance(Enum):
    """Where a piece of evidence came from."""
    EXTRACTED = "extracted"
    FALLBACK = "fallback"


T = TypeVar("T")


@dataclass(frozen=True)
class SourcedEvidence(Generic[T]):
    """
    Evidence record tagged with its provenance.

    Cross-validation reads ``data`` the same way whether it was extracted
    from a supplied document or produced as a fallback sentinel.
    """
    data: T
    provenance: Provenance

    @property
    def is_fallback(self) -> bool:
        return self.provenance is Provenance.FALLBACK


def extracted(data: T) -> SourcedEvidence[T]:
    return SourcedEvidence(data=data, provenance=Provenance.EXTRACTED)


def fallback(data: T) -> SourcedEvidence[T]:
    return SourcedEvidence(data=data, provenance=Provenance.FALLBACK)


__all__ = [
    "LineItem",
    "InvoiceData",
    "WorkOrderData",
    "PhotoAnalysis",
    "Provenance",
    "SourcedEvidence",
    "extracted",
    "fallback",
]
