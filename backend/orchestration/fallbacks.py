"""Placeholder evidence for optional inputs that were not supplied."""

from ..models.documents import (
    InvoiceData,
    PhotoAnalysis,
    SourcedEvidence,
    WorkOrderData,
    fallback,
)

NO_WORK_ORDER_NUMBER = "N/A"
NO_PHOTOS_SCOPE = "No photos provided"


def fallback_work_order(invoice: InvoiceData) -> SourcedEvidence[WorkOrderData]:
    """Empty work order dated like the invoice, so no rule special-cases a missing one."""
    return fallback(
        WorkOrderData(
            work_order_number=NO_WORK_ORDER_NUMBER,
            crew=[],
            hours_per_crew=[],
            equipment=[],
            work_description="",
            date=invoice.date,
        )
    )


def fallback_photo_analysis() -> SourcedEvidence[PhotoAnalysis]:
    """Photo analysis showing no evidence at zero confidence."""
    return fallback(
        PhotoAnalysis(
            work_completed=False,
            crew_visible=0,
            equipment_confirmed=False,
            estimated_work_hours="Unknown",
            work_scope=NO_PHOTOS_SCOPE,
            confidence=0,
        )
    )
