"""Cross-validation of invoice billing against work-order and photo evidence."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..models.documents import InvoiceData, LineItem, PhotoAnalysis, WorkOrderData
from ..models.verification import (
    CrewDiscrepancyFinding,
    Finding,
    FindingKind,
    MobilizationFeesFinding,
    PhotoVerificationFinding,
)
from ..utils.config import RulesConfig

logger = logging.getLogger(__name__)

# Heuristics with no documented derivation; overridable from config.yaml
CREW_HOUR_TOLERANCE = 1.0
MOBILIZATION_OVERCHARGE_RATIO = 0.66

FLAG_CREW_HOUR_DISCREPANCY = "crew_hour_discrepancy"
FLAG_HIGH_MOBILIZATION_FEES = "high_mobilization_fees"

RECOMMEND_HOURLY_CLARIFICATION = "Request clarification on hourly billing structure"
RECOMMEND_NEGOTIATE_MOBILIZATION = "Negotiate mobilization fees"
RECOMMEND_PHOTO_COMPLETION = "Work completion verified via photos"


@dataclass
class CrossValidationReport:
    """
    Findings produced by one cross-validation pass.

    Attributes:
        findings: At most one finding per kind
        flags: Rule identifiers in trigger order, without duplicates
        recommendations: Next steps in trigger order
    """
    findings: Dict[FindingKind, Finding] = field(default_factory=dict)
    flags: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def add(self, finding: Finding, flag: Optional[str] = None, recommendation: Optional[str] = None) -> None:
        self.findings[finding.kind] = finding
        if flag and flag not in self.flags:
            self.flags.append(flag)
        if recommendation:
            self.recommendations.append(recommendation)

    def has(self, kind: FindingKind) -> bool:
        return kind in self.findings


def find_line_item(invoice: InvoiceData, keyword: str) -> Optional[LineItem]:
    """Return the first line item whose description contains ``keyword`` (case-insensitive)."""
    keyword = keyword.lower()
    for item in invoice.line_items:
        if keyword in (item.description or "").lower():
            return item
    return None


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class CrossValidator:
    """
    Fixed rule set comparing what an invoice bills with independent evidence.

    Rules never raise: data a rule needs but does not have simply keeps
    the rule from triggering, so every submission gets a verdict. The
    validator holds no state between calls.
    """

    def __init__(self, rules: Optional[RulesConfig] = None):
        self.rules = rules or RulesConfig(
            crew_hour_tolerance=CREW_HOUR_TOLERANCE,
            mobilization_overcharge_ratio=MOBILIZATION_OVERCHARGE_RATIO,
        )

    def validate(
        self,
        invoice: InvoiceData,
        work_order: WorkOrderData,
        photos: PhotoAnalysis
    ) -> CrossValidationReport:
        """
        Run every rule in order and collect findings, flags and recommendations.

        Args:
            invoice: Extracted invoice
            work_order: Extracted work order or its fallback sentinel
            photos: Photo analysis or its fallback sentinel

        Returns:
            CrossValidationReport
        """
        report = CrossValidationReport()

        self.check_crew_hours(invoice, work_order, report)
        self.check_mobilization_fees(invoice, report)
        self.attach_photo_verification(photos, report)

        logger.info(
            f"Cross-validation complete for invoice {invoice.invoice_number}: "
            f"findings={[kind.value for kind in report.findings]}, flags={report.flags}"
        )
        return report

    def check_crew_hours(
        self,
        invoice: InvoiceData,
        work_order: WorkOrderData,
        report: CrossValidationReport
    ) -> None:
        """Compare billed hours with the average hours recorded per crew member."""
        hourly_item = find_line_item(invoice, "hour")
        if hourly_item is None:
            logger.debug("No hourly line item; skipping crew-hour check")
            return

        crew_count = work_order.crew_count
        if crew_count == 0:
            logger.debug("Work order lists no crew; skipping crew-hour check")
            return

        claimed_hours = hourly_item.quantity or 0.0
        total_crew_hours = work_order.total_crew_hours
        avg_hours_per_crew = total_crew_hours / crew_count

        if claimed_hours <= 0 or total_crew_hours <= 0:
            return
        if abs(claimed_hours - avg_hours_per_crew) <= self.rules.crew_hour_tolerance:
            return

        unit_price = hourly_item.unit_price or 0.0
        potential_overcharge = (claimed_hours * crew_count - claimed_hours) * unit_price

        finding = CrewDiscrepancyFinding(
            status="⚠️ WARNING",
            invoice_claims=f"{_format_number(claimed_hours)} hours",
            work_order_shows=(
                f"{crew_count} crew × {avg_hours_per_crew:.1f} hours = "
                f"{_format_number(total_crew_hours)} total"
            ),
            question="Is this per-person or total crew hours?",
            potential_overcharge=potential_overcharge,
        )
        report.add(finding, FLAG_CREW_HOUR_DISCREPANCY, RECOMMEND_HOURLY_CLARIFICATION)
        logger.info(
            f"Crew-hour discrepancy: claimed={claimed_hours}, "
            f"avg_per_crew={avg_hours_per_crew:.1f}, overcharge={potential_overcharge:.2f}"
        )

    def check_mobilization_fees(self, invoice: InvoiceData, report: CrossValidationReport) -> None:
        """Flag mobilization billed for more than one unit."""
        mobilization_item = find_line_item(invoice, "mobilization")
        if mobilization_item is None or (mobilization_item.quantity or 0) <= 1:
            return

        amount = mobilization_item.amount
        potential_overcharge = (amount or 0.0) * self.rules.mobilization_overcharge_ratio

        finding = MobilizationFeesFinding(
            status="⚠️ REVIEW NEEDED",
            claimed=amount,
            question="Industry standard is 1 hour total for local jobs",
            potential_overcharge=potential_overcharge,
        )
        report.add(finding, FLAG_HIGH_MOBILIZATION_FEES, RECOMMEND_NEGOTIATE_MOBILIZATION)
        logger.info(
            f"High mobilization fees: quantity={mobilization_item.quantity}, "
            f"overcharge={potential_overcharge:.2f}"
        )

    def attach_photo_verification(self, photos: PhotoAnalysis, report: CrossValidationReport) -> None:
        """Always attach the photo analysis; recommend nothing unless it shows completed work."""
        report.add(
            PhotoVerificationFinding(analysis=photos),
            recommendation=RECOMMEND_PHOTO_COMPLETION if photos.work_completed else None,
        )
