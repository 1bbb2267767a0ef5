"""Verification orchestrator: extraction, fallbacks, cross-validation and scoring."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..models.documents import (
    InvoiceData,
    PhotoAnalysis,
    SourcedEvidence,
    WorkOrderData,
    extracted,
)
from ..models.submission import DocumentUpload
from ..models.verification import VerificationResult
from ..rules.cross_validation import CrossValidator
from ..rules.scoring import ConfidenceScorer
from ..utils.config import RulesConfig
from ..utils.errors import ValidationError
from .fallbacks import fallback_photo_analysis, fallback_work_order

logger = logging.getLogger(__name__)


@dataclass
class VerificationRun:
    """
    Everything one verification pass produced.

    Attributes:
        invoice: Extracted invoice
        work_order: Extracted work order or fallback
        photos: Photo analysis or fallback
        result: Scored verification result
        timings: Seconds spent on the invoice step and the optional steps
    """
    invoice: InvoiceData
    work_order: SourcedEvidence[WorkOrderData]
    photos: SourcedEvidence[PhotoAnalysis]
    result: VerificationResult
    timings: Dict[str, float] = field(default_factory=dict)


class VerificationOrchestrator:
    """
    Sequences extraction, fallbacks, cross-validation and scoring for one submission.

    The orchestrator keeps no state between runs. An absent optional
    document falls back to a sentinel; a supplied document that cannot be
    extracted fails the run.

    Attributes:
        extraction: Extraction adapter (extract_invoice / extract_work_order / analyze_photos)
        validator: Cross-validation rule set
        scorer: Confidence scorer and classifier
    """

    def __init__(self, extraction, rules: Optional[RulesConfig] = None):
        """
        Initialize the orchestrator.

        Args:
            extraction: Object exposing the three async extraction operations
            rules: Rule heuristics and scoring weights
        """
        self.extraction = extraction
        self.validator = CrossValidator(rules)
        self.scorer = ConfidenceScorer(rules)
        logger.info("Initialized VerificationOrchestrator")

    async def verify(
        self,
        invoice_document: Optional[DocumentUpload],
        work_order_document: Optional[DocumentUpload] = None,
        photo_documents: Optional[List[DocumentUpload]] = None
    ) -> VerificationRun:
        """
        Verify one invoice submission.

        Args:
            invoice_document: Required invoice document
            work_order_document: Optional work order document
            photo_documents: Optional job-site photos

        Returns:
            VerificationRun with the extracted evidence and the result

        Raises:
            ValidationError: If the invoice document is missing
            ExtractionFailure: If any supplied document cannot be extracted
        """
        if invoice_document is None or not invoice_document.data:
            raise ValidationError.missing_input("invoice")

        photo_documents = photo_documents or []
        timings = {}

        start = time.time()
        invoice = await self.extraction.extract_invoice(invoice_document)
        timings["invoice"] = time.time() - start

        # Optional extractions are independent of each other; both finish before validation
        start = time.time()
        work_order, photos = await asyncio.gather(
            self._work_order_evidence(invoice, work_order_document),
            self._photo_evidence(photo_documents),
        )
        timings["optional"] = time.time() - start

        report = self.validator.validate(invoice, work_order.data, photos.data)
        result = self.scorer.build_result(report, photos.data)

        logger.info(
            f"Verification complete for invoice {invoice.invoice_number}: "
            f"status={result.status.value}, confidence={result.confidence}, "
            f"work_order={work_order.provenance.value}, photos={photos.provenance.value}, "
            f"invoice={timings['invoice']:.3f}s, optional={timings['optional']:.3f}s"
        )

        return VerificationRun(
            invoice=invoice,
            work_order=work_order,
            photos=photos,
            result=result,
            timings=timings,
        )

    async def _work_order_evidence(
        self,
        invoice: InvoiceData,
        document: Optional[DocumentUpload]
    ) -> SourcedEvidence[WorkOrderData]:
        if document is None:
            logger.info("No work order supplied; using fallback")
            return fallback_work_order(invoice)
        return extracted(await self.extraction.extract_work_order(document))

    async def _photo_evidence(self, documents: List[DocumentUpload]) -> SourcedEvidence[PhotoAnalysis]:
        if not documents:
            logger.info("No photos supplied; using fallback")
            return fallback_photo_analysis()
        return extracted(await self.extraction.analyze_photos(documents))
