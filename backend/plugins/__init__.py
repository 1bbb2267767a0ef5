"""Semantic Kernel plugins for invoice, work order and photo extraction."""

from .invoice_parser import InvoiceParserPlugin
from .work_order_parser import WorkOrderParserPlugin
from .photo_analyzer import PhotoAnalyzerPlugin
from .extraction_service import ExtractionService

__all__ = [
    "InvoiceParserPlugin",
    "WorkOrderParserPlugin",
    "PhotoAnalyzerPlugin",
    "ExtractionService",
]
