"""Extraction adapter grouping the three Bedrock document plugins."""

import logging
from typing import List

from ..models.documents import InvoiceData, PhotoAnalysis, WorkOrderData
from ..models.submission import DocumentUpload
from ..utils.bedrock_client import BedrockClient
from .invoice_parser import InvoiceParserPlugin
from .photo_analyzer import PhotoAnalyzerPlugin
from .work_order_parser import WorkOrderParserPlugin

logger = logging.getLogger(__name__)


class ExtractionService:
    """
    Document-understanding adapter used by the verification orchestrator.

    Each method either returns a validated record or raises
    ExtractionFailure. Retries happen inside BedrockClient, never here.
    """

    def __init__(self, bedrock_client: BedrockClient):
        self.invoice_parser = InvoiceParserPlugin(bedrock_client)
        self.work_order_parser = WorkOrderParserPlugin(bedrock_client)
        self.photo_analyzer = PhotoAnalyzerPlugin(bedrock_client)

    async def extract_invoice(self, document: DocumentUpload) -> InvoiceData:
        return await self.invoice_parser.parse_invoice(
            document_bytes=document.data,
            document_name=document.filename
        )

    async def extract_work_order(self, document: DocumentUpload) -> WorkOrderData:
        return await self.work_order_parser.parse_work_order(
            document_bytes=document.data,
            document_name=document.filename
        )

    async def analyze_photos(self, documents: List[DocumentUpload]) -> PhotoAnalysis:
        return await self.photo_analyzer.analyze_photos(
            [(document.filename, document.data) for document in documents]
        )
