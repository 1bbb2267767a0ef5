"""Invoice extraction plugin for Semantic Kernel using AWS Bedrock."""

import logging
import time
from typing import Optional

from semantic_kernel.functions import kernel_function

from ..models.documents import InvoiceData, LineItem
from ..utils.bedrock_client import BedrockClient
from ..utils.errors import ExtractionFailure, ErrorType, handle_extraction_error
from ..utils.response_formatter import ResponseFormatter
from .document_utils import build_content_block, build_messages, detect_document_format
from .schema import PayloadReader

logger = logging.getLogger(__name__)


INVOICE_PROMPT = """Analyze this construction invoice and extract the following information in JSON format:
{
  "invoiceNumber": "string",
  "contractor": "string",
  "date": "YYYY-MM-DD",
  "dueDate": "YYYY-MM-DD",
  "lineItems": [
    {
      "description": "string",
      "quantity": number,
      "unitPrice": number,
      "amount": number
    }
  ],
  "subtotal": number,
  "tax": number,
  "total": number
}

Extract exact values from the invoice. If a field is not visible, use null.
Amounts must be numbers without currency symbols.
Return ONLY valid JSON, no explanations."""


class InvoiceParserPlugin:
    """
    Semantic Kernel plugin that turns a construction invoice into InvoiceData.

    Handles PDF and image invoices. The model's JSON is shape-checked
    before use; a response missing the invoice number or line items is
    treated as an extraction failure. A null total is kept as None.
    """

    def __init__(self, bedrock_client: BedrockClient, max_tokens: int = 1000):
        """
        Initialize invoice parser plugin.

        Args:
            bedrock_client: Configured BedrockClient instance
            max_tokens: Response token budget for the extraction call
        """
        self.bedrock = bedrock_client
        self.max_tokens = max_tokens
        logger.info("Initialized InvoiceParserPlugin")

    @kernel_function(
        name="parse_invoice",
        description=(
            "Extract structured data from a construction invoice PDF or image. "
            "Returns invoice number, contractor, dates, line items and totals."
        )
    )
    async def parse_invoice(
        self,
        document_bytes: bytes,
        document_name: str = "invoice",
        document_format: Optional[str] = None
    ) -> InvoiceData:
        """
        Extract an invoice document.

        Args:
            document_bytes: Raw document bytes (PDF, JPEG, PNG, ...)
            document_name: Name/identifier for the document
            document_format: Optional format hint ("pdf", "jpeg", "png")

        Returns:
            InvoiceData

        Raises:
            ExtractionFailure: If the call fails or the response is malformed
        """
        try:
            start_time = time.time()
            logger.info(f"Starting invoice extraction: {document_name} ({len(document_bytes)} bytes)")

            if document_format is None:
                document_format = detect_document_format(document_bytes, document_name)

            messages = build_messages(
                [build_content_block(document_bytes, document_format, document_name)],
                INVOICE_PROMPT
            )

            response = await self.bedrock.converse(
                messages=messages,
                temperature=0.1,
                max_tokens=self.max_tokens
            )

            payload = ResponseFormatter.extract_json_from_response(response.get("text", ""))
            if payload is None:
                raise ExtractionFailure.malformed("invoice", "response contained no JSON object")

            invoice = self.structure_invoice(payload)

            logger.info(
                f"Invoice extraction complete for {document_name}: "
                f"number={invoice.invoice_number}, contractor={invoice.contractor}, "
                f"line_items={len(invoice.line_items)}, total={invoice.total} "
                f"in {time.time() - start_time:.3f}s"
            )
            return invoice

        except Exception as e:
            handle_extraction_error(e, document_name, ErrorType.INVOICE_EXTRACTION_FAILED, logger)

    def structure_invoice(self, payload: dict) -> InvoiceData:
        """
        Validate a raw invoice payload and convert it to InvoiceData.

        Args:
            payload: JSON object returned by the model

        Returns:
            InvoiceData

        Raises:
            ExtractionFailure: If a required field is missing or malformed
        """
        reader = PayloadReader(payload, "invoice")

        line_items = []
        for index, raw_item in enumerate(reader.require_list("lineItems")):
            if not isinstance(raw_item, dict):
                raise ExtractionFailure.malformed("invoice", f"lineItems[{index}] is not an object")
            line_items.append(
                LineItem(
                    description=str(raw_item.get("description") or "").strip(),
                    quantity=reader.optional_float("quantity", raw_item),
                    unit_price=reader.optional_float("unitPrice", raw_item),
                    amount=reader.optional_float("amount", raw_item),
                )
            )

        return InvoiceData(
            invoice_number=reader.require_str("invoiceNumber"),
            contractor=reader.optional_str("contractor", "Unknown Contractor"),
            date=reader.optional_str("date"),
            due_date=reader.optional_str("dueDate"),
            line_items=line_items,
            subtotal=reader.optional_float("subtotal"),
            tax=reader.optional_float("tax"),
            total=reader.optional_float("total"),
        )
