"""Work order extraction plugin for Semantic Kernel using AWS Bedrock."""

import logging
import time
from typing import Optional

from semantic_kernel.functions import kernel_function

from ..models.documents import WorkOrderData
from ..utils.bedrock_client import BedrockClient
from ..utils.errors import ExtractionFailure, ErrorType, handle_extraction_error
from ..utils.response_formatter import ResponseFormatter
from .document_utils import build_content_block, build_messages, detect_document_format
from .schema import PayloadReader

logger = logging.getLogger(__name__)


WORK_ORDER_PROMPT = """Analyze this work order and extract:
{
  "workOrderNumber": "string",
  "crew": ["name1", "name2"],
  "hoursPerCrew": [hours1, hours2],
  "equipment": ["equipment1", "equipment2"],
  "workDescription": "string",
  "date": "YYYY-MM-DD"
}

Look for crew member names, regular hours worked, equipment used.
hoursPerCrew must have one entry per crew member, in the same order as crew.
Return ONLY valid JSON."""


class WorkOrderParserPlugin:
    """Semantic Kernel plugin that turns a work order into WorkOrderData."""

    def __init__(self, bedrock_client: BedrockClient, max_tokens: int = 800):
        self.bedrock = bedrock_client
        self.max_tokens = max_tokens
        logger.info("Initialized WorkOrderParserPlugin")

    @kernel_function(
        name="parse_work_order",
        description=(
            "Extract crew names, hours per crew member, equipment and work "
            "description from a work order PDF or image."
        )
    )
    async def parse_work_order(
        self,
        document_bytes: bytes,
        document_name: str = "work_order",
        document_format: Optional[str] = None
    ) -> WorkOrderData:
        """
        Extract a work order document.

        Raises:
            ExtractionFailure: If the call fails or the response is malformed
        """
        try:
            start_time = time.time()
            logger.info(f"Starting work order extraction: {document_name} ({len(document_bytes)} bytes)")

            if document_format is None:
                document_format = detect_document_format(document_bytes, document_name)

            messages = build_messages(
                [build_content_block(document_bytes, document_format, document_name)],
                WORK_ORDER_PROMPT
            )

            response = await self.bedrock.converse(
                messages=messages,
                temperature=0.1,
                max_tokens=self.max_tokens
            )

            payload = ResponseFormatter.extract_json_from_response(response.get("text", ""))
            if payload is None:
                raise ExtractionFailure.malformed("work_order", "response contained no JSON object")

            work_order = self.structure_work_order(payload)

            logger.info(
                f"Work order extraction complete for {document_name}: "
                f"number={work_order.work_order_number}, crew={work_order.crew_count}, "
                f"total_hours={work_order.total_crew_hours} in {time.time() - start_time:.3f}s"
            )
            return work_order

        except Exception as e:
            handle_extraction_error(e, document_name, ErrorType.WORK_ORDER_EXTRACTION_FAILED, logger)

    def structure_work_order(self, payload: dict) -> WorkOrderData:
        """
        Validate a raw work order payload and convert it to WorkOrderData.

        A crew/hours length mismatch is kept as-is and logged; the crew-hour
        rule treats it as zero recorded hours rather than guessing an alignment.
        """
        reader = PayloadReader(payload, "work_order")

        crew = reader.str_list("crew", required=True)
        hours_per_crew = reader.float_list("hoursPerCrew", required=True)

        if len(crew) != len(hours_per_crew):
            logger.warning(
                f"Work order crew/hours length mismatch: "
                f"{len(crew)} crew, {len(hours_per_crew)} hour entries"
            )

        return WorkOrderData(
            work_order_number=reader.optional_str("workOrderNumber", "N/A"),
            crew=crew,
            hours_per_crew=hours_per_crew,
            equipment=reader.str_list("equipment"),
            work_description=reader.optional_str("workDescription", ""),
            date=reader.optional_str("date"),
        )
