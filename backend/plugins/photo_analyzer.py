"""Job-site photo analysis plugin for Semantic Kernel using AWS Bedrock vision."""

import logging
import time
from typing import List, Tuple

from semantic_kernel.functions import kernel_function

from ..models.documents import PhotoAnalysis
from ..utils.bedrock_client import BedrockClient
from ..utils.errors import ExtractionFailure, ErrorType, handle_extraction_error
from ..utils.response_formatter import ResponseFormatter
from .document_utils import build_content_block, build_messages, detect_document_format
from .schema import PayloadReader

logger = logging.getLogger(__name__)


PHOTO_PROMPT = """Analyze these construction job site photos and provide:
{
  "workCompleted": boolean,
  "crewVisible": number (count visible workers),
  "equipmentConfirmed": boolean,
  "estimatedWorkHours": "X-Y hours",
  "workScope": "description of work visible",
  "confidence": number (0-100)
}

Return ONLY valid JSON."""


class PhotoAnalyzerPlugin:
    """
    Semantic Kernel plugin for reading job-site photos as work evidence.

    All photos of a submission go to the model in a single call so the
    analysis describes the job as a whole rather than each frame.
    """

    def __init__(self, bedrock_client: BedrockClient, max_tokens: int = 500):
        self.bedrock = bedrock_client
        self.max_tokens = max_tokens
        logger.info("Initialized PhotoAnalyzerPlugin")

    @kernel_function(
        name="analyze_job_site_photos",
        description=(
            "Analyze job-site photos to confirm work completion, visible crew, "
            "equipment on site and the scope of work performed."
        )
    )
    async def analyze_photos(self, photos: List[Tuple[str, bytes]]) -> PhotoAnalysis:
        """
        Analyze a batch of job-site photos.

        Args:
            photos: List of (filename, bytes) tuples

        Returns:
            PhotoAnalysis

        Raises:
            ExtractionFailure: If the call fails or the response is malformed
        """
        batch_name = f"{len(photos)} photo(s)"
        try:
            if not photos:
                raise ExtractionFailure.malformed("photos", "no photos supplied for analysis")

            start_time = time.time()
            logger.info(f"Starting photo analysis: {batch_name}")

            blocks = []
            for index, (filename, image_bytes) in enumerate(photos):
                image_format = detect_document_format(image_bytes, filename)
                logger.debug(f"Photo {index}: {filename} ({len(image_bytes)} bytes, {image_format})")
                blocks.append(build_content_block(image_bytes, image_format, f"photo-{index}"))

            response = await self.bedrock.converse(
                messages=build_messages(blocks, PHOTO_PROMPT),
                temperature=0.1,
                max_tokens=self.max_tokens
            )

            payload = ResponseFormatter.extract_json_from_response(response.get("text", ""))
            if payload is None:
                raise ExtractionFailure.malformed("photos", "response contained no JSON object")

            analysis = self.structure_analysis(payload)

            logger.info(
                f"Photo analysis complete for {batch_name}: "
                f"work_completed={analysis.work_completed}, crew_visible={analysis.crew_visible}, "
                f"confidence={analysis.confidence} in {time.time() - start_time:.3f}s"
            )
            return analysis

        except Exception as e:
            handle_extraction_error(e, batch_name, ErrorType.PHOTO_ANALYSIS_FAILED, logger)

    def structure_analysis(self, payload: dict) -> PhotoAnalysis:
        """Validate a raw photo-analysis payload and convert it to PhotoAnalysis."""
        reader = PayloadReader(payload, "photos")

        confidence = reader.require_float("confidence")
        if not 0 <= confidence <= 100:
            logger.warning(f"Photo confidence {confidence} outside 0-100, clamping")
            confidence = max(0.0, min(100.0, confidence))

        crew_visible = reader.optional_float("crewVisible")

        return PhotoAnalysis(
            work_completed=reader.require_bool("workCompleted"),
            crew_visible=max(0, int(crew_visible or 0)),
            equipment_confirmed=reader.optional_bool("equipmentConfirmed", False),
            estimated_work_hours=reader.optional_str("estimatedWorkHours", "Unknown"),
            work_scope=reader.optional_str("workScope", ""),
            confidence=confidence,
        )
