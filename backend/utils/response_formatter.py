"""JSON extraction helpers for model responses."""

import json
import logging
import re
from typing import Dict, Any, Optional

logger = logging.getLogger(__name__)


class ResponseFormatter:
    """
    Utility class for pulling a JSON object out of model output.

    Extraction models are told to return only JSON, but they still wrap
    it in markdown fences or prefix it with prose often enough that every
    parser goes through this class instead of calling ``json.loads``.
    """

    _FENCE_PATTERNS = (
        re.compile(r'```json\s*\n(.*?)\n?```', re.DOTALL),
        re.compile(r'```\s*\n(.*?)\n?```', re.DOTALL),
    )

    @staticmethod
    def extract_json_from_response(response_text: str) -> Optional[Dict[str, Any]]:
        """
        Extract a JSON object from various response formats.

        Tries, in order:
        1. Markdown code blocks (```json ... ```)
        2. Raw JSON (entire response)
        3. JSON embedded in text (first complete object)

        Args:
            response_text: Raw response text that may contain JSON

        Returns:
            Parsed JSON dictionary, or None if no JSON object was found
        """
        if not response_text or not response_text.strip():
            logger.warning("Empty response text provided")
            return None

        text = response_text.strip()

        for extractor in (
            ResponseFormatter._extract_markdown_json,
            ResponseFormatter._extract_raw_json,
            ResponseFormatter._extract_embedded_json,
        ):
            data = extractor(text)
            if isinstance(data, dict):
                return data

        logger.warning(f"Failed to extract JSON from response: {text[:200]}...")
        return None

    @staticmethod
    def _extract_markdown_json(text: str) -> Optional[Any]:
        for pattern in ResponseFormatter._FENCE_PATTERNS:
            match = pattern.search(text)
            if match:
                try:
                    return json.loads(match.group(1).strip())
                except json.JSONDecodeError:
                    continue
        return None

    @staticmethod
    def _extract_raw_json(text: str) -> Optional[Any]:
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return None

    @staticmethod
    def _extract_embedded_json(text: str) -> Optional[Dict[str, Any]]:
        """
        Find and extract a JSON object embedded in text using brace counting.

        Args:
            text: Response text

        Returns:
            Parsed JSON dict or None
        """
        start_idx = text.find('{')
        if start_idx == -1:
            return None

        brace_count = 0
        in_string = False
        escape_next = False

        for i, char in enumerate(text[start_idx:], start_idx):
            if escape_next:
                escape_next = False
                continue
            if char == '\\':
                escape_next = True
                continue
            if char == '"':
                in_string = not in_string
                continue
            if in_string:
                continue

            if char == '{':
                brace_count += 1
            elif char == '}':
                brace_count -= 1
                if brace_count == 0:
                    try:
                        return json.loads(text[start_idx:i + 1])
                    except json.JSONDecodeError:
                        return ResponseFormatter._extract_embedded_json(text[i + 1:])

        return None
