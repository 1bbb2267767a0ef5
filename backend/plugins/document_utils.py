"""Document format detection and Converse content-block construction."""

import logging
import re
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

IMAGE_FORMATS = {"jpeg", "png", "gif", "webp"}

_EXTENSION_FORMATS = {
    "pdf": "pdf",
    "jpg": "jpeg",
    "jpeg": "jpeg",
    "png": "png",
    "gif": "gif",
    "webp": "webp",
}


def detect_document_format(document_bytes: bytes, filename: Optional[str] = None) -> str:
    """
    Detect document format from magic bytes, falling back to the filename extension.

    Args:
        document_bytes: Raw document bytes
        filename: Optional filename used when the bytes are not recognized

    Returns:
        Format string ("pdf", "jpeg", "png", "gif", "webp")
    """
    if document_bytes.startswith(b'%PDF'):
        return "pdf"
    if document_bytes.startswith(b'\xff\xd8\xff'):
        return "jpeg"
    if document_bytes.startswith(b'\x89PNG\r\n\x1a\n'):
        return "png"
    if document_bytes.startswith(b'GIF87a') or document_bytes.startswith(b'GIF89a'):
        return "gif"
    if document_bytes.startswith(b'RIFF') and b'WEBP' in document_bytes[:12]:
        return "webp"

    if filename and "." in filename:
        by_extension = _EXTENSION_FORMATS.get(filename.rsplit(".", 1)[-1].lower())
        if by_extension:
            return by_extension

    logger.warning("Unknown document format, defaulting to PDF")
    return "pdf"


def _document_block_name(name: str) -> str:
    # Converse document names allow alphanumerics, spaces, hyphens, parentheses and brackets
    cleaned = re.sub(r"[^A-Za-z0-9\-\(\)\[\] ]", "-", name).strip()
    return cleaned[:200] or "document"


def build_content_block(
    document_bytes: bytes,
    document_format: str,
    name: str = "document"
) -> Dict[str, Any]:
    """
    Build an image or document content block for the Converse API.

    boto3 encodes the raw bytes itself, so no base64 step is needed here.
    """
    if document_format in IMAGE_FORMATS:
        return {
            "image": {
                "format": document_format,
                "source": {"bytes": document_bytes}
            }
        }
    return {
        "document": {
            "format": document_format,
            "name": _document_block_name(name),
            "source": {"bytes": document_bytes}
        }
    }


def build_messages(blocks: List[Dict[str, Any]], prompt: str) -> List[Dict[str, Any]]:
    """Wrap content blocks and the instruction prompt in a single user message."""
    return [
        {
            "role": "user",
            "content": [*blocks, {"text": prompt}]
        }
    ]

