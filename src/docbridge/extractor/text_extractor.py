"""Direct UTF-8 decoding for plain-text and markdown files."""

from __future__ import annotations

import logging

from docbridge.extractor.types import ExtractionError

logger = logging.getLogger(__name__)


class TextExtractor:
    """Decode bytes as UTF-8, substituting U+FFFD for invalid sequences.

    Decoding binary data "succeeds" here; the readability classifier is what
    rejects it afterwards.
    """

    def extract(self, data: bytes) -> str:
        text = data.decode("utf-8", errors="replace")
        if text.startswith("\ufeff"):
            text = text[1:]
        if not text.strip():
            raise ExtractionError("empty text content")
        logger.debug("Decoded %d bytes as UTF-8 (%d chars)", len(data), len(text))
        return text
