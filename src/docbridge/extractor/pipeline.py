"""Format dispatch and cascading fallback for a single document.

``ExtractionPipeline.extract`` picks an extractor from the declared file name
and MIME type:

1. ``.pdf`` or a type containing "pdf"                      -> PDF only
2. ``.docx`` or a type containing "word" / "officedocument"  -> DOCX only
3. ``.txt`` / ``.md`` or ``text/plain`` / markdown           -> text only
4. anything else -> cascade text, PDF, DOCX; first readable result wins

Every result passes through ``clean_text`` and then the readability
classifier. A failure in a direct branch (1-3) yields ``method=error``; the
cascade logs failures and moves on, ending in ``method=failed`` when no
method produced readable text. ``extract`` never raises.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Protocol

from docbridge.config.settings import ExtractionSettings
from docbridge.extractor.cleanup import clean_text
from docbridge.extractor.docx_extractor import DocxExtractor
from docbridge.extractor.pdf_extractor import PAGE_READERS, PdfExtractor
from docbridge.extractor.readability import assess_readability
from docbridge.extractor.text_extractor import TextExtractor
from docbridge.extractor.types import (
    ExtractionMethod,
    ExtractionRequest,
    ExtractionResult,
)

logger = logging.getLogger(__name__)

LOW_CONFIDENCE_PREFIX = (
    "[Warning: the extracted text may be incomplete or garbled. "
    "Review it before relying on it.]\n\n"
)

ERROR_MESSAGES: dict[ExtractionMethod, str] = {
    ExtractionMethod.PDF: (
        "There was an error processing this PDF document. It may be a scanned "
        "document requiring OCR processing, or it may be encrypted."
    ),
    ExtractionMethod.DOCX: (
        "There was an error processing this DOCX document. "
        "It may require specialized handling."
    ),
    ExtractionMethod.TEXT: (
        "There was an error processing this text document. "
        "It may be empty or use an unsupported encoding."
    ),
}

GENERIC_ERROR_MESSAGE = (
    "There was an error processing this document. "
    "It may require specialized handling."
)

FAILED_MESSAGE = (
    "Text could not be extracted from this document automatically. It may be "
    "a scanned or image-based file, encrypted, or in an unsupported format."
)

DEFAULT_CASCADE: tuple[ExtractionMethod, ...] = (
    ExtractionMethod.TEXT,
    ExtractionMethod.PDF,
    ExtractionMethod.DOCX,
)

_DOCX_TYPE_HINTS = ("word", "officedocument")
_TEXT_TYPE_HINTS = ("text/plain", "markdown")

# Used only when the upload carried no content-type
EXTENSION_MIME_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "doc": "application/msword",
    "txt": "text/plain",
    "md": "text/markdown",
    "html": "text/html",
    "htm": "text/html",
    "csv": "text/csv",
    "json": "application/json",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
}


def infer_mime_type(declared_name: str) -> str | None:
    """Guess a content-type from the file extension, or None if unknown."""
    name = declared_name or ""
    if "." not in name:
        return None
    return EXTENSION_MIME_TYPES.get(name.rsplit(".", 1)[-1].lower())


class Extractor(Protocol):
    """A format-specific extractor: bytes in, raw text out, or raise."""

    def extract(self, data: bytes) -> str: ...


def detect_method(declared_name: str, declared_type: str | None) -> ExtractionMethod | None:
    """Map upload metadata to a single extraction method.

    A missing *declared_type* is inferred from the extension, so ``legacy.doc``
    without a content-type still takes the DOCX branch.

    Returns:
        The method to use exclusively, or None when the type is unknown and
        the cascade should run.
    """
    name = (declared_name or "").lower()
    mime = (declared_type or infer_mime_type(declared_name) or "").lower()

    if name.endswith(".pdf") or "pdf" in mime:
        return ExtractionMethod.PDF
    if name.endswith(".docx") or any(hint in mime for hint in _DOCX_TYPE_HINTS):
        return ExtractionMethod.DOCX
    if name.endswith((".txt", ".md")) or any(hint in mime for hint in _TEXT_TYPE_HINTS):
        return ExtractionMethod.TEXT
    return None


def should_reprocess(
    content: str | None,
    is_readable: bool,
    force_reprocess: bool,
    min_content_length: int = 100,
) -> bool:
    """Decide whether a stored document needs extraction at all.

    Previously extracted content longer than *min_content_length* that was
    marked readable is kept unless the caller forces reprocessing.
    """
    if force_reprocess:
        return True
    has_good_content = bool(content) and len(content) > min_content_length and is_readable
    return not has_good_content


class ExtractionPipeline:
    """Extract, clean and classify text from one in-memory document.

    Extractors are injected so tests and long-lived workers control their
    lifecycle; ``from_settings`` builds the default set.

    Args:
        extractors: One extractor per method (TEXT, PDF, DOCX).
        settings: Readability thresholds.
        cascade: Order in which methods are tried for unknown types.
    """

    def __init__(
        self,
        extractors: Mapping[ExtractionMethod, Extractor],
        settings: ExtractionSettings | None = None,
        cascade: Sequence[ExtractionMethod] = DEFAULT_CASCADE,
    ) -> None:
        self._extractors = dict(extractors)
        self._settings = settings
        self._strategies: list[tuple[ExtractionMethod, Extractor]] = [
            (method, self._extractors[method]) for method in cascade
        ]

    @classmethod
    def from_settings(cls, settings: ExtractionSettings) -> ExtractionPipeline:
        """Build a pipeline with the standard extractors for *settings*."""
        extractors: dict[ExtractionMethod, Extractor] = {
            ExtractionMethod.TEXT: TextExtractor(),
            ExtractionMethod.PDF: PdfExtractor(PAGE_READERS[settings.pdf_backend]),
            ExtractionMethod.DOCX: DocxExtractor(),
        }
        return cls(extractors, settings)

    def extract(self, request: ExtractionRequest) -> ExtractionResult:
        """Run extraction for *request*. Never raises."""
        logger.info(
            "Extracting %s (type=%s, %d bytes, force=%s)",
            request.declared_name,
            request.declared_type,
            len(request.data),
            request.force_reprocess,
        )
        try:
            method = detect_method(request.declared_name, request.declared_type)
            if method is None:
                logger.info("Unknown type for %s, running cascade", request.declared_name)
                return self._extract_cascade(request)
            return self._extract_direct(method, request)
        except Exception as e:
            logger.exception("Unexpected extraction error for %s", request.declared_name)
            return ExtractionResult(
                text=GENERIC_ERROR_MESSAGE,
                method=ExtractionMethod.ERROR,
                error=str(e),
            )

    def _extract_direct(
        self, method: ExtractionMethod, request: ExtractionRequest
    ) -> ExtractionResult:
        extractor = self._extractors[method]
        try:
            text = clean_text(extractor.extract(request.data))
        except Exception as e:
            logger.warning(
                "%s extraction failed for %s: %s",
                method.value,
                request.declared_name,
                e,
            )
            return ExtractionResult(
                text=ERROR_MESSAGES[method],
                method=ExtractionMethod.ERROR,
                error=str(e),
                attempts=[method.value],
            )

        if not text:
            logger.warning(
                "%s extraction for %s produced no text after cleanup",
                method.value,
                request.declared_name,
            )
            return ExtractionResult(
                text=ERROR_MESSAGES[method],
                method=ExtractionMethod.ERROR,
                error="no text after cleanup",
                attempts=[method.value],
            )

        report = assess_readability(text, self._settings)
        if not report.readable:
            logger.warning(
                "Low-confidence %s extraction for %s (failed: %s)",
                method.value,
                request.declared_name,
                ", ".join(report.failed_checks),
            )
            text = LOW_CONFIDENCE_PREFIX + text
        else:
            logger.info(
                "Extracted %d readable chars from %s via %s",
                len(text),
                request.declared_name,
                method.value,
            )

        return ExtractionResult(
            text=text,
            method=method,
            is_readable=report.readable,
            attempts=[method.value],
        )

    def _extract_cascade(self, request: ExtractionRequest) -> ExtractionResult:
        attempts: list[str] = []
        last_error: str | None = None

        for method, extractor in self._strategies:
            attempts.append(method.value)
            try:
                raw = extractor.extract(request.data)
            except Exception as e:
                last_error = f"{method.value}: {e}"
                logger.info(
                    "Cascade: %s failed for %s (%s), trying next method",
                    method.value,
                    request.declared_name,
                    e,
                )
                continue

            # Cleanup strips control bytes and U+FFFD, which would hide the
            # binary signature of a mis-sniffed format; both must pass.
            text = clean_text(raw)
            failed_checks = sorted(
                set(assess_readability(raw, self._settings).failed_checks)
                | set(assess_readability(text, self._settings).failed_checks)
            )
            if not failed_checks:
                logger.info(
                    "Cascade: %s produced readable text for %s (%d chars)",
                    method.value,
                    request.declared_name,
                    len(text),
                )
                return ExtractionResult(
                    text=text,
                    method=method,
                    is_readable=True,
                    attempts=attempts,
                )

            last_error = f"{method.value}: unreadable ({', '.join(failed_checks)})"
            logger.info(
                "Cascade: %s output for %s is not readable (%s), trying next method",
                method.value,
                request.declared_name,
                ", ".join(failed_checks),
            )

        logger.warning(
            "All extraction methods failed for %s (tried %s)",
            request.declared_name,
            ", ".join(attempts),
        )
        return ExtractionResult(
            text=FAILED_MESSAGE,
            method=ExtractionMethod.FAILED,
            error=last_error,
            attempts=attempts,
        )
