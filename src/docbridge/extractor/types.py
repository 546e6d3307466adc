"""Shared types for the extraction pipeline.

Defines ExtractionRequest, ExtractionResult and ExtractionMethod used across
all extractor modules, the readability classifier, and the document
orchestrator.
"""

from dataclasses import dataclass, field
from enum import Enum


class ExtractionMethod(Enum):
    """Method that produced (or failed to produce) a document's text."""

    TEXT = "text"
    PDF = "pdf"
    DOCX = "docx"
    FAILED = "failed"
    ERROR = "error"


class ExtractionError(Exception):
    """Raised by a format extractor when it cannot produce any text.

    Never escapes ExtractionPipeline.extract -- the pipeline converts it
    into an ``error`` or ``failed`` result.
    """


@dataclass(frozen=True)
class ExtractionRequest:
    """A single document handed to the pipeline.

    Attributes:
        data: Full file content, already resident in memory.
        declared_name: File name from the upload metadata.
        declared_type: MIME/content-type from the upload metadata, if any.
        force_reprocess: Caller asked to re-extract even readable content.
    """

    data: bytes
    declared_name: str
    declared_type: str | None = None
    force_reprocess: bool = False


@dataclass
class ExtractionResult:
    """Outcome of one extraction call.

    Attributes:
        text: Cleaned text, a low-confidence-prefixed body, or a fixed
            placeholder message. Never empty and never raw binary.
        method: Which method produced this result.
        is_readable: Whether ``text`` passed the readability classifier.
        error: Description of the last extractor failure, if any.
        attempts: Methods tried, in order.
    """

    text: str
    method: ExtractionMethod
    is_readable: bool = False
    error: str | None = None
    attempts: list[str] = field(default_factory=list)

    @property
    def char_count(self) -> int:
        return len(self.text)
