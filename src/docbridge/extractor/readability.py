"""Readability classification for extracted text.

Decides whether a string is human-readable prose or binary garbage that
slipped through a decoder. Used by the pipeline both to pick a winning
method in the unknown-type cascade and to flag low-confidence results.

Four independent necessary conditions are checked on a leading sample:

1. **Letters**: ASCII letters make up more than ``min_letter_ratio``.
2. **Spaces**: whitespace makes up more than ``min_space_ratio``.
3. **Replacement chars**: U+FFFD makes up less than ``max_replacement_ratio``.
4. **Binary signature**: no ``%PDF`` or ZIP magic, and no control character
   outside tab/newline/carriage-return.

The checks are never folded into a weighted score; each failure is reported
by name so a misclassification can be traced to the threshold that caused it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from docbridge.config.settings import ExtractionSettings

logger = logging.getLogger(__name__)

_LETTER_PATTERN = re.compile(r"[A-Za-z]")
_SPACE_PATTERN = re.compile(r"\s")
_CONTROL_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

PDF_MAGIC = "%PDF"
ZIP_MAGIC = "PK\x03\x04"
REPLACEMENT_CHAR = "\ufffd"

_DEFAULT_SETTINGS = ExtractionSettings.model_construct()


@dataclass(frozen=True)
class ReadabilityReport:
    """Per-check breakdown behind a readability verdict."""

    length: int
    sample_length: int
    letter_ratio: float
    space_ratio: float
    replacement_ratio: float
    has_binary_signature: bool
    failed_checks: tuple[str, ...]

    @property
    def readable(self) -> bool:
        return not self.failed_checks


def _has_binary_signature(sample: str) -> bool:
    return (
        PDF_MAGIC in sample
        or ZIP_MAGIC in sample
        or _CONTROL_PATTERN.search(sample) is not None
    )


def assess_readability(
    text: str | None,
    settings: ExtractionSettings | None = None,
) -> ReadabilityReport:
    """Score *text* against the four readability checks.

    Args:
        text: Candidate text (may be None or empty).
        settings: Threshold configuration; defaults are used when omitted.

    Returns:
        ReadabilityReport naming every failed check.
    """
    settings = settings or _DEFAULT_SETTINGS
    text = text or ""
    length = len(text)

    if length < settings.min_readable_length:
        return ReadabilityReport(
            length=length,
            sample_length=0,
            letter_ratio=0.0,
            space_ratio=0.0,
            replacement_ratio=0.0,
            has_binary_signature=False,
            failed_checks=("too_short",),
        )

    sample = text[: settings.readability_sample_size]
    sample_length = len(sample)

    letter_ratio = len(_LETTER_PATTERN.findall(sample)) / sample_length
    space_ratio = len(_SPACE_PATTERN.findall(sample)) / sample_length
    replacement_ratio = sample.count(REPLACEMENT_CHAR) / sample_length
    has_binary_signature = _has_binary_signature(sample)

    failed: list[str] = []
    if not letter_ratio > settings.min_letter_ratio:
        failed.append("letter_ratio")
    if not space_ratio > settings.min_space_ratio:
        failed.append("space_ratio")
    if not replacement_ratio < settings.max_replacement_ratio:
        failed.append("replacement_ratio")
    if has_binary_signature:
        failed.append("binary_signature")

    if failed:
        logger.debug(
            "Readability check failed (%s): letters=%.3f spaces=%.3f "
            "replacement=%.3f binary=%s over %d-char sample",
            ", ".join(failed),
            letter_ratio,
            space_ratio,
            replacement_ratio,
            has_binary_signature,
            sample_length,
        )

    return ReadabilityReport(
        length=length,
        sample_length=sample_length,
        letter_ratio=letter_ratio,
        space_ratio=space_ratio,
        replacement_ratio=replacement_ratio,
        has_binary_signature=has_binary_signature,
        failed_checks=tuple(failed),
    )


def is_readable(text: str | None, settings: ExtractionSettings | None = None) -> bool:
    """Return True if *text* looks like human-readable text."""
    return assess_readability(text, settings).readable
