"""Text normalization applied to every extraction result.

Runs before readability classification so the classifier sees the text the
caller will actually store. The transformation is idempotent:
``clean_text(clean_text(x)) == clean_text(x)``.
"""

from __future__ import annotations

import re

# C0 controls except \t \n \r, plus DEL and the C1 range
_CONTROL_PATTERN = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_REPLACEMENT_PATTERN = re.compile("\ufffd")
# Anything outside printable ASCII, Latin-1 supplement and common whitespace
_NON_PRINTABLE_PATTERN = re.compile(r"[^\t\n\r\x20-\x7e\xa0-\xff]")
_HORIZONTAL_SPACE_PATTERN = re.compile(r"[^\S\n]+")
_LINE_EDGE_SPACE_PATTERN = re.compile(r" *\n *")
_EXCESS_BLANK_LINES_PATTERN = re.compile(r"\n{3,}")


def clean_text(text: str) -> str:
    """Normalize extracted text for storage and display.

    Steps, in order:

    1. Strip control characters (0x00-0x1F, 0x7F-0x9F; tab/newline/CR kept).
    2. Strip Unicode replacement characters.
    3. Replace remaining non-printable / non-Latin-1 characters with a space.
    4. Collapse horizontal whitespace runs to a single space and drop spaces
       at line edges.
    5. Collapse three or more line breaks to exactly one blank line.
    6. Trim leading/trailing whitespace.

    Args:
        text: Raw extractor output.

    Returns:
        The normalized text (possibly empty).
    """
    if not text:
        return ""

    text = _CONTROL_PATTERN.sub("", text)
    text = _REPLACEMENT_PATTERN.sub("", text)
    text = _NON_PRINTABLE_PATTERN.sub(" ", text)
    text = _HORIZONTAL_SPACE_PATTERN.sub(" ", text)
    text = _LINE_EDGE_SPACE_PATTERN.sub("\n", text)
    text = _EXCESS_BLANK_LINES_PATTERN.sub("\n\n", text)
    return text.strip()
