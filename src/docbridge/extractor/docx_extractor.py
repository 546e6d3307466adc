"""DOCX text extraction from the ZIP container's main document part.

Best-effort only: no OOXML schema validation, styles, numbering or headers.
Two passes over ``word/document.xml``:

1. **Fast path** -- strip every tag with a regex and collapse whitespace.
   Always computed; used as the fallback text.
2. **Structured path** -- parse the XML and walk paragraphs (``p``) and
   tables (``tbl`` / ``tr`` / ``tc``), concatenating run text (``r`` / ``t``).
   Table rows become tab-separated lines.

The structured text replaces the fast-path text only when the walk produced
at least one paragraph.
"""

from __future__ import annotations

import html
import io
import logging
import re
import zipfile
from xml.etree import ElementTree as ET

from docbridge.extractor.types import ExtractionError

logger = logging.getLogger(__name__)

DOCUMENT_PART = "word/document.xml"

_PARAGRAPH_END_PATTERN = re.compile(r"</w:p>")
_TAG_PATTERN = re.compile(r"<[^>]+>")
_WHITESPACE_PATTERN = re.compile(r"\s+")


def _local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix from an ElementTree tag."""
    return tag.rsplit("}", 1)[-1]


def strip_tags(xml: str) -> str:
    """Fast path: tag removal plus whitespace collapse."""
    text = _PARAGRAPH_END_PATTERN.sub(" ", xml)
    text = _TAG_PATTERN.sub("", text)
    text = html.unescape(text)
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def _paragraph_text(paragraph: ET.Element) -> str:
    parts: list[str] = []
    for node in paragraph.iter():
        name = _local_name(node.tag)
        if name == "t" and node.text:
            parts.append(node.text)
        elif name == "tab":
            parts.append("\t")
        elif name in ("br", "cr"):
            parts.append("\n")
    return "".join(parts)


def _table_rows(table: ET.Element) -> list[str]:
    rows: list[str] = []
    for row in table:
        if _local_name(row.tag) != "tr":
            continue
        cells: list[str] = []
        for cell in row:
            if _local_name(cell.tag) != "tc":
                continue
            cell_paragraphs: list[str] = []
            _walk(cell, cell_paragraphs)
            cells.append(" ".join(cell_paragraphs))
        line = "\t".join(cells)
        if line.strip():
            rows.append(line)
    return rows


def _walk(node: ET.Element, paragraphs: list[str]) -> None:
    """Collect paragraph and table-row text beneath *node*, in document order."""
    for child in node:
        name = _local_name(child.tag)
        if name == "p":
            text = _paragraph_text(child)
            if text.strip():
                paragraphs.append(text)
        elif name == "tbl":
            paragraphs.extend(_table_rows(child))
        else:
            _walk(child, paragraphs)


def structured_paragraphs(xml: str | bytes) -> list[str]:
    """Structured path: paragraphs and table rows from the parsed XML tree.

    Raises:
        xml.etree.ElementTree.ParseError: If the part is not well-formed XML.
    """
    root = ET.fromstring(xml)
    body = next((el for el in root if _local_name(el.tag) == "body"), root)
    paragraphs: list[str] = []
    _walk(body, paragraphs)
    return paragraphs


class DocxExtractor:
    """Extract text from a DOCX file held in memory."""

    def extract(self, data: bytes) -> str:
        """Return the document text.

        Raises:
            ExtractionError: If the input is not a ZIP archive, the main
                document part is missing, or both passes yield no text.
        """
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                raw_xml = archive.read(DOCUMENT_PART)
        except zipfile.BadZipFile as e:
            raise ExtractionError(f"not a DOCX/ZIP archive: {e}") from e
        except KeyError as e:
            raise ExtractionError(f"missing {DOCUMENT_PART}") from e

        xml = raw_xml.decode("utf-8", errors="replace")
        text = strip_tags(xml)

        try:
            paragraphs = structured_paragraphs(raw_xml)
        except ET.ParseError as e:
            logger.warning("DOCX structured parse failed, using tag-stripped text: %s", e)
            paragraphs = []

        if paragraphs:
            text = "\n\n".join(paragraphs)
            logger.debug("DOCX structured parse produced %d paragraphs", len(paragraphs))

        if not text.strip():
            raise ExtractionError("no text content in DOCX")

        logger.info("DOCX extracted %d chars", len(text))
        return text
