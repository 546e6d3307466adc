"""PDF text-layer extraction.

Reads a PDF held in memory page by page, collecting each page's text items
in stored order. Pages with no text items (scanned or image-only pages) are
skipped rather than treated as errors; a document with no text on any page
fails with an explicit "no text content" error.

Two page readers are available, selected by ``ExtractionSettings.pdf_backend``:

- ``pymupdf`` -- text blocks from ``page.get_text("blocks")`` (default).
- ``pdfplumber`` -- text lines from ``page.extract_text_lines()``.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Iterator

import pdfplumber
import pymupdf

from docbridge.extractor.types import ExtractionError

logger = logging.getLogger(__name__)

# Given PDF bytes, yield one list of text items per page, in page order
PageReader = Callable[[bytes], Iterator[list[str]]]

NO_TEXT_MESSAGE = "no text content extracted -- likely scanned/image-based"

# Block tuple layout: (x0, y0, x1, y1, text, block_no, block_type)
_TEXT_BLOCK = 0


def read_pages_pymupdf(data: bytes) -> Iterator[list[str]]:
    """Yield the text blocks of each page using PyMuPDF."""
    with pymupdf.open(stream=data, filetype="pdf") as doc:
        if doc.needs_pass:
            raise ExtractionError("encrypted PDF")
        for page in doc:
            blocks = page.get_text("blocks", sort=False)
            yield [
                block[4].strip()
                for block in blocks
                if block[6] == _TEXT_BLOCK and block[4].strip()
            ]


def read_pages_pdfplumber(data: bytes) -> Iterator[list[str]]:
    """Yield the text lines of each page using pdfplumber."""
    with pdfplumber.open(io.BytesIO(data)) as pdf:
        for page in pdf.pages:
            yield [
                line["text"].strip()
                for line in page.extract_text_lines()
                if line["text"].strip()
            ]


PAGE_READERS: dict[str, PageReader] = {
    "pymupdf": read_pages_pymupdf,
    "pdfplumber": read_pages_pdfplumber,
}


class PdfExtractor:
    """Concatenate per-page text with a blank line between pages."""

    def __init__(self, page_reader: PageReader = read_pages_pymupdf) -> None:
        self._page_reader = page_reader

    def extract(self, data: bytes) -> str:
        """Extract the text layer of a PDF.

        Raises:
            ExtractionError: If the bytes cannot be parsed as a PDF, the PDF
                is encrypted, or no page carries any text.
        """
        pages: list[str] = []
        skipped = 0

        try:
            for page_number, items in enumerate(self._page_reader(data), start=1):
                if not items:
                    skipped += 1
                    logger.debug("PDF page %d has no text items, skipping", page_number)
                    continue
                pages.append("\n".join(items))
        except ExtractionError:
            raise
        except Exception as e:
            raise ExtractionError(f"cannot parse PDF: {e}") from e

        text = "\n\n".join(pages)
        if not text.strip():
            raise ExtractionError(NO_TEXT_MESSAGE)

        logger.info(
            "PDF extracted %d chars from %d pages (%d without text)",
            len(text),
            len(pages) + skipped,
            skipped,
        )
        return text
