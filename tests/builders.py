"""In-memory DOCX and PDF builders shared by the extractor tests."""

from __future__ import annotations

import io
import zipfile
from xml.sax.saxutils import escape

import pymupdf


W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"

PROSE = (
    "The committee reviewed the quarterly report and agreed to publish the "
    "summary for all members. Questions about the budget will be handled at "
    "the next meeting, which is scheduled for early spring."
)


def _paragraph_xml(text: str) -> str:
    return f"<w:p><w:r><w:t xml:space=\"preserve\">{escape(text)}</w:t></w:r></w:p>"


def build_docx(
    paragraphs: list[str] | None = None,
    table: list[list[str]] | None = None,
    document_xml: str | None = None,
    include_document: bool = True,
) -> bytes:
    """Build a minimal DOCX (deflated ZIP) in memory."""
    if document_xml is None:
        body = "".join(_paragraph_xml(p) for p in paragraphs or [])
        if table:
            rows = "".join(
                "<w:tr>" + "".join(f"<w:tc>{_paragraph_xml(cell)}</w:tc>" for cell in row) + "</w:tr>"
                for row in table
            )
            body += f"<w:tbl>{rows}</w:tbl>"
        document_xml = (
            '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
            f'<w:document xmlns:w="{W_NS}"><w:body>{body}</w:body></w:document>'
        )

    payload = io.BytesIO()
    with zipfile.ZipFile(payload, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(
            "[Content_Types].xml",
            '<?xml version="1.0" encoding="UTF-8"?><Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types"/>',
        )
        if include_document:
            archive.writestr("word/document.xml", document_xml)
    return payload.getvalue()


def build_pdf(pages: list[list[str]]) -> bytes:
    """Build a PDF with one page per entry; each entry is a list of text lines."""
    doc = pymupdf.open()
    for lines in pages:
        page = doc.new_page()
        for index, line in enumerate(lines):
            page.insert_text((72, 72 + index * 18), line, fontsize=11)
    data = doc.tobytes()
    doc.close()
    return data


PROSE_LINES = [
    "The committee reviewed the quarterly report today.",
    "Members agreed to publish the summary next week.",
    "Budget questions move to the spring meeting.",
]
