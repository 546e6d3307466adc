"""Markdown sidecar writer with YAML frontmatter for extracted text.

Used by the ``extract`` command to leave the extracted text next to its
source file, with the extraction metadata in structured frontmatter.

Public API:
    sidecar_path(source_path)  -> Path
    write_markdown_file(...)   -> Path
"""

from __future__ import annotations

import datetime
import logging
from pathlib import Path

import frontmatter

from docbridge.extractor.types import ExtractionResult

logger = logging.getLogger(__name__)


def sidecar_path(source_path: Path) -> Path:
    """Return ``<name>.<ext>.md`` beside *source_path*.

    The original extension is kept so ``report.pdf`` and ``report.docx`` in
    the same directory never collide.
    """
    return source_path.with_name(source_path.name + ".md")


def write_markdown_file(source_path: Path, result: ExtractionResult) -> Path:
    """Write *result* to a markdown sidecar with frontmatter metadata.

    Frontmatter fields:

    - ``source_file``: Original file name
    - ``extraction_method``: Method value (``text``, ``pdf``, ``docx``, ...)
    - ``is_readable``: Readability verdict
    - ``extraction_date``: UTC ISO-8601 timestamp
    - ``char_count``: Length of the stored text

    Returns:
        Path of the written file.
    """
    post = frontmatter.Post(result.text)
    post.metadata["source_file"] = source_path.name
    post.metadata["extraction_method"] = result.method.value
    post.metadata["is_readable"] = result.is_readable
    post.metadata["extraction_date"] = (
        datetime.datetime.now(datetime.timezone.utc).isoformat()
    )
    post.metadata["char_count"] = result.char_count

    md_path = sidecar_path(source_path)
    md_path.parent.mkdir(parents=True, exist_ok=True)
    with open(md_path, "w", encoding="utf-8") as f:
        f.write(frontmatter.dumps(post))

    logger.info("Wrote extraction to %s (%d chars)", md_path.name, result.char_count)
    return md_path
