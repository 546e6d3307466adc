"""Logging for docbridge: JSON lines on disk, plain text on the console.

Every record written to the JSON file carries a ``document_id`` field. It is
set for the duration of a :func:`document_context` block (the orchestrator
opens one per document) and is null otherwise, so one document's extraction
can be followed through the pipeline, extractors and state store with a
single filter on the log file.

Call setup_logging() once at application startup. Library modules only use
logging.getLogger(__name__).
"""

from __future__ import annotations

import logging
import logging.handlers
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path

from pythonjsonlogger.json import JsonFormatter

from docbridge.config.settings import PipelineSettings

LOG_FILENAME = "docbridge.log"

# Third-party loggers that flood DEBUG output while parsing PDFs or sending requests
_NOISY_LOGGERS = ("pdfminer", "httpx", "httpcore")

_current_document: ContextVar[str | None] = ContextVar("docbridge_document_id", default=None)


@contextmanager
def document_context(document_id: str) -> Iterator[None]:
    """Tag log records emitted inside the block with *document_id*."""
    token = _current_document.set(document_id)
    try:
        yield
    finally:
        _current_document.reset(token)


class DocumentContextFilter(logging.Filter):
    """Copy the active document id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.document_id = _current_document.get()
        return True


def _json_formatter() -> JsonFormatter:
    return JsonFormatter(
        fmt="%(asctime)s %(name)s %(levelname)s %(document_id)s %(message)s",
        rename_fields={
            "asctime": "timestamp",
            "levelname": "level",
            "name": "component",
        },
        datefmt="%Y-%m-%dT%H:%M:%S",
    )


def setup_logging(
    settings: PipelineSettings,
    console_level: int = logging.INFO,
) -> Path:
    """Install the JSON file handler and the console handler on the root logger.

    Replaces any handlers already installed, so calling it twice does not
    duplicate output.

    Args:
        settings: Supplies ``log_dir``, ``log_max_bytes`` and ``log_backup_count``.
        console_level: Minimum level shown on the console; the file gets DEBUG.

    Returns:
        Path of the JSON log file.
    """
    log_dir = Path(settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / LOG_FILENAME

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.handlers.RotatingFileHandler):
            handler.close()

    file_handler = logging.handlers.RotatingFileHandler(
        filename=str(log_path),
        maxBytes=settings.log_max_bytes,
        backupCount=settings.log_backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.addFilter(DocumentContextFilter())
    file_handler.setFormatter(_json_formatter())

    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s [%(levelname)-8s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_path
