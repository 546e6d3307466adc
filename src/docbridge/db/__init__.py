"""Database layer -- ORM models, the SQLite store handle, and state functions."""

from .engine import Database, open_database
from .models import Base, Document
from .state import (
    DocumentNotFoundError,
    create_document,
    get_document,
    get_documents_by_ids,
    get_documents_needing_processing,
    mark_failed,
    save_extraction,
)

__all__ = [
    "Base",
    "Database",
    "Document",
    "DocumentNotFoundError",
    "create_document",
    "get_document",
    "get_documents_by_ids",
    "get_documents_needing_processing",
    "mark_failed",
    "open_database",
    "save_extraction",
]
