"""State store operations for document extraction records.

Provides functions for the orchestrator to read and write document state:
    get_document -- Look up a document by its opaque document_id.
    get_documents_by_ids -- Documents with extracted content, for prompt context.
    create_document -- Register an upload (idempotent per document_id).
    save_extraction -- Overwrite a document's extraction output.
    mark_failed -- Record an attempt that produced no extraction at all.
    get_documents_needing_processing -- Documents still awaiting readable text.

Every non-readable outcome counts as one attempt against ``retry_count``, so
a document that can never be made readable drops out of batch runs once it
reaches the configured maximum.

Every mutation calls session.commit() explicitly -- SQLAlchemy does NOT
auto-commit when the session closes, so changes would be silently lost
without it.
"""

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from .models import Document

logger = logging.getLogger(__name__)


class DocumentNotFoundError(LookupError):
    """Raised when a document_id has no row in the store."""


def get_document(session: Session, document_id: str) -> Document | None:
    """Look up a document by its document_id (not the database PK)."""
    stmt = select(Document).where(Document.document_id == document_id)
    return session.scalars(stmt).first()


def get_documents_by_ids(session: Session, document_ids: Sequence[str]) -> list[Document]:
    """Return the listed documents that have extracted content.

    Unknown ids and documents without content are left out; order follows
    the database id, not the order of *document_ids*.
    """
    if not document_ids:
        return []
    stmt = (
        select(Document)
        .where(
            Document.document_id.in_(list(document_ids)),
            Document.content.is_not(None),
        )
        .order_by(Document.id)
    )
    documents = list(session.scalars(stmt).all())
    logger.debug("Resolved %d of %d requested documents", len(documents), len(document_ids))
    return documents


def create_document(
    session: Session,
    document_id: str,
    user_id: str,
    name: str,
    type: str | None = None,
) -> Document:
    """Insert a document record, or refresh the metadata of an existing one.

    Args:
        session: Active SQLAlchemy session.
        document_id: Opaque identifier shared with the blob store.
        user_id: Owner; also the blob store directory.
        name: Declared file name.
        type: Declared MIME/content-type, if known.

    Returns:
        The persisted Document.
    """
    document = get_document(session, document_id)
    if document is None:
        document = Document(document_id=document_id, user_id=user_id, name=name, type=type)
        session.add(document)
        logger.info("Created document %s (%s)", document_id, name)
    else:
        document.user_id = user_id
        document.name = name
        document.type = type
        logger.debug("Refreshed metadata for document %s", document_id)
    session.commit()
    return document


def save_extraction(
    session: Session,
    document_id: str,
    content: str,
    extraction_method: str,
    is_readable: bool,
    error: str | None = None,
) -> Document:
    """Write an extraction result back to its document row.

    Overwrites content, method and readability in place, so running the
    same document twice never produces a second row. Any non-readable
    result (low-confidence text, ``failed`` or ``error``) increments
    ``retry_count``; a readable result resets it.

    Raises:
        DocumentNotFoundError: If document_id is not in the store.
    """
    document = get_document(session, document_id)
    if document is None:
        raise DocumentNotFoundError(f"Document {document_id} not found")

    document.content = content
    document.extraction_method = extraction_method
    document.is_readable = is_readable
    document.needs_processing = not is_readable
    document.error_message = error

    if is_readable:
        document.retry_count = 0
    else:
        document.retry_count += 1

    session.commit()
    logger.info(
        "Saved extraction for %s: method=%s, readable=%s, %d chars",
        document_id,
        extraction_method,
        is_readable,
        len(content),
    )
    return document


def mark_failed(session: Session, document_id: str, error: str) -> Document:
    """Count an attempt that never reached the extractor (e.g. missing blob).

    Stored content and method are left untouched; only the failure is
    recorded so the document eventually exhausts its retries.

    Raises:
        DocumentNotFoundError: If document_id is not in the store.
    """
    document = get_document(session, document_id)
    if document is None:
        raise DocumentNotFoundError(f"Document {document_id} not found")

    document.error_message = error
    document.needs_processing = True
    document.retry_count += 1
    session.commit()
    logger.warning(
        "Marked %s as failed (attempt %d): %s", document_id, document.retry_count, error
    )
    return document


def get_documents_needing_processing(
    session: Session, max_retries: int = 3
) -> list[Document]:
    """Return documents that still need extraction.

    A document needs processing if:
        - needs_processing is True (no readable content yet), AND
        - retry_count is less than max_retries (not exhausted)
    """
    stmt = (
        select(Document)
        .where(
            Document.needs_processing.is_(True),
            Document.retry_count < max_retries,
        )
        .order_by(Document.id)
    )
    return list(session.scalars(stmt).all())
