"""Document-level extraction orchestrator with per-document error tolerance.

Loads a document record, applies the skip-reprocessing policy, reads the
document's bytes from the blob store, runs the extraction pipeline and
writes the result back to the store.  The batch runner processes every
document still needing extraction; one document's failure does not block
the others.

Public API:
    process_document(session, document_id, blob_store, pipeline, ...)
        -> ProcessingOutcome
    process_pending_documents(session, blob_store, pipeline, ...)
        -> ProcessingBatchResult
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from docbridge.db.state import (
    DocumentNotFoundError,
    get_document,
    get_documents_needing_processing,
    mark_failed,
    save_extraction,
)
from docbridge.extractor.pipeline import ExtractionPipeline, should_reprocess
from docbridge.extractor.readability import assess_readability, is_readable
from docbridge.extractor.storage import BlobNotFoundError, LocalBlobStore
from docbridge.extractor.types import (
    ExtractionError,
    ExtractionMethod,
    ExtractionRequest,
    ExtractionResult,
)
from docbridge.logging import document_context

logger = logging.getLogger(__name__)

__all__ = [
    "BlobNotFoundError",
    "DocumentNotFoundError",
    "ExtractionError",
    "ExtractionMethod",
    "ExtractionPipeline",
    "ExtractionRequest",
    "ExtractionResult",
    "LocalBlobStore",
    "ProcessingBatchResult",
    "ProcessingOutcome",
    "assess_readability",
    "is_readable",
    "process_document",
    "process_pending_documents",
    "should_reprocess",
]


@dataclass
class ProcessingOutcome:
    """What happened to one document."""

    document_id: str
    skipped: bool = False
    result: ExtractionResult | None = None


@dataclass
class ProcessingBatchResult:
    """Aggregated outcome of processing multiple documents."""

    attempted: int = 0
    readable: int = 0
    unreadable: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


def process_document(
    session,
    document_id: str,
    blob_store: LocalBlobStore,
    pipeline: ExtractionPipeline,
    force_reprocess: bool = False,
    min_content_length: int = 100,
) -> ProcessingOutcome:
    """Extract and persist text for a single stored document.

    Args:
        session: Active SQLAlchemy session.
        document_id: Opaque document identifier.
        blob_store: Source of the document bytes.
        pipeline: Extraction pipeline to run.
        force_reprocess: Re-extract even if readable content is stored.
        min_content_length: Stored content must exceed this length to be
            considered already extracted.

    Returns:
        ProcessingOutcome; ``skipped`` is True when extraction was not run.

    Raises:
        DocumentNotFoundError: If document_id is not in the store.
        BlobNotFoundError: If the document's bytes are missing.
    """
    with document_context(document_id):
        document = get_document(session, document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")

        logger.info("Processing document %s: %s (type=%s)", document_id, document.name, document.type)

        if not should_reprocess(
            document.content, document.is_readable, force_reprocess, min_content_length
        ):
            logger.info("Document %s already has readable content, skipping extraction", document_id)
            return ProcessingOutcome(document_id=document_id, skipped=True)

        data = blob_store.load(document.user_id, document_id)
        result = pipeline.extract(
            ExtractionRequest(
                data=data,
                declared_name=document.name,
                declared_type=document.type,
                force_reprocess=force_reprocess,
            )
        )

        save_extraction(
            session,
            document_id,
            content=result.text,
            extraction_method=result.method.value,
            is_readable=result.is_readable,
            error=result.error,
        )
        return ProcessingOutcome(document_id=document_id, result=result)


def process_pending_documents(
    session,
    blob_store: LocalBlobStore,
    pipeline: ExtractionPipeline,
    max_retries: int = 3,
    min_content_length: int = 100,
) -> ProcessingBatchResult:
    """Process every document that still needs readable text.

    Per-document error isolation ensures one failure does not block others.
    Every attempt that does not end readable (including a missing blob)
    uses up one retry, so the set of pending documents shrinks to empty.

    Args:
        session: Active SQLAlchemy session.
        blob_store: Source of the document bytes.
        pipeline: Extraction pipeline to run.
        max_retries: Documents that failed this many times are left alone.
        min_content_length: Passed through to the skip-reprocessing check.

    Returns:
        ProcessingBatchResult with aggregated statistics.
    """
    batch = ProcessingBatchResult()
    documents = get_documents_needing_processing(session, max_retries)

    if not documents:
        logger.info("No documents pending extraction")
        return batch

    logger.info("Found %d documents pending extraction", len(documents))

    for document in documents:
        document_id = document.document_id
        batch.attempted += 1
        try:
            outcome = process_document(
                session,
                document_id,
                blob_store,
                pipeline,
                min_content_length=min_content_length,
            )
        except BlobNotFoundError as e:
            logger.warning("Cannot process document %s: %s", document_id, e)
            mark_failed(session, document_id, str(e))
            batch.failed += 1
            batch.errors.append(f"Document {document_id}: {e}")
            continue
        except DocumentNotFoundError as e:
            # Row vanished between listing and processing; nothing to mark
            logger.warning("Cannot process document %s: %s", document_id, e)
            batch.failed += 1
            batch.errors.append(f"Document {document_id}: {e}")
            continue
        except Exception:
            logger.exception("Unexpected error processing document %s", document_id)
            session.rollback()
            batch.failed += 1
            batch.errors.append(f"Document {document_id}: unexpected error")
            continue

        if outcome.skipped:
            batch.skipped += 1
        elif outcome.result is not None and outcome.result.is_readable:
            batch.readable += 1
        else:
            batch.unreadable += 1

    logger.info(
        "Extraction batch complete: %d attempted, %d readable, %d unreadable, "
        "%d skipped, %d failed",
        batch.attempted,
        batch.readable,
        batch.unreadable,
        batch.skipped,
        batch.failed,
    )
    return batch
