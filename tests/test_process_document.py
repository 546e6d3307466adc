import pytest
from sqlalchemy import func, select

from builders import PROSE, build_docx
from docbridge.config.settings import ExtractionSettings
from docbridge.db import (
    Document,
    create_document,
    get_document,
    get_documents_needing_processing,
    mark_failed,
)
from docbridge.extractor import (
    BlobNotFoundError,
    DocumentNotFoundError,
    ExtractionPipeline,
    process_document,
    process_pending_documents,
)


@pytest.fixture
def pipeline():
    return ExtractionPipeline.from_settings(ExtractionSettings.model_construct())


def _upload(session, blob_store, document_id, name, data, type=None, user_id="user-1"):
    create_document(session, document_id, user_id, name, type)
    blob_store.save(user_id, document_id, data)


def _row_count(session) -> int:
    return session.scalar(select(func.count()).select_from(Document))


def test_readable_document_is_stored(session, blob_store, pipeline):
    _upload(session, blob_store, "doc-1", "minutes.txt", PROSE.encode())

    outcome = process_document(session, "doc-1", blob_store, pipeline)

    assert not outcome.skipped
    assert outcome.result.is_readable
    document = get_document(session, "doc-1")
    assert document.content == PROSE
    assert document.extraction_method == "text"
    assert document.is_readable
    assert not document.needs_processing
    assert document.retry_count == 0


def test_already_readable_document_is_skipped(session, blob_store, pipeline):
    _upload(session, blob_store, "doc-1", "minutes.txt", PROSE.encode())
    process_document(session, "doc-1", blob_store, pipeline)

    # Replace the blob; a skipped document must keep its stored content
    blob_store.save("user-1", "doc-1", b"changed content")
    outcome = process_document(session, "doc-1", blob_store, pipeline)

    assert outcome.skipped
    assert outcome.result is None
    assert get_document(session, "doc-1").content == PROSE


def test_force_reprocess_overwrites_in_place(session, blob_store, pipeline):
    _upload(session, blob_store, "doc-1", "minutes.txt", PROSE.encode())
    process_document(session, "doc-1", blob_store, pipeline)

    replacement = PROSE.replace("committee", "board")
    blob_store.save("user-1", "doc-1", replacement.encode())
    outcome = process_document(session, "doc-1", blob_store, pipeline, force_reprocess=True)

    assert not outcome.skipped
    assert get_document(session, "doc-1").content == replacement
    assert _row_count(session) == 1


def test_registering_the_same_upload_twice_keeps_one_row(session):
    create_document(session, "doc-1", "user-1", "draft.txt")
    create_document(session, "doc-1", "user-1", "final.txt", "text/plain")

    assert _row_count(session) == 1
    document = get_document(session, "doc-1")
    assert document.name == "final.txt"
    assert document.type == "text/plain"


def test_unknown_document_raises(session, blob_store, pipeline):
    with pytest.raises(DocumentNotFoundError):
        process_document(session, "missing", blob_store, pipeline)


def test_missing_blob_raises(session, blob_store, pipeline):
    create_document(session, "doc-1", "user-1", "minutes.txt")
    with pytest.raises(BlobNotFoundError):
        process_document(session, "doc-1", blob_store, pipeline)


def test_failed_extraction_is_stored_and_counts_as_retry(session, blob_store, pipeline):
    _upload(session, blob_store, "doc-1", "scan.pdf", b"not really a pdf")

    outcome = process_document(session, "doc-1", blob_store, pipeline)

    assert outcome.result.method.value == "error"
    document = get_document(session, "doc-1")
    assert document.extraction_method == "error"
    assert not document.is_readable
    assert document.needs_processing
    assert document.retry_count == 1
    assert document.error_message


def test_batch_processes_pending_documents(session, blob_store, pipeline):
    _upload(session, blob_store, "doc-1", "minutes.txt", PROSE.encode())
    _upload(session, blob_store, "doc-2", "memo", build_docx([PROSE]))
    _upload(session, blob_store, "doc-3", "note.txt", b"Too short.")
    _upload(session, blob_store, "doc-4", "scan.pdf", b"garbage")
    create_document(session, "doc-5", "user-1", "lost.txt")  # no blob

    batch = process_pending_documents(session, blob_store, pipeline)

    assert batch.attempted == 5
    assert batch.readable == 2
    assert batch.unreadable == 2
    assert batch.failed == 1
    assert batch.skipped == 0
    assert any("doc-5" in error for error in batch.errors)
    assert get_document(session, "doc-2").extraction_method == "docx"


def test_batch_with_nothing_pending(session, blob_store, pipeline):
    batch = process_pending_documents(session, blob_store, pipeline)
    assert batch.attempted == 0


def test_exhausted_documents_are_not_retried(session, blob_store, pipeline):
    _upload(session, blob_store, "doc-1", "scan.pdf", b"garbage")

    for _ in range(3):
        process_pending_documents(session, blob_store, pipeline, max_retries=3)

    assert get_document(session, "doc-1").retry_count == 3
    assert get_documents_needing_processing(session, max_retries=3) == []
    assert process_pending_documents(session, blob_store, pipeline, max_retries=3).attempted == 0


def test_readable_result_resets_retry_count(session, blob_store, pipeline):
    _upload(session, blob_store, "doc-1", "notes.txt", b"")
    process_document(session, "doc-1", blob_store, pipeline)
    assert get_document(session, "doc-1").retry_count == 1

    blob_store.save("user-1", "doc-1", PROSE.encode())
    process_document(session, "doc-1", blob_store, pipeline)

    document = get_document(session, "doc-1")
    assert document.is_readable
    assert document.retry_count == 0


def test_low_confidence_text_counts_as_retry(session, blob_store, pipeline):
    _upload(session, blob_store, "doc-1", "note.txt", b"Just a note.")

    outcome = process_document(session, "doc-1", blob_store, pipeline)

    assert not outcome.result.is_readable
    assert outcome.result.method.value == "text"
    document = get_document(session, "doc-1")
    assert document.needs_processing
    assert document.retry_count == 1


def test_mark_failed_keeps_content_and_counts_attempt(session, blob_store, pipeline):
    _upload(session, blob_store, "doc-1", "minutes.txt", PROSE.encode())
    process_document(session, "doc-1", blob_store, pipeline)

    document = mark_failed(session, "doc-1", "blob went missing")

    assert document.retry_count == 1
    assert document.needs_processing
    assert document.error_message == "blob went missing"
    assert document.content == PROSE
    assert document.extraction_method == "text"


def test_mark_failed_unknown_document_raises(session):
    with pytest.raises(DocumentNotFoundError):
        mark_failed(session, "nope", "gone")


def test_unreadable_and_missing_blob_documents_drain(session, blob_store, pipeline):
    _upload(session, blob_store, "doc-1", "note.txt", b"Just a note.")
    create_document(session, "doc-2", "user-1", "lost.txt")  # no blob

    runs = [
        process_pending_documents(session, blob_store, pipeline, max_retries=3)
        for _ in range(4)
    ]

    assert [(b.attempted, b.unreadable, b.failed) for b in runs[:3]] == [(2, 1, 1)] * 3
    assert runs[3].attempted == 0
    assert get_document(session, "doc-1").retry_count == 3
    assert get_document(session, "doc-2").retry_count == 3
    assert get_documents_needing_processing(session, max_retries=3) == []
