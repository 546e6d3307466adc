"""SQLAlchemy 2.0 ORM models for document extraction state.

Models:
    Document -- An uploaded document and the latest extraction written back
                for it (content, method, readability verdict).
"""

import datetime
from typing import Optional

from sqlalchemy import String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Document(Base):
    """An uploaded document with its extracted text.

    ``document_id`` is the opaque identifier shared with the blob store; it is
    unique, so reprocessing a document overwrites its row instead of adding
    another one.
    """

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(primary_key=True)
    document_id: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    user_id: Mapped[str] = mapped_column(String(100), index=True)
    name: Mapped[str] = mapped_column(String(500))
    type: Mapped[Optional[str]] = mapped_column(String(200), default=None)

    # Extraction output
    content: Mapped[Optional[str]] = mapped_column(Text, default=None)
    extraction_method: Mapped[Optional[str]] = mapped_column(String(20), default=None)
    is_readable: Mapped[bool] = mapped_column(default=False)
    needs_processing: Mapped[bool] = mapped_column(default=True)

    # Failure tracking -- documents are skipped after N failed extractions
    error_message: Mapped[Optional[str]] = mapped_column(Text, default=None)
    retry_count: Mapped[int] = mapped_column(default=0)

    created_at: Mapped[datetime.datetime] = mapped_column(
        server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime.datetime]] = mapped_column(
        onupdate=func.now(), default=None
    )

    def __repr__(self) -> str:
        return (
            f"<Document(document_id={self.document_id!r}, name={self.name!r}, "
            f"method={self.extraction_method!r})>"
        )
