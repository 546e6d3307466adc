"""Local blob store for uploaded document content.

Files live at ``<storage_dir>/<user_id>/<document_id>``, mirroring the
object-storage layout the upload UI writes to.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class BlobNotFoundError(LookupError):
    """Raised when a document's content is missing from storage."""


class LocalBlobStore:
    """Read and write document content under a root directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def path_for(self, user_id: str, document_id: str) -> Path:
        return self.root / user_id / document_id

    def load(self, user_id: str, document_id: str) -> bytes:
        """Return the stored bytes for a document.

        Raises:
            BlobNotFoundError: If no file exists for the document.
        """
        path = self.path_for(user_id, document_id)
        if not path.is_file():
            raise BlobNotFoundError(f"No stored content for {user_id}/{document_id}")
        data = path.read_bytes()
        logger.debug("Loaded %d bytes from %s", len(data), path)
        return data

    def save(self, user_id: str, document_id: str, data: bytes) -> Path:
        path = self.path_for(user_id, document_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        logger.debug("Stored %d bytes at %s", len(data), path)
        return path
