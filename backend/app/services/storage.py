"""
Document storage

Local-filesystem blob store for uploaded claim documents. Files live under
UPLOAD_DIR/<claim_id>/<document_id><ext>.
"""
import os
from typing import Optional
from uuid import UUID

from app.core.config import settings
from app.core.exceptions import ExternalDependencyError
from app.core.logging import get_logger

logger = get_logger(__name__)


class LocalDocumentStorage:
    """Stores document bytes on local disk."""

    def __init__(self, root_dir: Optional[str] = None):
        self.root_dir = root_dir or settings.UPLOAD_DIR

    async def save(self, claim_id: UUID, document_id: UUID, file_name: str, content: bytes) -> str:
        """Write the bytes and return their storage location."""
        upload_dir = os.path.join(self.root_dir, str(claim_id))
        file_ext = os.path.splitext(file_name)[1] if file_name else ""
        file_path = os.path.join(upload_dir, f"{document_id}{file_ext}")

        try:
            os.makedirs(upload_dir, exist_ok=True)
            with open(file_path, "wb") as f:
                f.write(content)
        except OSError as e:
            logger.error(f"Failed to store document {document_id}: {e}")
            raise ExternalDependencyError("Document storage write failed", original_error=e) from e

        logger.info(f"Stored document {document_id} ({len(content)} bytes)")
        return file_path

    async def read_text(self, location: str) -> str:
        """Read a stored document as text."""
        try:
            with open(location, "rb") as f:
                raw = f.read()
        except OSError as e:
            logger.error(f"Failed to read document at {location}: {e}")
            raise ExternalDependencyError("Document storage read failed", original_error=e) from e
        return raw.decode("utf-8", errors="replace")


_document_storage: Optional[LocalDocumentStorage] = None


def get_document_storage() -> LocalDocumentStorage:
    global _document_storage
    if _document_storage is None:
        _document_storage = LocalDocumentStorage()
    return _document_storage
