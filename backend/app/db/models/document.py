"""
Claim document metadata model
"""
import uuid
from typing import Optional

from sqlalchemy import Column, String, DateTime, BigInteger, ForeignKey, Uuid

from app.core.exceptions import ValidationError
from app.db.base import Base, utcnow


class DocumentStatus:
    ACTIVE = "Active"


class ClaimDocument(Base):
    """Document attached to a claim. The bytes live in document storage."""

    __tablename__ = "claim_documents"

    document_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    claim_id = Column(Uuid, ForeignKey("claims.claim_id"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    document_type = Column(String(100), nullable=False)
    storage_location = Column(String(1000), nullable=False)
    file_size_bytes = Column(BigInteger, nullable=False)
    content_type = Column(String(100), nullable=False)
    uploaded_by = Column(String(255), nullable=False)
    uploaded_at = Column(DateTime, default=utcnow, nullable=False)
    document_status = Column(String(20), default=DocumentStatus.ACTIVE, nullable=False)

    def __repr__(self) -> str:
        return f"<ClaimDocument {self.file_name} ({self.document_type})>"

    @classmethod
    def create(
        cls,
        claim_id: uuid.UUID,
        file_name: str,
        document_type: str,
        storage_location: str,
        file_size_bytes: int,
        content_type: str,
        uploaded_by: str,
        document_id: Optional[uuid.UUID] = None,
    ) -> "ClaimDocument":
        errors = []
        if not (file_name or "").strip():
            errors.append("File name is required")
        if not (document_type or "").strip():
            errors.append("Document type is required")
        if not (storage_location or "").strip():
            errors.append("Storage location is required")
        if file_size_bytes is None or file_size_bytes <= 0:
            errors.append("File size must be positive")
        if not (content_type or "").strip():
            errors.append("Content type is required")
        if not (uploaded_by or "").strip():
            errors.append("Uploader identity is required")
        if errors:
            raise ValidationError("Invalid document", errors)

        return cls(
            document_id=document_id or uuid.uuid4(),
            claim_id=claim_id,
            file_name=file_name,
            document_type=document_type,
            storage_location=storage_location,
            file_size_bytes=file_size_bytes,
            content_type=content_type,
            uploaded_by=uploaded_by,
            uploaded_at=utcnow(),
            document_status=DocumentStatus.ACTIVE,
        )
