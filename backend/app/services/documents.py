"""
Document upload and AI field extraction
"""
import uuid
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import DocumentNotFoundError, DuplicateRecordError, InvalidStateError, ValidationError
from app.core.logging import get_logger
from app.db.models import ClaimDocument, ClaimStatus, ExtractedField
from app.repositories import ClaimRepository, DocumentRepository, ExtractedFieldRepository
from app.services.audit import AuditAction, AuditService
from app.services.db_utils import unit_of_work
from app.services.llm.extraction_service import ExtractionService
from app.services.storage import LocalDocumentStorage

logger = get_logger(__name__)


class DocumentService:
    """Attaches documents to claims and turns them into Unverified fields."""

    def __init__(
        self,
        db: Session,
        storage: LocalDocumentStorage,
        extraction_service: Optional[ExtractionService] = None,
    ):
        self.db = db
        self.storage = storage
        self.extraction_service = extraction_service
        self.claims = ClaimRepository(db)
        self.documents = DocumentRepository(db)
        self.fields = ExtractedFieldRepository(db)
        self.audit = AuditService(db)

    async def upload_document(
        self,
        claim_id: UUID,
        file_name: str,
        document_type: str,
        content: bytes,
        content_type: str,
        uploaded_by: str,
    ) -> ClaimDocument:
        """
        Store a document for a claim.

        Raises:
            ClaimNotFoundError: unknown claim
            InvalidStateError: claim is already triaged
            ValidationError: empty or oversized file, missing metadata
            ExternalDependencyError: storage write failed
        """
        claim = self.claims.get_required(claim_id)
        if claim.status == ClaimStatus.TRIAGED:
            raise InvalidStateError(f"Claim {claim.claim_number} is triaged; documents can no longer be added")

        if not content:
            raise ValidationError("Uploaded file is empty")
        max_bytes = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
        if len(content) > max_bytes:
            raise ValidationError(f"File exceeds the {settings.MAX_UPLOAD_SIZE_MB} MB upload limit")

        document_id = uuid.uuid4()
        location = await self.storage.save(claim.claim_id, document_id, file_name, content)

        with unit_of_work(self.db):
            document = self.documents.add(
                ClaimDocument.create(
                    claim_id=claim.claim_id,
                    file_name=file_name,
                    document_type=document_type,
                    storage_location=location,
                    file_size_bytes=len(content),
                    content_type=content_type,
                    uploaded_by=uploaded_by,
                    document_id=document_id,
                )
            )
            self.audit.log(
                actor=uploaded_by,
                action=AuditAction.DOCUMENT_UPLOADED,
                entity_type="ClaimDocument",
                entity_id=document.document_id,
                details={
                    "claim_id": str(claim.claim_id),
                    "file_name": file_name,
                    "document_type": document_type,
                    "file_size_bytes": len(content),
                },
            )

        logger.info(f"Document {document.document_id} uploaded for claim {claim.claim_number}")
        return document

    def _get_claim_document(self, claim_id: UUID, document_id: UUID) -> ClaimDocument:
        self.claims.get_required(claim_id)
        document = self.documents.get_required(document_id)
        if document.claim_id != claim_id:
            raise DocumentNotFoundError(document_id)
        return document

    async def extract_fields(self, claim_id: UUID, document_id: UUID, actor: str = "system") -> List[ExtractedField]:
        """
        Run AI extraction over a document.

        Extracting a document twice returns the fields from the first run.
        Every new field starts Unverified.

        Raises:
            ClaimNotFoundError / DocumentNotFoundError
            ExternalDependencyError: storage read or AI call failed
        """
        document = self._get_claim_document(claim_id, document_id)

        existing = self.fields.get_by_document(document.document_id)
        if existing:
            logger.info(f"Document {document_id} already extracted ({len(existing)} fields)")
            return existing

        if self.extraction_service is None:
            raise InvalidStateError("No extraction service is configured")

        content = await self.storage.read_text(document.storage_location)
        result = await self.extraction_service.extract(content)

        try:
            with unit_of_work(self.db):
                fields = self.fields.add_all(
                    ExtractedField.create(
                        claim_id=document.claim_id,
                        document_id=document.document_id,
                        field_name=value.field_name,
                        field_value=value.value,
                        confidence_score=value.confidence,
                        extracted_by_model=result.model_name or "unknown",
                        system_prompt_version=result.system_prompt_version,
                        user_prompt_version=result.user_prompt_version,
                        schema_version=result.schema_version,
                    )
                    for value in result.fields
                )
                self.audit.log(
                    actor=actor,
                    action=AuditAction.AI_EXTRACTION_PERFORMED,
                    entity_type="ClaimDocument",
                    entity_id=document.document_id,
                    details={
                        "claim_id": str(document.claim_id),
                        "model": result.model_name,
                        "schema_version": result.schema_version,
                        "fields_extracted": [f.field_name for f in fields],
                        "tokens_used": result.tokens_used,
                    },
                )
        except DuplicateRecordError:
            # Lost a race with a concurrent extraction of the same document
            winner = self.fields.get_by_document(document.document_id)
            if not winner:
                raise
            return winner

        logger.info(f"Extracted {len(fields)} fields from document {document_id}")
        return fields

    def list_documents(self, claim_id: UUID) -> List[ClaimDocument]:
        self.claims.get_required(claim_id)
        return self.documents.get_by_claim(claim_id)

    def list_fields(self, claim_id: UUID) -> List[ExtractedField]:
        self.claims.get_required(claim_id)
        return self.fields.get_by_claim(claim_id)
