"""
Human verification of AI-extracted fields
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.exceptions import (
    DuplicateRecordError,
    DuplicateVerificationError,
    ValidationError,
)
from app.core.logging import get_logger
from app.db.models import ClaimStatus, ExtractedField, VerificationRecord, VerificationStatus
from app.repositories import ClaimRepository, ExtractedFieldRepository, VerificationRecordRepository
from app.services.audit import AuditAction, AuditService
from app.services.db_utils import unit_of_work

logger = get_logger(__name__)

QUEUE_SORT_OPTIONS = ("confidence", "age", "field")


class VerificationService:
    """Records reviewer decisions and advances claims once every field is reviewed."""

    def __init__(self, db: Session):
        self.db = db
        self.claims = ClaimRepository(db)
        self.fields = ExtractedFieldRepository(db)
        self.records = VerificationRecordRepository(db)
        self.audit = AuditService(db)

    def verify_field(
        self,
        field_id: UUID,
        verified_by: str,
        action_taken: str,
        corrected_value: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> VerificationRecord:
        """
        Record the one human decision for an extracted field.

        Raises:
            ValidationError: bad action, missing corrected value or verifier
            FieldNotFoundError: unknown field
            DuplicateVerificationError: field already has a decision
            ClaimNotFoundError: field's claim is missing
        """
        record = VerificationRecord.create(
            extracted_field_id=field_id,
            verified_by=verified_by,
            action_taken=action_taken,
            corrected_value=corrected_value,
            verification_notes=notes,
        )

        field = self.fields.get_required(field_id)
        if self.records.exists_for_field(field.extracted_field_id):
            raise DuplicateVerificationError(field_id)
        if field.verification_status != VerificationStatus.UNVERIFIED:
            raise DuplicateVerificationError(field_id)
        claim = self.claims.get_required(field.claim_id)

        try:
            with unit_of_work(self.db):
                self.records.add(record)
                field.apply_action(record.action_taken)
                self.fields.flush()

                self.audit.log_field_verified(
                    record.verified_by, field.extracted_field_id, field.field_name, record.action_taken.value
                )

                if claim.status == ClaimStatus.VALIDATED and self.fields.count_unverified(claim.claim_id) == 0:
                    claim.mark_verified()
                    self.claims.update(claim)
                    self.audit.log(
                        actor=record.verified_by,
                        action=AuditAction.CLAIM_VERIFIED,
                        entity_type="Claim",
                        entity_id=claim.claim_id,
                        details={"last_field_id": str(field.extracted_field_id)},
                    )
        except DuplicateRecordError as e:
            # A concurrent reviewer recorded a decision first
            raise DuplicateVerificationError(field_id) from e

        logger.info(
            f"Field {field.field_name} on claim {claim.claim_number} "
            f"{record.action_taken.value} by {record.verified_by}"
        )
        return record

    def get_verification_queue(self, sort_by: str = "confidence", limit: Optional[int] = None) -> List[ExtractedField]:
        """Unverified fields awaiting review, lowest confidence first by default."""
        if sort_by not in QUEUE_SORT_OPTIONS:
            raise ValidationError(f"sort_by must be one of: {', '.join(QUEUE_SORT_OPTIONS)}")
        return self.fields.get_unverified(sort_by=sort_by, limit=limit)

    def get_record(self, field_id: UUID) -> Optional[VerificationRecord]:
        self.fields.get_required(field_id)
        return self.records.get_by_field(field_id)
