"""
AI-extracted fields and the human verification decisions recorded against them
"""
import uuid
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Column, String, Text, Float, DateTime, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship, validates

from app.core.exceptions import InvalidStateError, ValidationError
from app.db.base import Base, append_only, utcnow, wire_enum


class VerificationStatus(str, PyEnum):
    UNVERIFIED = "Unverified"
    VERIFIED = "Verified"
    CORRECTED = "Corrected"
    REJECTED = "Rejected"


class ActionTaken(str, PyEnum):
    ACCEPTED = "Accepted"
    CORRECTED = "Corrected"
    REJECTED = "Rejected"


# Status an extracted field moves to for each reviewer action
STATUS_FOR_ACTION = {
    ActionTaken.ACCEPTED: VerificationStatus.VERIFIED,
    ActionTaken.CORRECTED: VerificationStatus.CORRECTED,
    ActionTaken.REJECTED: VerificationStatus.REJECTED,
}

USABLE_STATUSES = (VerificationStatus.VERIFIED, VerificationStatus.CORRECTED)


class ExtractedField(Base):
    """A single field value produced by AI extraction from one document."""

    __tablename__ = "extracted_fields"
    __table_args__ = (
        UniqueConstraint("document_id", "field_name", name="uq_extracted_fields_document_field"),
    )

    extracted_field_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    claim_id = Column(Uuid, ForeignKey("claims.claim_id"), nullable=False, index=True)
    document_id = Column(Uuid, ForeignKey("claim_documents.document_id"), nullable=False, index=True)
    field_name = Column(String(100), nullable=False)
    field_value = Column(Text, nullable=True)
    confidence_score = Column(Float, nullable=False)
    verification_status = Column(
        wire_enum(VerificationStatus, "verification_status"),
        default=VerificationStatus.UNVERIFIED,
        nullable=False,
        index=True,
    )
    extracted_at = Column(DateTime, default=utcnow, nullable=False)

    # Provenance
    extracted_by_model = Column(String(100), nullable=False)
    system_prompt_version = Column(String(20), nullable=False)
    user_prompt_version = Column(String(20), nullable=False)
    schema_version = Column(String(20), nullable=False)

    verification = relationship("VerificationRecord", uselist=False, viewonly=True)

    def __repr__(self) -> str:
        return f"<ExtractedField {self.field_name} ({self.verification_status.value})>"

    @classmethod
    def create(
        cls,
        claim_id: uuid.UUID,
        document_id: uuid.UUID,
        field_name: str,
        field_value: Optional[str],
        confidence_score: float,
        extracted_by_model: str,
        system_prompt_version: str,
        user_prompt_version: str,
        schema_version: str,
    ) -> "ExtractedField":
        if claim_id is None:
            raise ValidationError("Claim id is required")
        if document_id is None:
            raise ValidationError("Document id is required")
        if not (field_name or "").strip():
            raise ValidationError("Field name is required")

        return cls(
            claim_id=claim_id,
            document_id=document_id,
            field_name=field_name,
            field_value=field_value,
            confidence_score=confidence_score,
            verification_status=VerificationStatus.UNVERIFIED,
            extracted_at=utcnow(),
            extracted_by_model=extracted_by_model,
            system_prompt_version=system_prompt_version,
            user_prompt_version=user_prompt_version,
            schema_version=schema_version,
        )

    @validates("confidence_score")
    def _validate_confidence(self, key, value):
        if value is None or not 0.0 <= float(value) <= 1.0:
            raise ValidationError("Confidence score must be between 0 and 1")
        return float(value)

    @validates("verification_status")
    def _validate_status(self, key, value):
        value = VerificationStatus(value)
        current = self.verification_status
        if current is not None and current != VerificationStatus.UNVERIFIED:
            raise InvalidStateError(f"Field '{self.field_name}' has already been verified")
        return value

    def apply_action(self, action: ActionTaken) -> None:
        """Record the single terminal status for this field."""
        if self.verification_status != VerificationStatus.UNVERIFIED:
            raise InvalidStateError(f"Field '{self.field_name}' has already been verified")
        self.verification_status = STATUS_FOR_ACTION[ActionTaken(action)]

    @property
    def is_usable(self) -> bool:
        return self.verification_status in USABLE_STATUSES

    @property
    def effective_value(self) -> Optional[str]:
        """Value downstream consumers see: the reviewer's correction wins."""
        if (
            self.verification_status == VerificationStatus.CORRECTED
            and self.verification is not None
        ):
            return self.verification.corrected_value
        return self.field_value


@append_only
class VerificationRecord(Base):
    """Immutable human decision on one extracted field."""

    __tablename__ = "verification_records"

    verification_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    extracted_field_id = Column(
        Uuid,
        ForeignKey("extracted_fields.extracted_field_id"),
        unique=True,
        nullable=False,
    )
    verified_by = Column(String(255), nullable=False)
    verified_at = Column(DateTime, default=utcnow, nullable=False)
    action_taken = Column(wire_enum(ActionTaken, "action_taken"), nullable=False)
    corrected_value = Column(Text, nullable=True)
    verification_notes = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<VerificationRecord {self.action_taken.value} by {self.verified_by}>"

    @classmethod
    def create(
        cls,
        extracted_field_id: uuid.UUID,
        verified_by: str,
        action_taken: str,
        corrected_value: Optional[str] = None,
        verification_notes: Optional[str] = None,
    ) -> "VerificationRecord":
        errors = []
        if extracted_field_id is None:
            errors.append("Extracted field id is required")
        if not (verified_by or "").strip():
            errors.append("Verifier identity is required")
        try:
            action = ActionTaken(action_taken)
        except ValueError:
            action = None
            valid = ", ".join(a.value for a in ActionTaken)
            errors.append(f"Action must be one of: {valid}")
        if action == ActionTaken.CORRECTED and not (corrected_value or "").strip():
            errors.append("Corrected value is required when action is Corrected")
        if errors:
            raise ValidationError("Invalid verification", errors)

        return cls(
            extracted_field_id=extracted_field_id,
            verified_by=verified_by.strip(),
            verified_at=utcnow(),
            action_taken=action,
            corrected_value=corrected_value if action == ActionTaken.CORRECTED else None,
            verification_notes=verification_notes,
        )

    @property
    def resulting_status(self) -> VerificationStatus:
        return STATUS_FOR_ACTION[self.action_taken]
