"""
Verification Guard

Gatekeeper between AI extraction and everything downstream of it. Only
fields a human has accepted or corrected may feed risk evaluation:

- Unverified fields block evaluation outright (the review is not done).
- Rejected fields are excluded but do not block (the review is done; the
  reviewer discarded the value).

The guard only reads. Every check is safe to repeat.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.exceptions import RejectedDataError, UnverifiedDataError
from app.db.models import ExtractedField, VerificationStatus
from app.repositories import ExtractedFieldRepository


@dataclass(frozen=True)
class VerifiedField:
    """A human-confirmed field value as seen by risk evaluation."""
    extracted_field_id: UUID
    field_name: str
    value: Optional[str]
    verification_status: VerificationStatus


def ensure_verified(field) -> None:
    """Fail unless a reviewer accepted or corrected this field (ExtractedField or VerifiedField)."""
    if field.verification_status == VerificationStatus.UNVERIFIED:
        raise UnverifiedDataError([field.field_name])
    if field.verification_status == VerificationStatus.REJECTED:
        raise RejectedDataError(field.field_name)


def to_verified_field(field: ExtractedField) -> VerifiedField:
    ensure_verified(field)
    return VerifiedField(
        extracted_field_id=field.extracted_field_id,
        field_name=field.field_name,
        value=field.effective_value,
        verification_status=field.verification_status,
    )


class VerificationGuard:
    """Repository-backed checks over all extracted fields of a claim."""

    def __init__(self, db: Session):
        self.fields = ExtractedFieldRepository(db)

    def ensure_verified(self, field: ExtractedField) -> None:
        ensure_verified(field)

    def ensure_all_verified(self, claim_id: UUID) -> None:
        """Fail, naming every offender, if any field of the claim is still Unverified."""
        pending = [
            field.field_name
            for field in self.fields.get_by_claim(claim_id)
            if field.verification_status == VerificationStatus.UNVERIFIED
        ]
        if pending:
            raise UnverifiedDataError(pending)

    def get_verified_fields(self, claim_id: UUID) -> List[VerifiedField]:
        """Accepted and corrected fields only; unverified and rejected ones are dropped."""
        return [
            to_verified_field(field)
            for field in self.fields.get_by_claim(claim_id)
            if field.is_usable
        ]


def first_value_by_name(fields: List[VerifiedField]) -> Dict[str, Optional[str]]:
    """Map field name to value, keeping the earliest-extracted field per name."""
    values: Dict[str, Optional[str]] = {}
    for field in fields:
        values.setdefault(field.field_name, field.value)
    return values
