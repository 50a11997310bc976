from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import FieldNotFoundError
from app.db.models import ExtractedField, VerificationStatus
from app.repositories.base_repository import BaseRepository


class ExtractedFieldRepository(BaseRepository[ExtractedField]):
    """Repository for AI-extracted fields."""

    def __init__(self, session: Session):
        super().__init__(session, ExtractedField)

    def get_required(self, field_id: UUID) -> ExtractedField:
        field = self.get_by_id(field_id)
        if field is None:
            raise FieldNotFoundError(field_id)
        return field

    def get_by_claim(self, claim_id: UUID) -> List[ExtractedField]:
        query = (
            select(ExtractedField)
            .where(ExtractedField.claim_id == claim_id)
            .order_by(ExtractedField.extracted_at, ExtractedField.field_name)
        )
        return list(self.session.execute(query).scalars().all())

    def get_by_document(self, document_id: UUID) -> List[ExtractedField]:
        query = (
            select(ExtractedField)
            .where(ExtractedField.document_id == document_id)
            .order_by(ExtractedField.field_name)
        )
        return list(self.session.execute(query).scalars().all())

    def count_unverified(self, claim_id: UUID) -> int:
        return sum(
            1 for field in self.get_by_claim(claim_id)
            if field.verification_status == VerificationStatus.UNVERIFIED
        )

    def get_unverified(self, sort_by: str = "confidence", limit: Optional[int] = None) -> List[ExtractedField]:
        """Unverified fields across all claims, for the reviewer work queue."""
        order = {
            "confidence": (ExtractedField.confidence_score.asc(), ExtractedField.extracted_at.asc()),
            "age": (ExtractedField.extracted_at.asc(),),
            "field": (ExtractedField.field_name.asc(), ExtractedField.extracted_at.asc()),
        }[sort_by]
        query = (
            select(ExtractedField)
            .where(ExtractedField.verification_status == VerificationStatus.UNVERIFIED)
            .order_by(*order)
        )
        if limit:
            query = query.limit(limit)
        return list(self.session.execute(query).scalars().all())
