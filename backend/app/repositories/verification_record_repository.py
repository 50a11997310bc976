from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import VerificationRecord
from app.repositories.base_repository import BaseRepository


class VerificationRecordRepository(BaseRepository[VerificationRecord]):
    """Repository for immutable verification decisions (insert and read only)."""

    def __init__(self, session: Session):
        super().__init__(session, VerificationRecord)

    def get_by_field(self, extracted_field_id: UUID) -> Optional[VerificationRecord]:
        query = select(VerificationRecord).where(
            VerificationRecord.extracted_field_id == extracted_field_id
        )
        return self.session.execute(query).scalar_one_or_none()

    def exists_for_field(self, extracted_field_id: UUID) -> bool:
        return self.get_by_field(extracted_field_id) is not None
