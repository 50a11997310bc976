from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import DocumentNotFoundError
from app.db.models import ClaimDocument
from app.repositories.base_repository import BaseRepository


class DocumentRepository(BaseRepository[ClaimDocument]):
    """Repository for claim document metadata."""

    def __init__(self, session: Session):
        super().__init__(session, ClaimDocument)

    def get_required(self, document_id: UUID) -> ClaimDocument:
        document = self.get_by_id(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        return document

    def get_by_claim(self, claim_id: UUID) -> List[ClaimDocument]:
        query = (
            select(ClaimDocument)
            .where(ClaimDocument.claim_id == claim_id)
            .order_by(ClaimDocument.uploaded_at.asc())
        )
        return list(self.session.execute(query).scalars().all())
