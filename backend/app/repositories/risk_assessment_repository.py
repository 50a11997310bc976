from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.models import RiskAssessment
from app.repositories.base_repository import BaseRepository


class RiskAssessmentRepository(BaseRepository[RiskAssessment]):
    """Repository for risk assessment snapshots (insert and read only)."""

    def __init__(self, session: Session):
        super().__init__(session, RiskAssessment)

    def next_sequence_number(self, claim_id: UUID) -> int:
        query = select(func.max(RiskAssessment.sequence_number)).where(RiskAssessment.claim_id == claim_id)
        return (self.session.execute(query).scalar() or 0) + 1

    def add(self, instance: RiskAssessment) -> RiskAssessment:
        """Stage an assessment behind the claim's earlier ones.

        Two concurrent inserts drawing the same number collide on the
        (claim, sequence) constraint and surface as DuplicateRecordError.
        """
        instance.sequence_number = self.next_sequence_number(instance.claim_id)
        return super().add(instance)

    def get_all_by_claim(self, claim_id: UUID) -> List[RiskAssessment]:
        """All assessments for a claim, oldest first."""
        query = (
            select(RiskAssessment)
            .where(RiskAssessment.claim_id == claim_id)
            .order_by(RiskAssessment.created_at.asc(), RiskAssessment.sequence_number.asc())
        )
        return list(self.session.execute(query).scalars().all())

    def get_latest_by_claim(self, claim_id: UUID) -> Optional[RiskAssessment]:
        query = (
            select(RiskAssessment)
            .where(RiskAssessment.claim_id == claim_id)
            .order_by(RiskAssessment.created_at.desc(), RiskAssessment.sequence_number.desc())
            .limit(1)
        )
        return self.session.execute(query).scalars().first()
