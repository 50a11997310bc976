from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.db.models import TriageDecision, TriageQueue
from app.repositories.base_repository import BaseRepository

NEWEST_FIRST = (TriageDecision.routed_at.desc(), TriageDecision.sequence_number.desc())
OLDEST_FIRST = (TriageDecision.routed_at.asc(), TriageDecision.sequence_number.asc())


class TriageDecisionRepository(BaseRepository[TriageDecision]):
    """Repository for triage decisions (insert and read only)."""

    def __init__(self, session: Session):
        super().__init__(session, TriageDecision)

    def next_sequence_number(self, claim_id: UUID) -> int:
        query = select(func.max(TriageDecision.sequence_number)).where(TriageDecision.claim_id == claim_id)
        return (self.session.execute(query).scalar() or 0) + 1

    def add(self, instance: TriageDecision) -> TriageDecision:
        """Stage a decision behind the claim's earlier ones."""
        instance.sequence_number = self.next_sequence_number(instance.claim_id)
        return super().add(instance)

    def get_all_by_claim(self, claim_id: UUID) -> List[TriageDecision]:
        """Decision history for a claim in creation order."""
        query = (
            select(TriageDecision)
            .where(TriageDecision.claim_id == claim_id)
            .order_by(*OLDEST_FIRST)
        )
        return list(self.session.execute(query).scalars().all())

    def get_latest_by_claim(self, claim_id: UUID) -> Optional[TriageDecision]:
        query = (
            select(TriageDecision)
            .where(TriageDecision.claim_id == claim_id)
            .order_by(*NEWEST_FIRST)
            .limit(1)
        )
        return self.session.execute(query).scalars().first()

    def get_for_assessment(self, claim_id: UUID, risk_assessment_id: UUID) -> Optional[TriageDecision]:
        """The computed (non-override) decision for one assessment, if any."""
        query = select(TriageDecision).where(
            TriageDecision.claim_id == claim_id,
            TriageDecision.risk_assessment_id == risk_assessment_id,
            TriageDecision.is_override.is_(False),
        )
        return self.session.execute(query).scalar_one_or_none()

    def get_current_in_queue(self, queue: TriageQueue) -> List[TriageDecision]:
        """Latest decision of each claim, kept only where it sits in `queue`."""
        ranked = select(
            TriageDecision.triage_decision_id,
            func.row_number()
            .over(partition_by=TriageDecision.claim_id, order_by=NEWEST_FIRST)
            .label("position"),
        ).subquery()
        query = (
            select(TriageDecision)
            .join(ranked, TriageDecision.triage_decision_id == ranked.c.triage_decision_id)
            .where(ranked.c.position == 1, TriageDecision.queue == queue)
            .order_by(*OLDEST_FIRST)
        )
        return list(self.session.execute(query).scalars().all())
