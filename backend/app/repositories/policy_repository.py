from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.models import Policy, PolicySnapshot
from app.repositories.base_repository import BaseRepository


class PolicyRepository(BaseRepository[Policy]):
    """Read access to the policy registry."""

    def __init__(self, session: Session):
        super().__init__(session, Policy)

    def get_by_number(self, policy_number: str) -> Optional[Policy]:
        query = select(Policy).where(Policy.policy_number == policy_number.strip())
        return self.session.execute(query).scalar_one_or_none()


class PolicySnapshotRepository(BaseRepository[PolicySnapshot]):
    """Repository for the per-claim policy snapshot (insert and read only)."""

    def __init__(self, session: Session):
        super().__init__(session, PolicySnapshot)

    def get_by_claim(self, claim_id: UUID) -> Optional[PolicySnapshot]:
        query = select(PolicySnapshot).where(PolicySnapshot.claim_id == claim_id)
        return self.session.execute(query).scalar_one_or_none()
