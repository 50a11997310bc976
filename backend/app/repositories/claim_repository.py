from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ClaimNotFoundError
from app.db.models import Claim, ClaimSequence
from app.repositories.base_repository import BaseRepository

SEQUENCE_ROW_ID = 1


class ClaimRepository(BaseRepository[Claim]):
    """Repository for Claim aggregates.

    Writes go through the ORM's version counter: a flush against a claim
    whose version changed since it was loaded raises ConcurrencyConflictError.
    """

    def __init__(self, session: Session):
        super().__init__(session, Claim)

    def get_by_number(self, claim_number: str) -> Optional[Claim]:
        query = select(Claim).where(Claim.claim_number == claim_number)
        return self.session.execute(query).scalar_one_or_none()

    def get_required(self, claim_id: UUID) -> Claim:
        claim = self.get_by_id(claim_id)
        if claim is None:
            raise ClaimNotFoundError(claim_id)
        return claim

    def update(self, claim: Claim) -> Claim:
        """Persist changes to a loaded claim (versioned)."""
        self.flush()
        return claim

    def next_sequence_number(self) -> int:
        """Reserve the next claim sequence number.

        The counter row is locked for the rest of the transaction, so two
        submissions never draw the same number.
        """
        query = (
            select(ClaimSequence)
            .where(ClaimSequence.sequence_id == SEQUENCE_ROW_ID)
            .with_for_update()
        )
        sequence = self.session.execute(query).scalar_one_or_none()
        if sequence is None:
            sequence = ClaimSequence(sequence_id=SEQUENCE_ROW_ID, last_value=0)
            self.session.add(sequence)
        sequence.last_value += 1
        self.flush()
        return sequence.last_value
