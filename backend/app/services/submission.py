"""
Claim submission service
"""
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.exceptions import ClaimNotFoundError
from app.core.logging import get_logger
from app.db.models import Claim, ensure_valid_submission, format_claim_number
from app.repositories import ClaimRepository, PolicySnapshotRepository
from app.services.audit import AuditAction, AuditService
from app.services.db_utils import unit_of_work
from app.services.policy_validation import PolicyValidationService

logger = get_logger(__name__)


class SubmissionService:
    """Creates claims, snapshots their policy, and advances them to Validated."""

    def __init__(self, db: Session):
        self.db = db
        self.claims = ClaimRepository(db)
        self.snapshots = PolicySnapshotRepository(db)
        self.policy_validation = PolicyValidationService(db)
        self.audit = AuditService(db)

    def submit_claim(
        self,
        policy_number: str,
        loss_date: date,
        loss_type: str,
        loss_location: str,
        loss_description: Optional[str],
        submitted_by: str,
    ) -> Claim:
        """
        Submit a new FNOL claim.

        The claim is validated when its policy was in force on the loss
        date; otherwise it stays Submitted.

        Raises:
            ValidationError: invalid submission (all problems listed)
            PolicyNotFoundError: unknown policy number
        """
        with unit_of_work(self.db):
            # Validate before drawing a sequence number
            ensure_valid_submission(policy_number, loss_date, loss_type, loss_location, submitted_by)

            claim = Claim.create(
                claim_number=format_claim_number(self.claims.next_sequence_number()),
                policy_number=policy_number,
                loss_date=loss_date,
                loss_type=loss_type,
                loss_location=loss_location,
                loss_description=loss_description,
                submitted_by=submitted_by,
            )
            self.claims.add(claim)

            validation = self.policy_validation.validate(claim.claim_id, claim.policy_number, claim.loss_date)
            self.snapshots.add(validation.snapshot)

            self.audit.log_claim_submitted(submitted_by, claim.claim_id, claim.claim_number, claim.policy_number)

            if validation.in_force:
                claim.mark_validated()
                self.claims.update(claim)
            self.audit.log_policy_validated(claim.claim_id, claim.policy_number, validation.in_force)

        logger.info(f"Claim {claim.claim_number} submitted ({claim.status.value})")
        return claim

    def update_loss_description(self, claim_id: UUID, description: str, actor: str) -> Claim:
        with unit_of_work(self.db):
            claim = self.claims.get_required(claim_id)
            claim.update_loss_description(description)
            self.claims.update(claim)
            self.audit.log(
                actor=actor,
                action=AuditAction.LOSS_DESCRIPTION_UPDATED,
                entity_type="Claim",
                entity_id=claim.claim_id,
                details={"length": len(description)},
            )
        return claim

    def get_claim(self, claim_id: UUID) -> Claim:
        return self.claims.get_required(claim_id)

    def get_claim_by_number(self, claim_number: str) -> Claim:
        claim = self.claims.get_by_number(claim_number)
        if claim is None:
            raise ClaimNotFoundError(claim_number)
        return claim
