"""
Policy Validation Service
Resolves the policy behind a claim and freezes its coverage into a snapshot.
"""
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.exceptions import PolicyNotFoundError
from app.core.logging import get_logger
from app.db.models import PolicySnapshot, CoverageStatus
from app.repositories import PolicyRepository

logger = get_logger(__name__)


@dataclass
class PolicyValidationResult:
    """Result of policy validation for one claim."""
    snapshot: PolicySnapshot
    in_force: bool
    reason: str


class PolicyValidationService:
    """Service for validating a claim's policy against its loss date."""

    def __init__(self, db: Session):
        self.db = db
        self.policies = PolicyRepository(db)

    def validate(self, claim_id: UUID, policy_number: str, loss_date: date) -> PolicyValidationResult:
        """
        Look up the policy of record and snapshot it for the claim.

        The snapshot is returned even when the policy was not in force on
        the loss date; the claim then stays Submitted.

        Raises:
            PolicyNotFoundError: no policy with that number exists
        """
        policy = self.policies.get_by_number(policy_number)
        if policy is None:
            logger.info(f"No policy found for number {policy_number}")
            raise PolicyNotFoundError(policy_number)

        snapshot = PolicySnapshot.from_policy(claim_id, policy)

        if snapshot.coverage_status != CoverageStatus.ACTIVE:
            reason = f"Policy status is {snapshot.coverage_status.value}"
        elif loss_date < snapshot.effective_date:
            reason = f"Loss date {loss_date} is before policy effective date {snapshot.effective_date}"
        elif loss_date > snapshot.expiration_date:
            reason = f"Loss date {loss_date} is after policy expiration date {snapshot.expiration_date}"
        else:
            reason = "Policy was in force on the loss date"

        in_force = snapshot.was_in_force_on(loss_date)
        logger.info(f"Policy {policy.policy_number} validation for claim {claim_id}: {reason}")
        return PolicyValidationResult(snapshot=snapshot, in_force=in_force, reason=reason)

