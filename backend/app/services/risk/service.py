"""
Risk assessment workflow: guard, evaluate, persist, audit.
"""
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.exceptions import (
    InvalidStateError,
    PolicySnapshotNotFoundError,
    RiskAssessmentNotFoundError,
)
from app.core.logging import get_logger
from app.db.models import ClaimStatus, RiskAssessment
from app.repositories import ClaimRepository, PolicySnapshotRepository, RiskAssessmentRepository
from app.services.audit import AuditAction, AuditService
from app.services.db_utils import unit_of_work
from app.services.llm.observation_service import ObservationService
from app.services.risk.engine import RiskEngine, RiskEvaluation, get_risk_engine
from app.services.verification_guard import VerificationGuard

logger = get_logger(__name__)

RISK_DISCLAIMER = "This is a signal, not a decision. Human review required."

EVALUABLE_STATUSES = (ClaimStatus.VERIFIED, ClaimStatus.TRIAGED)


@dataclass
class RiskAssessmentOutcome:
    """Persisted assessment together with the in-memory evaluation detail."""
    assessment: RiskAssessment
    evaluation: RiskEvaluation


class RiskAssessmentService:
    """Service for evaluating and reading claim risk."""

    def __init__(
        self,
        db: Session,
        observation_service: Optional[ObservationService] = None,
        engine: Optional[RiskEngine] = None,
    ):
        self.db = db
        self.claims = ClaimRepository(db)
        self.snapshots = PolicySnapshotRepository(db)
        self.assessments = RiskAssessmentRepository(db)
        self.guard = VerificationGuard(db)
        self.observations = observation_service
        self.engine = engine or get_risk_engine()
        self.audit = AuditService(db)

    async def evaluate_risk(self, claim_id: UUID, actor: str = "system") -> RiskAssessmentOutcome:
        """
        Evaluate a fully verified claim and store a new assessment.

        Raises:
            ClaimNotFoundError: unknown claim
            InvalidStateError: claim has not reached Verified
            UnverifiedDataError: an extracted field still awaits review
            PolicySnapshotNotFoundError: claim has no policy snapshot
        """
        claim = self.claims.get_required(claim_id)
        if claim.status not in EVALUABLE_STATUSES:
            raise InvalidStateError(
                f"Risk evaluation requires a Verified claim (claim {claim.claim_number} is {claim.status.value})"
            )
        if self.observations is None:
            raise InvalidStateError("No observation service is configured")

        self.guard.ensure_all_verified(claim_id)

        snapshot = self.snapshots.get_by_claim(claim_id)
        if snapshot is None:
            raise PolicySnapshotNotFoundError(claim_id)

        verified_fields = self.guard.get_verified_fields(claim_id)
        observations = await self.observations.observe(claim.loss_description, verified_fields)

        evaluation = self.engine.evaluate(claim, snapshot, verified_fields, observations)

        with unit_of_work(self.db):
            assessment = self.assessments.add(
                RiskAssessment.create(
                    claim_id=claim.claim_id,
                    risk_level=evaluation.risk_level,
                    rule_signals=[signal.to_dict() for signal in evaluation.rule_signals],
                    ai_observations=[obs.to_dict() for obs in evaluation.ai_observations],
                    overall_score=evaluation.overall_score,
                    model_version=f"rules-{evaluation.rule_version}+{self.observations.model_name}",
                )
            )
            self.audit.log(
                actor=actor,
                action=AuditAction.RISK_ASSESSED,
                entity_type="Claim",
                entity_id=claim.claim_id,
                details={
                    "risk_assessment_id": str(assessment.risk_assessment_id),
                    "risk_level": evaluation.risk_level.value,
                    "rule_based_level": evaluation.rule_based_level.value,
                    "overall_score": evaluation.overall_score,
                    "rules_triggered": len(evaluation.triggered_signals),
                    "ai_observations": len(evaluation.ai_observations),
                },
            )

        logger.info(
            f"Claim {claim.claim_number} assessed {evaluation.risk_level.value} "
            f"(rules: {evaluation.rule_based_level.value}, score {evaluation.overall_score})"
        )
        return RiskAssessmentOutcome(assessment=assessment, evaluation=evaluation)

    def get_latest_assessment(self, claim_id: UUID) -> RiskAssessment:
        self.claims.get_required(claim_id)
        assessment = self.assessments.get_latest_by_claim(claim_id)
        if assessment is None:
            raise RiskAssessmentNotFoundError(claim_id)
        return assessment

    def list_assessments(self, claim_id: UUID) -> List[RiskAssessment]:
        self.claims.get_required(claim_id)
        return self.assessments.get_all_by_claim(claim_id)
