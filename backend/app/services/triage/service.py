"""
Triage workflow: idempotent routing, authorized override, history.
"""
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.core.exceptions import DuplicateRecordError, RiskAssessmentNotFoundError, ValidationError
from app.core.logging import get_logger
from app.db.models import Claim, ClaimStatus, RiskAssessment, TriageDecision, parse_queue
from app.repositories import ClaimRepository, RiskAssessmentRepository, TriageDecisionRepository
from app.services.audit import AuditAction, AuditService
from app.services.db_utils import unit_of_work
from app.services.triage.engine import TriageRouter, get_triage_router

logger = get_logger(__name__)


@dataclass
class TriageOutcome:
    decision: TriageDecision
    created: bool


class TriageService:
    """Service for routing claims to review queues."""

    def __init__(self, db: Session, router: Optional[TriageRouter] = None):
        self.db = db
        self.claims = ClaimRepository(db)
        self.assessments = RiskAssessmentRepository(db)
        self.decisions = TriageDecisionRepository(db)
        self.router = router or get_triage_router()
        self.audit = AuditService(db)

    def _latest_assessment(self, claim_id: UUID) -> RiskAssessment:
        assessment = self.assessments.get_latest_by_claim(claim_id)
        if assessment is None:
            raise RiskAssessmentNotFoundError(claim_id)
        return assessment

    def _advance_to_triaged(self, claim: Claim) -> None:
        if claim.status != ClaimStatus.TRIAGED:
            claim.mark_triaged()
            self.claims.update(claim)

    def triage_claim(self, claim_id: UUID, actor: str = "system") -> TriageOutcome:
        """
        Route a claim from its latest risk assessment.

        Triaging again against the same assessment returns the original
        decision unchanged and writes nothing.

        Raises:
            ClaimNotFoundError: unknown claim
            RiskAssessmentNotFoundError: claim was never assessed
            UnmappedRiskLevelError: assessment level has no queue
        """
        claim = self.claims.get_required(claim_id)
        assessment = self._latest_assessment(claim_id)

        existing = self.decisions.get_for_assessment(claim.claim_id, assessment.risk_assessment_id)
        if existing is not None:
            logger.info(f"Claim {claim.claim_number} already triaged for assessment {assessment.risk_assessment_id}")
            return TriageOutcome(decision=existing, created=False)

        route = self.router.route(assessment.risk_level)

        try:
            with unit_of_work(self.db):
                decision = self.decisions.add(
                    TriageDecision.create(
                        claim_id=claim.claim_id,
                        risk_assessment_id=assessment.risk_assessment_id,
                        queue=route.queue,
                    )
                )
                self._advance_to_triaged(claim)
                self.audit.log(
                    actor=actor,
                    action=AuditAction.CLAIM_TRIAGED,
                    entity_type="Claim",
                    entity_id=claim.claim_id,
                    details={
                        "triage_decision_id": str(decision.triage_decision_id),
                        "risk_assessment_id": str(assessment.risk_assessment_id),
                        "risk_level": assessment.risk_level.value,
                        "queue": route.queue.value,
                        "rule_version": route.rule_version,
                    },
                )
        except DuplicateRecordError:
            # A concurrent request routed the same assessment first
            winner = self.decisions.get_for_assessment(claim_id, assessment.risk_assessment_id)
            if winner is None:
                raise
            return TriageOutcome(decision=winner, created=False)

        logger.info(f"Claim {claim.claim_number} routed to {route.queue.value}")
        return TriageOutcome(decision=decision, created=True)

    def override_triage(
        self,
        claim_id: UUID,
        queue: str,
        override_by: str,
        override_reason: str,
    ) -> TriageDecision:
        """
        Record a manual queue assignment.

        Always appends a new decision; earlier decisions stay in history.
        Any of the named queues is accepted regardless of risk level.
        """
        errors = []
        if not (override_by or "").strip():
            errors.append("Override identity is required")
        if not (override_reason or "").strip():
            errors.append("Override reason is required")
        if errors:
            raise ValidationError("Invalid triage override", errors)
        target_queue = parse_queue(queue)

        claim = self.claims.get_required(claim_id)
        assessment = self._latest_assessment(claim_id)
        previous = self.decisions.get_latest_by_claim(claim_id)

        with unit_of_work(self.db):
            decision = self.decisions.add(
                TriageDecision.create(
                    claim_id=claim.claim_id,
                    risk_assessment_id=assessment.risk_assessment_id,
                    queue=target_queue,
                    is_override=True,
                    override_by=override_by,
                    override_reason=override_reason,
                )
            )
            self._advance_to_triaged(claim)
            self.audit.log(
                actor=override_by,
                action=AuditAction.TRIAGE_OVERRIDDEN,
                entity_type="Claim",
                entity_id=claim.claim_id,
                details={
                    "triage_decision_id": str(decision.triage_decision_id),
                    "risk_assessment_id": str(assessment.risk_assessment_id),
                    "previous_queue": previous.queue.value if previous else None,
                    "queue": target_queue.value,
                    "reason": override_reason,
                },
            )

        logger.info(f"Claim {claim.claim_number} triage overridden to {target_queue.value} by {override_by}")
        return decision

    def get_triage_history(self, claim_id: UUID) -> List[TriageDecision]:
        self.claims.get_required(claim_id)
        return self.decisions.get_all_by_claim(claim_id)

    def get_current_decision(self, claim_id: UUID) -> Optional[TriageDecision]:
        self.claims.get_required(claim_id)
        return self.decisions.get_latest_by_claim(claim_id)

    def list_queue(self, queue: str) -> List[TriageDecision]:
        """Claims whose current decision places them in `queue`."""
        return self.decisions.get_current_in_queue(parse_queue(queue))
