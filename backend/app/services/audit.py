"""
Audit service for ClaimsIntake.
Records one audit event per state-changing operation.
"""
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ValidationError
from app.core.logging import correlation_id_var, get_logger, log_audit_event
from app.db.base import utcnow
from app.db.models import AuditLog, AuditOutcome

logger = get_logger(__name__)


class AuditAction:
    CLAIM_SUBMITTED = "ClaimSubmitted"
    POLICY_VALIDATED = "PolicyValidated"
    LOSS_DESCRIPTION_UPDATED = "LossDescriptionUpdated"
    DOCUMENT_UPLOADED = "DocumentUploaded"
    AI_EXTRACTION_PERFORMED = "AIExtractionPerformed"
    FIELD_VERIFIED = "FieldVerified"
    CLAIM_VERIFIED = "ClaimVerified"
    RISK_ASSESSED = "RiskAssessed"
    CLAIM_TRIAGED = "ClaimTriaged"
    TRIAGE_OVERRIDDEN = "TriageOverridden"


class AuditService:
    """Service for creating and querying audit logs.

    Entries are staged on the caller's session and committed with the
    operation they describe, so an audit row exists exactly when the
    change it records does.
    """

    def __init__(self, db: Session):
        self.db = db

    def log(
        self,
        actor: str,
        action: str,
        entity_type: str,
        entity_id: Any,
        outcome: str = AuditOutcome.SUCCESS,
        details: Optional[dict[str, Any]] = None,
    ) -> AuditLog:
        """
        Stage an audit log entry.

        Args:
            actor: Who performed the action (user id, or "system")
            action: What happened (see AuditAction)
            entity_type: Type of entity affected ("Claim", "ExtractedField", ...)
            entity_id: ID of the entity
            outcome: "Success" or "Failure"
            details: Free-form event details
        """
        missing = [
            name for name, value in (
                ("actor", actor),
                ("action", action),
                ("entity_type", entity_type),
                ("entity_id", entity_id),
                ("outcome", outcome),
            )
            if value is None or not str(value).strip()
        ]
        if missing:
            raise ValidationError(f"Audit event is missing: {', '.join(missing)}")

        audit_log = AuditLog(
            actor=str(actor),
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            outcome=outcome,
            details=details or {},
            correlation_id=correlation_id_var.get(),
            timestamp=utcnow(),
        )
        self.db.add(audit_log)

        log_audit_event(action, str(actor), entity_type, str(entity_id), outcome, details or {})
        return audit_log

    def log_claim_submitted(self, actor: str, claim_id, claim_number: str, policy_number: str) -> AuditLog:
        return self.log(
            actor=actor,
            action=AuditAction.CLAIM_SUBMITTED,
            entity_type="Claim",
            entity_id=claim_id,
            details={"claim_number": claim_number, "policy_number": policy_number},
        )

    def log_policy_validated(self, claim_id, policy_number: str, in_force: bool) -> AuditLog:
        return self.log(
            actor="system",
            action=AuditAction.POLICY_VALIDATED,
            entity_type="Claim",
            entity_id=claim_id,
            outcome=AuditOutcome.SUCCESS if in_force else AuditOutcome.FAILURE,
            details={"policy_number": policy_number, "in_force_on_loss_date": in_force},
        )

    def log_field_verified(self, actor: str, field_id, field_name: str, action_taken: str) -> AuditLog:
        return self.log(
            actor=actor,
            action=AuditAction.FIELD_VERIFIED,
            entity_type="ExtractedField",
            entity_id=field_id,
            details={"field_name": field_name, "action_taken": action_taken},
        )

    def get_entity_history(
        self,
        entity_type: str,
        entity_id: Any,
        limit: int = 100,
    ) -> list[AuditLog]:
        """Audit trail of one entity, oldest first."""
        query = (
            select(AuditLog)
            .where(
                AuditLog.entity_type == entity_type,
                AuditLog.entity_id == str(entity_id),
            )
            .order_by(AuditLog.timestamp.asc())
            .limit(limit)
        )
        return list(self.db.execute(query).scalars().all())

    def get_actions(self, action: str, limit: int = 100) -> list[AuditLog]:
        query = (
            select(AuditLog)
            .where(AuditLog.action == action)
            .order_by(AuditLog.timestamp.desc())
            .limit(limit)
        )
        return list(self.db.execute(query).scalars().all())
