"""
Triage decision snapshot model
"""
import uuid
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Index, Integer, UniqueConstraint, Uuid

from app.core.exceptions import ValidationError
from app.db.base import Base, append_only, utcnow, wire_enum


class TriageQueue(str, PyEnum):
    AUTO_REVIEW = "Auto-Review"
    STANDARD_REVIEW = "Standard Review"
    MANUAL_INVESTIGATION = "Manual Investigation"


def parse_queue(queue: str) -> TriageQueue:
    try:
        return TriageQueue(queue)
    except ValueError:
        valid = ", ".join(f"'{q.value}'" for q in TriageQueue)
        raise ValidationError(f"Queue must be one of: {valid}")


@append_only
class TriageDecision(Base):
    """Queue assignment for a claim. Overrides append; nothing is rewritten."""

    __tablename__ = "triage_decisions"
    __table_args__ = (
        UniqueConstraint("claim_id", "sequence_number", name="uq_triage_decisions_claim_sequence"),
    )

    triage_decision_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    claim_id = Column(Uuid, ForeignKey("claims.claim_id"), nullable=False, index=True)
    risk_assessment_id = Column(
        Uuid, ForeignKey("risk_assessments.risk_assessment_id"), nullable=False, index=True
    )
    queue = Column(wire_enum(TriageQueue, "triage_queue"), nullable=False, index=True)
    routed_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    # Per-claim insertion order; breaks routed_at ties
    sequence_number = Column(Integer, nullable=False)

    is_override = Column(Boolean, default=False, nullable=False)
    override_by = Column(String(255), nullable=True)
    override_reason = Column(Text, nullable=True)

    def __repr__(self) -> str:
        kind = "override" if self.is_override else "routed"
        return f"<TriageDecision {self.queue.value} ({kind})>"

    @classmethod
    def create(
        cls,
        claim_id: uuid.UUID,
        risk_assessment_id: uuid.UUID,
        queue: str,
        is_override: bool = False,
        override_by: Optional[str] = None,
        override_reason: Optional[str] = None,
    ) -> "TriageDecision":
        if claim_id is None or risk_assessment_id is None:
            raise ValidationError("Claim id and risk assessment id are required")
        queue = parse_queue(queue)
        if is_override:
            errors = []
            if not (override_by or "").strip():
                errors.append("Override identity is required")
            if not (override_reason or "").strip():
                errors.append("Override reason is required")
            if errors:
                raise ValidationError("Invalid triage override", errors)

        return cls(
            claim_id=claim_id,
            risk_assessment_id=risk_assessment_id,
            queue=queue,
            routed_at=utcnow(),
            is_override=is_override,
            override_by=override_by.strip() if is_override else None,
            override_reason=override_reason.strip() if is_override else None,
        )


# One computed decision per (claim, assessment); overrides are unbounded
Index(
    "uq_triage_decisions_claim_assessment",
    TriageDecision.claim_id,
    TriageDecision.risk_assessment_id,
    unique=True,
    postgresql_where=TriageDecision.is_override.is_(False),
    sqlite_where=TriageDecision.is_override.is_(False),
)
