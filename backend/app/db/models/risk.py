"""
Risk assessment snapshot model
"""
import uuid
from enum import Enum as PyEnum
from typing import Any, Dict, List

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, JSON, UniqueConstraint, Uuid

from app.core.exceptions import ValidationError
from app.db.base import Base, append_only, utcnow, wire_enum


class RiskLevel(str, PyEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


@append_only
class RiskAssessment(Base):
    """Result of one risk evaluation. A re-evaluation writes a new row."""

    __tablename__ = "risk_assessments"
    __table_args__ = (
        UniqueConstraint("claim_id", "sequence_number", name="uq_risk_assessments_claim_sequence"),
    )

    risk_assessment_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    claim_id = Column(Uuid, ForeignKey("claims.claim_id"), nullable=False, index=True)
    risk_level = Column(wire_enum(RiskLevel, "risk_level"), nullable=False)

    # [{rule_name, triggered, severity, description}]
    rule_signals = Column(JSON, nullable=False, default=list)
    # [{category, description, relevant_field}]
    ai_observations = Column(JSON, nullable=False, default=list)

    overall_score = Column(Integer, nullable=False)
    model_version = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    # Per-claim insertion order; breaks created_at ties
    sequence_number = Column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<RiskAssessment {self.risk_level.value} score={self.overall_score}>"

    @classmethod
    def create(
        cls,
        claim_id: uuid.UUID,
        risk_level: RiskLevel,
        rule_signals: List[Dict[str, Any]],
        ai_observations: List[Dict[str, Any]],
        overall_score: int,
        model_version: str,
    ) -> "RiskAssessment":
        errors = []
        if claim_id is None:
            errors.append("Claim id is required")
        try:
            level = RiskLevel(risk_level)
        except ValueError:
            level = None
            errors.append(f"Unrecognized risk level: {risk_level}")
        if overall_score is None or not 0 <= overall_score <= 100:
            errors.append("Overall score must be between 0 and 100")
        if not (model_version or "").strip():
            errors.append("Model version is required")
        if errors:
            raise ValidationError("Invalid risk assessment", errors)

        return cls(
            claim_id=claim_id,
            risk_level=level,
            rule_signals=list(rule_signals or []),
            ai_observations=list(ai_observations or []),
            overall_score=overall_score,
            model_version=model_version,
            created_at=utcnow(),
        )
