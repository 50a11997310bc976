"""
Audit database model for state-changing operations
"""
import uuid

from sqlalchemy import Column, String, DateTime, JSON, Uuid

from app.db.base import Base, append_only, utcnow


class AuditOutcome:
    SUCCESS = "Success"
    FAILURE = "Failure"


@append_only
class AuditLog(Base):
    """One audit event: who did what to which entity, and how it ended."""

    __tablename__ = "audit_logs"

    audit_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    actor = Column(String(255), nullable=False, index=True)
    action = Column(String(100), nullable=False, index=True)  # e.g. "ClaimSubmitted", "RiskAssessed"

    # Entity affected
    entity_type = Column(String(50), nullable=False)  # e.g. "Claim", "ExtractedField"
    entity_id = Column(String(100), nullable=False, index=True)

    outcome = Column(String(20), nullable=False)
    details = Column(JSON, default=dict)
    correlation_id = Column(String(100), nullable=True)

    timestamp = Column(DateTime, default=utcnow, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} on {self.entity_type} at {self.timestamp}>"
