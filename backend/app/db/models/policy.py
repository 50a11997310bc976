"""
Policy registry and point-in-time policy snapshot models
"""
import uuid
from datetime import date
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Column, String, Date, DateTime, ForeignKey, JSON, Uuid

from app.core.exceptions import ValidationError
from app.db.base import Base, append_only, utcnow, wire_enum


class CoverageStatus(str, PyEnum):
    ACTIVE = "Active"
    EXPIRED = "Expired"
    CANCELLED = "Cancelled"
    SUSPENDED = "Suspended"


class Policy(Base):
    """Policy of record, looked up at claim submission."""

    __tablename__ = "policies"

    policy_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    policy_number = Column(String(100), unique=True, nullable=False, index=True)
    holder_name = Column(String(255), nullable=True)
    effective_date = Column(Date, nullable=False)
    expiration_date = Column(Date, nullable=False)
    status = Column(wire_enum(CoverageStatus, "coverage_status"), default=CoverageStatus.ACTIVE, nullable=False)

    # ["PropertyDamage", "Liability", ...]
    covered_loss_types = Column(JSON, default=list, nullable=False)
    # {"PropertyDamage": 250000, ...}
    coverage_limits = Column(JSON, default=dict)
    deductibles = Column(JSON, default=dict)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<Policy {self.policy_number} ({self.status.value if self.status else None})>"


@append_only
class PolicySnapshot(Base):
    """Coverage as it stood when the claim was submitted. Never updated."""

    __tablename__ = "policy_snapshots"

    snapshot_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    claim_id = Column(Uuid, ForeignKey("claims.claim_id"), unique=True, nullable=False, index=True)
    policy_number = Column(String(100), nullable=False)
    effective_date = Column(Date, nullable=False)
    expiration_date = Column(Date, nullable=False)
    coverage_status = Column(wire_enum(CoverageStatus, "coverage_status"), nullable=False)
    covered_loss_types = Column(JSON, nullable=False)
    coverage_limits = Column(JSON, nullable=True)
    deductibles = Column(JSON, nullable=True)
    snapshot_at = Column(DateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<PolicySnapshot {self.policy_number} for claim {self.claim_id}>"

    @classmethod
    def create(
        cls,
        claim_id: uuid.UUID,
        policy_number: str,
        effective_date: date,
        expiration_date: date,
        coverage_status: CoverageStatus,
        covered_loss_types: list[str],
        coverage_limits: Optional[dict] = None,
        deductibles: Optional[dict] = None,
    ) -> "PolicySnapshot":
        errors = []
        if claim_id is None:
            errors.append("Claim id is required")
        if not (policy_number or "").strip():
            errors.append("Policy number is required")
        if effective_date is None or expiration_date is None:
            errors.append("Effective and expiration dates are required")
        elif effective_date >= expiration_date:
            errors.append("Effective date must be before expiration date")
        if not covered_loss_types:
            errors.append("Covered loss types are required")
        if errors:
            raise ValidationError("Invalid policy snapshot", errors)

        return cls(
            claim_id=claim_id,
            policy_number=policy_number.strip(),
            effective_date=effective_date,
            expiration_date=expiration_date,
            coverage_status=CoverageStatus(coverage_status),
            covered_loss_types=list(covered_loss_types),
            coverage_limits=dict(coverage_limits) if coverage_limits else None,
            deductibles=dict(deductibles) if deductibles else None,
            snapshot_at=utcnow(),
        )

    @classmethod
    def from_policy(cls, claim_id: uuid.UUID, policy: Policy) -> "PolicySnapshot":
        return cls.create(
            claim_id=claim_id,
            policy_number=policy.policy_number,
            effective_date=policy.effective_date,
            expiration_date=policy.expiration_date,
            coverage_status=policy.status,
            covered_loss_types=policy.covered_loss_types or [],
            coverage_limits=policy.coverage_limits,
            deductibles=policy.deductibles,
        )

    def was_in_force_on(self, on_date: date) -> bool:
        return (
            self.coverage_status == CoverageStatus.ACTIVE
            and self.effective_date <= on_date <= self.expiration_date
        )

    def covers_date(self, on_date: date) -> bool:
        """Date falls inside the policy period, regardless of status."""
        return self.effective_date <= on_date <= self.expiration_date
