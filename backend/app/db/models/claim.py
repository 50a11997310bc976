"""
Claim database model and lifecycle state machine
"""
import uuid
from datetime import date
from enum import Enum as PyEnum
from typing import Optional

from sqlalchemy import Column, String, Text, Date, DateTime, Integer, Uuid
from sqlalchemy.orm import validates

from app.core.exceptions import InvalidStateError, ValidationError
from app.db.base import Base, utcnow, wire_enum


class ClaimStatus(str, PyEnum):
    SUBMITTED = "Submitted"
    VALIDATED = "Validated"
    VERIFIED = "Verified"
    TRIAGED = "Triaged"


# Each status may only be reached from the one before it
_REQUIRED_PRIOR_STATUS = {
    ClaimStatus.VALIDATED: ClaimStatus.SUBMITTED,
    ClaimStatus.VERIFIED: ClaimStatus.VALIDATED,
    ClaimStatus.TRIAGED: ClaimStatus.VERIFIED,
}

DESCRIPTION_EDITABLE_STATUSES = (ClaimStatus.VALIDATED, ClaimStatus.VERIFIED)

MAX_SEQUENCE_NUMBER = 999_999
MAX_POLICY_NUMBER_LENGTH = 100
MAX_LOSS_AGE_YEARS = 10


def format_claim_number(sequence_number: int, year: Optional[int] = None) -> str:
    """Human-readable claim number, e.g. 2026-000042."""
    if not 1 <= sequence_number <= MAX_SEQUENCE_NUMBER:
        raise ValidationError(
            f"Sequence number must be between 1 and {MAX_SEQUENCE_NUMBER}"
        )
    year = year or date.today().year
    return f"{year}-{sequence_number:06d}"


def validate_loss_date(loss_date: date, today: Optional[date] = None) -> list[str]:
    today = today or date.today()
    try:
        earliest = today.replace(year=today.year - MAX_LOSS_AGE_YEARS)
    except ValueError:  # Feb 29
        earliest = today.replace(year=today.year - MAX_LOSS_AGE_YEARS, day=28)
    errors = []
    if loss_date > today:
        errors.append("Loss date cannot be in the future")
    elif loss_date < earliest:
        errors.append(f"Loss date cannot be more than {MAX_LOSS_AGE_YEARS} years in the past")
    return errors


def validate_policy_number(policy_number: Optional[str]) -> list[str]:
    value = (policy_number or "").strip()
    if not value:
        return ["Policy number is required"]
    if len(value) > MAX_POLICY_NUMBER_LENGTH:
        return [f"Policy number cannot exceed {MAX_POLICY_NUMBER_LENGTH} characters"]
    return []


def ensure_valid_submission(
    policy_number: Optional[str],
    loss_date: Optional[date],
    loss_type: Optional[str],
    loss_location: Optional[str],
    submitted_by: Optional[str],
) -> None:
    errors = validate_policy_number(policy_number)
    if loss_date is None:
        errors.append("Loss date is required")
    else:
        errors.extend(validate_loss_date(loss_date))
    if not (loss_type or "").strip():
        errors.append("Loss type is required")
    if not (loss_location or "").strip():
        errors.append("Loss location is required")
    if not (submitted_by or "").strip():
        errors.append("Submitted by is required")
    if errors:
        raise ValidationError("Invalid claim submission", errors)


class ClaimSequence(Base):
    """Single-row counter behind claim numbers."""

    __tablename__ = "claim_sequences"

    sequence_id = Column(Integer, primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)


class Claim(Base):
    """FNOL claim. Status only moves forward, one step at a time."""

    __tablename__ = "claims"

    claim_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    claim_number = Column(String(20), unique=True, nullable=False, index=True)
    policy_number = Column(String(MAX_POLICY_NUMBER_LENGTH), nullable=False, index=True)

    loss_date = Column(Date, nullable=False)
    loss_type = Column(String(100), nullable=False)
    loss_location = Column(String(500), nullable=False)
    loss_description = Column(Text, nullable=True)

    status = Column(wire_enum(ClaimStatus, "claim_status"), default=ClaimStatus.SUBMITTED, nullable=False)

    submitted_by = Column(String(255), nullable=False)
    submitted_at = Column(DateTime, default=utcnow, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    # Optimistic concurrency token
    version_id = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Claim {self.claim_number} ({self.status.value if self.status else None})>"

    @classmethod
    def create(
        cls,
        claim_number: str,
        policy_number: str,
        loss_date: date,
        loss_type: str,
        loss_location: str,
        loss_description: Optional[str],
        submitted_by: str,
    ) -> "Claim":
        """Build a new Submitted claim, reporting every invalid input at once."""
        ensure_valid_submission(policy_number, loss_date, loss_type, loss_location, submitted_by)

        now = utcnow()
        return cls(
            claim_number=claim_number,
            policy_number=policy_number.strip(),
            loss_date=loss_date,
            loss_type=loss_type.strip(),
            loss_location=loss_location.strip(),
            loss_description=loss_description,
            status=ClaimStatus.SUBMITTED,
            submitted_by=submitted_by.strip(),
            submitted_at=now,
            created_at=now,
            updated_at=now,
        )

    @validates("status")
    def _validate_status(self, key, value):
        value = ClaimStatus(value)
        current = self.status
        if current is not None and _REQUIRED_PRIOR_STATUS.get(value) != current:
            raise InvalidStateError(
                f"Illegal claim status change {current.value} -> {value.value}"
            )
        return value

    def advance_to(self, target: ClaimStatus) -> None:
        """Move to `target`, which must directly follow the current status."""
        target = ClaimStatus(target)
        required = _REQUIRED_PRIOR_STATUS.get(target)
        if required is None or self.status != required:
            expected = required.value if required else "none"
            raise InvalidStateError(
                f"Cannot mark claim {self.claim_number} as {target.value}: "
                f"status is {self.status.value}, expected {expected}"
            )
        self.status = target
        self.updated_at = utcnow()

    def mark_validated(self) -> None:
        self.advance_to(ClaimStatus.VALIDATED)

    def mark_verified(self) -> None:
        self.advance_to(ClaimStatus.VERIFIED)

    def mark_triaged(self) -> None:
        self.advance_to(ClaimStatus.TRIAGED)

    def update_loss_description(self, description: str) -> None:
        if not (description or "").strip():
            raise ValidationError("Loss description is required")
        if self.status not in DESCRIPTION_EDITABLE_STATUSES:
            raise InvalidStateError(
                f"Loss description can only be updated in Validated or Verified status "
                f"(claim {self.claim_number} is {self.status.value})"
            )
        self.loss_description = description
        self.updated_at = utcnow()

    @property
    def is_triaged(self) -> bool:
        return self.status == ClaimStatus.TRIAGED
