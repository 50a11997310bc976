"""
Deterministic risk rules.

Each rule inspects the claim, its policy snapshot and the human-verified
fields, and reports a named signal. Rules are independent of each other and
of evaluation order. Their severity decides how much a triggered signal
weighs in the rule-based risk level.
"""
import re
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from app.db.models import Claim, PolicySnapshot
from app.services.date_parsing import parse_date
from app.services.verification_guard import VerifiedField, first_value_by_name


class Severity(str, Enum):
    CRITICAL = "Critical"
    MAJOR = "Major"
    MINOR = "Minor"


CRITICAL_FIELDS = ("lossDate", "lossLocation", "lossType", "lossDescription")

# Verified loss date may drift this far from the submitted one
LOSS_DATE_TOLERANCE_DAYS = 1


@dataclass
class RuleSignal:
    """Outcome of one rule."""
    rule_name: str
    triggered: bool
    severity: Severity
    description: str

    def to_dict(self) -> dict:
        return {
            "rule_name": self.rule_name,
            "triggered": self.triggered,
            "severity": self.severity.value,
            "description": self.description,
        }


@dataclass
class RiskContext:
    """Everything a rule may look at. Only verified field values are present."""
    claim: Claim
    policy_snapshot: PolicySnapshot
    verified_fields: List[VerifiedField] = field(default_factory=list)

    def __post_init__(self):
        self.values: Dict[str, Optional[str]] = first_value_by_name(self.verified_fields)

    def value(self, field_name: str) -> Optional[str]:
        value = self.values.get(field_name)
        if value is None or not str(value).strip():
            return None
        return str(value).strip()

    def verified_loss_date(self) -> Optional[date]:
        return parse_date(self.value("lossDate"))

    def unchecked_loss_date_reason(self) -> str:
        """Why no verified loss date is available for a date rule."""
        raw = self.value("lossDate")
        if raw is None:
            return "No verified loss date to check"
        return f"Verified loss date '{raw}' is unparseable and was not checked"


@dataclass
class RiskRule:
    """A single deterministic rule."""
    rule_name: str
    severity: Severity

    def evaluate(self, context: RiskContext) -> RuleSignal:
        raise NotImplementedError

    def signal(self, triggered: bool, description: str) -> RuleSignal:
        return RuleSignal(
            rule_name=self.rule_name,
            triggered=triggered,
            severity=self.severity,
            description=description,
        )


class CoverageDateConsistencyRule(RiskRule):
    """Verified loss date must fall inside the policy period."""

    def __init__(self):
        super().__init__(rule_name="CoverageDateConsistency", severity=Severity.CRITICAL)

    def evaluate(self, context: RiskContext) -> RuleSignal:
        loss_date = context.verified_loss_date()
        if loss_date is None:
            return self.signal(False, f"{context.unchecked_loss_date_reason()} against the policy period")

        snapshot = context.policy_snapshot
        if snapshot.covers_date(loss_date):
            return self.signal(
                False,
                f"Loss date {loss_date} is within policy period "
                f"{snapshot.effective_date} to {snapshot.expiration_date}",
            )
        return self.signal(
            True,
            f"Loss date {loss_date} is outside policy period "
            f"{snapshot.effective_date} to {snapshot.expiration_date}",
        )


class CriticalFieldCompletenessRule(RiskRule):
    """All critical FNOL fields must be present among verified fields."""

    def __init__(self):
        super().__init__(rule_name="CriticalFieldCompleteness", severity=Severity.MAJOR)

    def evaluate(self, context: RiskContext) -> RuleSignal:
        missing = [name for name in CRITICAL_FIELDS if context.value(name) is None]
        if missing:
            return self.signal(True, f"Missing verified critical fields: {', '.join(missing)}")
        return self.signal(False, "All critical fields are verified")


class DataInconsistencyRule(RiskRule):
    """Verified loss date should agree with the date given at submission."""

    def __init__(self):
        super().__init__(rule_name="DataInconsistencyDetection", severity=Severity.MAJOR)

    def evaluate(self, context: RiskContext) -> RuleSignal:
        loss_date = context.verified_loss_date()
        if loss_date is None:
            return self.signal(False, f"{context.unchecked_loss_date_reason()} against the submitted date")

        submitted = context.claim.loss_date
        difference = abs((loss_date - submitted).days)
        if difference > LOSS_DATE_TOLERANCE_DAYS:
            return self.signal(
                True,
                f"Verified loss date {loss_date} differs from submitted date {submitted} by {difference} days",
            )
        return self.signal(False, "Verified loss date matches the submitted date")


def _normalize_loss_type(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", value.lower())


class LossTypeCoverageRule(RiskRule):
    """Loss type must be one the policy covers."""

    def __init__(self):
        super().__init__(rule_name="LossTypeCoverage", severity=Severity.CRITICAL)

    def evaluate(self, context: RiskContext) -> RuleSignal:
        loss_type = context.value("lossType") or context.claim.loss_type
        covered = context.policy_snapshot.covered_loss_types or []

        if _normalize_loss_type(loss_type) in {_normalize_loss_type(t) for t in covered}:
            return self.signal(False, f"Loss type '{loss_type}' is covered by the policy")
        return self.signal(
            True,
            f"Loss type '{loss_type}' is not among covered types: {', '.join(covered) or 'none'}",
        )


def default_rules() -> List[RiskRule]:
    return [
        CoverageDateConsistencyRule(),
        CriticalFieldCompletenessRule(),
        DataInconsistencyRule(),
        LossTypeCoverageRule(),
    ]
