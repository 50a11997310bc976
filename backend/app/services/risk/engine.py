"""
Risk Evaluation Engine

Combines deterministic rule signals with advisory AI observations:

1. Rules run first and fix a rule-based level (Low / Medium / High).
2. AI observations may escalate that level, never lower it.
3. A 0-100 score summarizes how much fired.

The result is a routing signal for human review, not a coverage or fraud
determination.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from app.db.models import Claim, PolicySnapshot, RiskLevel
from app.services.llm.observation_service import AIObservation
from app.services.risk.rules import RiskContext, RiskRule, RuleSignal, Severity, default_rules
from app.services.verification_guard import VerifiedField, ensure_verified

ESCALATING_CATEGORIES = ("narrative_concern", "completeness_concern")
LOW_TO_MEDIUM_OBSERVATION_COUNT = 3

CRITICAL_WEIGHT = 30
MAJOR_WEIGHT = 15
MINOR_WEIGHT = 5
OBSERVATION_WEIGHT = 10
OBSERVATION_SCORE_CAP = 30
MAX_SCORE = 100


@dataclass
class RiskEvaluation:
    """Outcome of one evaluation, before persistence."""
    rule_based_level: RiskLevel
    risk_level: RiskLevel
    overall_score: int
    rule_signals: List[RuleSignal] = field(default_factory=list)
    ai_observations: List[AIObservation] = field(default_factory=list)
    rule_version: str = ""
    evaluated_at: str = ""

    @property
    def triggered_signals(self) -> List[RuleSignal]:
        return [signal for signal in self.rule_signals if signal.triggered]

    def to_dict(self) -> dict:
        return {
            "rule_based_level": self.rule_based_level.value,
            "risk_level": self.risk_level.value,
            "overall_score": self.overall_score,
            "rule_signals": [signal.to_dict() for signal in self.rule_signals],
            "ai_observations": [observation.to_dict() for observation in self.ai_observations],
            "rule_version": self.rule_version,
            "evaluated_at": self.evaluated_at,
        }


def _count(signals: Iterable[RuleSignal], severity: Severity) -> int:
    return sum(1 for signal in signals if signal.triggered and signal.severity == severity)


def rule_based_level(signals: List[RuleSignal]) -> RiskLevel:
    critical = _count(signals, Severity.CRITICAL)
    major = _count(signals, Severity.MAJOR)
    minor = _count(signals, Severity.MINOR)

    if critical > 0 or major >= 2:
        return RiskLevel.HIGH
    if major == 1 or minor >= 3:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def fuse(level: RiskLevel, observations: List[AIObservation]) -> RiskLevel:
    """Apply AI observations to a rule-based level. Escalates only."""
    if level in (RiskLevel.HIGH, RiskLevel.CRITICAL):
        return level
    if level == RiskLevel.MEDIUM:
        if any(obs.category in ESCALATING_CATEGORIES for obs in observations):
            return RiskLevel.HIGH
        return RiskLevel.MEDIUM
    if len(observations) >= LOW_TO_MEDIUM_OBSERVATION_COUNT:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def overall_score(signals: List[RuleSignal], observations: List[AIObservation]) -> int:
    score = (
        CRITICAL_WEIGHT * _count(signals, Severity.CRITICAL)
        + MAJOR_WEIGHT * _count(signals, Severity.MAJOR)
        + MINOR_WEIGHT * _count(signals, Severity.MINOR)
        + min(OBSERVATION_WEIGHT * len(observations), OBSERVATION_SCORE_CAP)
    )
    return min(score, MAX_SCORE)


class RiskEngine:
    """Pure evaluation over already-loaded inputs. No I/O."""

    RULE_VERSION = "v1.0"

    def __init__(self, rules: Optional[List[RiskRule]] = None):
        self.rules: List[RiskRule] = rules if rules is not None else default_rules()

    def evaluate(
        self,
        claim: Claim,
        policy_snapshot: PolicySnapshot,
        verified_fields: List[VerifiedField],
        observations: Optional[List[AIObservation]] = None,
    ) -> RiskEvaluation:
        """
        Evaluate verified claim data.

        Args:
            claim: The claim under evaluation
            policy_snapshot: Coverage frozen at submission
            verified_fields: Accepted/corrected fields only
            observations: Advisory AI observations (may be empty)

        Raises:
            UnverifiedDataError / RejectedDataError: an input field is not
                usable; callers must pass guard output only
        """
        for verified in verified_fields:
            ensure_verified(verified)

        observations = list(observations or [])
        context = RiskContext(claim=claim, policy_snapshot=policy_snapshot, verified_fields=verified_fields)
        signals = [rule.evaluate(context) for rule in self.rules]

        base_level = rule_based_level(signals)
        return RiskEvaluation(
            rule_based_level=base_level,
            risk_level=fuse(base_level, observations),
            overall_score=overall_score(signals, observations),
            rule_signals=signals,
            ai_observations=observations,
            rule_version=self.RULE_VERSION,
            evaluated_at=datetime.now(timezone.utc).isoformat(),
        )


# Singleton instance
_risk_engine: Optional[RiskEngine] = None


def get_risk_engine() -> RiskEngine:
    """Get or create the risk engine singleton."""
    global _risk_engine
    if _risk_engine is None:
        _risk_engine = RiskEngine()
    return _risk_engine
