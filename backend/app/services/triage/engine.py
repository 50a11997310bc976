"""
Triage Router

Deterministic mapping from a risk assessment's level to a human review
queue:
- Low: Auto-Review
- Medium: Standard Review
- High: Manual Investigation

Critical has no queue. No rule currently produces it, and routing it is an
error rather than a silent default.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Optional

from app.core.exceptions import UnmappedRiskLevelError
from app.db.models import RiskLevel, TriageQueue


@dataclass
class TriageRoute:
    """Routing outcome for one assessment."""
    queue: TriageQueue
    risk_level: RiskLevel
    rule_version: str
    evaluated_at: str

    def to_dict(self) -> dict:
        return {
            "queue": self.queue.value,
            "risk_level": self.risk_level.value,
            "rule_version": self.rule_version,
            "evaluated_at": self.evaluated_at,
        }


class TriageRouter:
    """Maps risk levels to queues. Independent of AI content."""

    RULE_VERSION = "v1.0"

    QUEUE_BY_RISK_LEVEL: Dict[RiskLevel, TriageQueue] = {
        RiskLevel.LOW: TriageQueue.AUTO_REVIEW,
        RiskLevel.MEDIUM: TriageQueue.STANDARD_REVIEW,
        RiskLevel.HIGH: TriageQueue.MANUAL_INVESTIGATION,
    }

    def determine_queue(self, risk_level: RiskLevel) -> TriageQueue:
        level = RiskLevel(risk_level)
        queue = self.QUEUE_BY_RISK_LEVEL.get(level)
        if queue is None:
            raise UnmappedRiskLevelError(level.value)
        return queue

    def route(self, risk_level: RiskLevel) -> TriageRoute:
        return TriageRoute(
            queue=self.determine_queue(risk_level),
            risk_level=RiskLevel(risk_level),
            rule_version=self.RULE_VERSION,
            evaluated_at=datetime.now(timezone.utc).isoformat(),
        )

    def get_routing_table(self) -> Dict[str, str]:
        """Routing table for documentation."""
        return {level.value: queue.value for level, queue in self.QUEUE_BY_RISK_LEVEL.items()}


# Singleton instance
_triage_router: Optional[TriageRouter] = None


def get_triage_router() -> TriageRouter:
    """Get or create the triage router singleton."""
    global _triage_router
    if _triage_router is None:
        _triage_router = TriageRouter()
    return _triage_router
