"""
Risk Evaluation Module

Verification-gated hybrid risk scoring: deterministic rules decide, AI
observations may only escalate.
"""
from app.services.risk.engine import RiskEngine, RiskEvaluation, get_risk_engine
from app.services.risk.rules import RiskRule, RuleSignal, Severity
from app.services.risk.service import RiskAssessmentService, RISK_DISCLAIMER

__all__ = [
    "RiskEngine",
    "RiskEvaluation",
    "get_risk_engine",
    "RiskRule",
    "RuleSignal",
    "Severity",
    "RiskAssessmentService",
    "RISK_DISCLAIMER",
]
