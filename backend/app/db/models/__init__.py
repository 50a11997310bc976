"""
Database models package
"""
from app.db.models.claim import Claim, ClaimSequence, ClaimStatus, ensure_valid_submission, format_claim_number
from app.db.models.policy import Policy, PolicySnapshot, CoverageStatus
from app.db.models.document import ClaimDocument, DocumentStatus
from app.db.models.extraction import (
    ExtractedField, VerificationRecord, VerificationStatus, ActionTaken, STATUS_FOR_ACTION
)
from app.db.models.risk import RiskAssessment, RiskLevel
from app.db.models.triage import TriageDecision, TriageQueue, parse_queue
from app.db.models.audit import AuditLog, AuditOutcome

__all__ = [
    # Claim
    "Claim",
    "ClaimSequence",
    "ClaimStatus",
    "ensure_valid_submission",
    "format_claim_number",
    # Policy
    "Policy",
    "PolicySnapshot",
    "CoverageStatus",
    # Documents
    "ClaimDocument",
    "DocumentStatus",
    # Extraction / verification
    "ExtractedField",
    "VerificationRecord",
    "VerificationStatus",
    "ActionTaken",
    "STATUS_FOR_ACTION",
    # Risk / triage
    "RiskAssessment",
    "RiskLevel",
    "TriageDecision",
    "TriageQueue",
    "parse_queue",
    # Audit
    "AuditLog",
    "AuditOutcome",
]
