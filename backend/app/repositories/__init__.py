"""
Persistence stores
"""
from app.repositories.base_repository import BaseRepository
from app.repositories.claim_repository import ClaimRepository
from app.repositories.document_repository import DocumentRepository
from app.repositories.extracted_field_repository import ExtractedFieldRepository
from app.repositories.policy_repository import PolicyRepository, PolicySnapshotRepository
from app.repositories.risk_assessment_repository import RiskAssessmentRepository
from app.repositories.triage_decision_repository import TriageDecisionRepository
from app.repositories.verification_record_repository import VerificationRecordRepository

__all__ = [
    "BaseRepository",
    "ClaimRepository",
    "DocumentRepository",
    "ExtractedFieldRepository",
    "PolicyRepository",
    "PolicySnapshotRepository",
    "RiskAssessmentRepository",
    "TriageDecisionRepository",
    "VerificationRecordRepository",
]
