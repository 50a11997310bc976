"""
API dependencies

Each service is built per request from the request's session. Tests swap the
AI client and document storage through app.dependency_overrides.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.db import get_db
from app.core import get_current_user_id, require_role, require_verifier, require_override_role
from app.services.documents import DocumentService
from app.services.llm.completion import CompletionClient, get_completion_client
from app.services.llm.extraction_service import ExtractionService
from app.services.llm.observation_service import ObservationService
from app.services.risk.service import RiskAssessmentService
from app.services.storage import LocalDocumentStorage, get_document_storage
from app.services.submission import SubmissionService
from app.services.triage.service import TriageService
from app.services.verification import VerificationService


def get_ai_client() -> CompletionClient:
    return get_completion_client()


def get_storage() -> LocalDocumentStorage:
    return get_document_storage()


def get_submission_service(db: Session = Depends(get_db)) -> SubmissionService:
    return SubmissionService(db)


def get_document_service(
    db: Session = Depends(get_db),
    storage: LocalDocumentStorage = Depends(get_storage),
) -> DocumentService:
    # The AI client is only resolved for extraction requests
    return DocumentService(db, storage)


def get_extracting_document_service(
    db: Session = Depends(get_db),
    storage: LocalDocumentStorage = Depends(get_storage),
    client: CompletionClient = Depends(get_ai_client),
) -> DocumentService:
    return DocumentService(db, storage, ExtractionService(client))


def get_verification_service(db: Session = Depends(get_db)) -> VerificationService:
    return VerificationService(db)


def get_risk_service(
    db: Session = Depends(get_db),
    client: CompletionClient = Depends(get_ai_client),
) -> RiskAssessmentService:
    return RiskAssessmentService(db, ObservationService(client))


def get_risk_read_service(db: Session = Depends(get_db)) -> RiskAssessmentService:
    return RiskAssessmentService(db)


def get_triage_service(db: Session = Depends(get_db)) -> TriageService:
    return TriageService(db)


__all__ = [
    "get_db",
    "get_current_user_id",
    "require_role",
    "require_verifier",
    "require_override_role",
    "get_ai_client",
    "get_storage",
    "get_submission_service",
    "get_document_service",
    "get_extracting_document_service",
    "get_verification_service",
    "get_risk_service",
    "get_risk_read_service",
    "get_triage_service",
]
