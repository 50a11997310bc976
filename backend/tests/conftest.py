"""
Test configuration and fixtures for ClaimsIntake backend tests.
"""

import asyncio
import json
import pytest
from datetime import date
from typing import Callable, Dict, Generator, List
from fastapi.testclient import TestClient
from langchain_core.language_models.fake_chat_models import FakeListChatModel
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from main import app
from app.api.deps import get_ai_client, get_storage
from app.core.security import create_access_token
from app.db.base import Base
from app.db.session import get_db
from app.db.models import Claim, ClaimDocument, CoverageStatus, ExtractedField, Policy
from app.services.llm.completion import CompletionClient
from app.services.storage import LocalDocumentStorage
from app.services.submission import SubmissionService
from app.services.verification import VerificationService


# Use in-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

NO_OBSERVATIONS = json.dumps({"observations": []})

LOSS_DATE = date(2026, 1, 10)

ACCEPTABLE_FIELDS = {
    "lossDate": "2026-01-10",
    "lossLocation": "14 Alder Lane, Springfield",
    "lossType": "Fire",
    "lossDescription": "Kitchen fire spread to the dining room",
}


class FailingChatModel:
    """Chat model stand-in whose provider is always down."""

    async def ainvoke(self, messages, config=None):
        raise ConnectionError("provider unreachable")


class CancellingChatModel:
    """Chat model stand-in whose call is cancelled mid-flight."""

    async def ainvoke(self, messages, config=None):
        raise asyncio.CancelledError()


def make_ai_client(*responses: str) -> CompletionClient:
    """Completion client that replies with the given texts in order."""
    return CompletionClient(FakeListChatModel(responses=list(responses) or [NO_OBSERVATIONS]), "fake-model")


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def ai_client() -> CompletionClient:
    """AI client that never observes anything."""
    return make_ai_client(NO_OBSERVATIONS)


@pytest.fixture
def failing_ai_client() -> CompletionClient:
    return CompletionClient(FailingChatModel(), "down-model")


@pytest.fixture
def cancelled_ai_client() -> CompletionClient:
    return CompletionClient(CancellingChatModel(), "fake-model")


@pytest.fixture
def scripted_ai_client() -> Callable[..., CompletionClient]:
    """Factory: AI client replying with the given texts in order."""
    return make_ai_client


@pytest.fixture
def storage(tmp_path) -> LocalDocumentStorage:
    return LocalDocumentStorage(str(tmp_path / "uploads"))


@pytest.fixture(scope="function")
def client(db: Session, ai_client: CompletionClient, storage: LocalDocumentStorage) -> Generator[TestClient, None, None]:
    """Create a test client with database, AI and storage overrides."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_ai_client] = lambda: ai_client
    app.dependency_overrides[get_storage] = lambda: storage
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _headers(sub: str, role: str) -> dict:
    token = create_access_token(data={"sub": sub, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers() -> dict:
    """Intake agent: may submit, upload, assess and triage."""
    return _headers("intake-agent-1", "intake")


@pytest.fixture
def adjuster_headers() -> dict:
    """Reviewer allowed to verify fields."""
    return _headers("adjuster-7", "adjuster")


@pytest.fixture
def supervisor_headers() -> dict:
    """Reviewer allowed to override triage."""
    return _headers("supervisor-2", "supervisor")


@pytest.fixture
def test_policy(db: Session) -> Policy:
    """Active homeowner policy covering fire and water damage."""
    policy = Policy(
        policy_number="HO-2025-000101",
        holder_name="Dana Whitfield",
        effective_date=date(2025, 1, 1),
        expiration_date=date(2027, 1, 1),
        status=CoverageStatus.ACTIVE,
        covered_loss_types=["Fire", "Water Damage"],
        coverage_limits={"Dwelling": 350000},
        deductibles={"All Perils": 1000},
    )
    db.add(policy)
    db.commit()
    db.refresh(policy)
    return policy


@pytest.fixture
def expired_policy(db: Session) -> Policy:
    policy = Policy(
        policy_number="HO-2019-000007",
        holder_name="Lee Ambrose",
        effective_date=date(2019, 1, 1),
        expiration_date=date(2020, 1, 1),
        status=CoverageStatus.EXPIRED,
        covered_loss_types=["Fire"],
    )
    db.add(policy)
    db.commit()
    db.refresh(policy)
    return policy


@pytest.fixture
def test_claim(db: Session, test_policy: Policy) -> Claim:
    """Claim submitted against the active policy; it is Validated on submission."""
    return SubmissionService(db).submit_claim(
        policy_number=test_policy.policy_number,
        loss_date=LOSS_DATE,
        loss_type="Fire",
        loss_location="14 Alder Lane, Springfield",
        loss_description="Kitchen fire spread to the dining room",
        submitted_by="intake-agent-1",
    )


@pytest.fixture
def add_extracted_fields(db: Session) -> Callable[..., List[ExtractedField]]:
    """Factory: attach a document to a claim and store Unverified fields for it."""

    def _add(claim: Claim, values: Dict[str, str], confidence: float = 0.9) -> List[ExtractedField]:
        document = ClaimDocument.create(
            claim_id=claim.claim_id,
            file_name="fnol_report.txt",
            document_type="FNOL Report",
            storage_location="/dev/null",
            file_size_bytes=128,
            content_type="text/plain",
            uploaded_by="intake-agent-1",
        )
        db.add(document)
        db.flush()
        fields = [
            ExtractedField.create(
                claim_id=claim.claim_id,
                document_id=document.document_id,
                field_name=name,
                field_value=value,
                confidence_score=confidence,
                extracted_by_model="fake-model",
                system_prompt_version="v1",
                user_prompt_version="v1",
                schema_version="v1",
            )
            for name, value in values.items()
        ]
        db.add_all(fields)
        db.commit()
        return fields

    return _add


@pytest.fixture
def accept_all(db: Session) -> Callable[[List[ExtractedField]], None]:
    """Factory: accept every given field as an adjuster."""

    def _accept(fields: List[ExtractedField]) -> None:
        service = VerificationService(db)
        for field in fields:
            service.verify_field(field.extracted_field_id, "adjuster-7", "Accepted")

    return _accept


@pytest.fixture
def verified_claim(db: Session, test_claim: Claim, add_extracted_fields, accept_all) -> Claim:
    """Claim whose extracted fields are all accepted, so it is Verified."""
    accept_all(add_extracted_fields(test_claim, ACCEPTABLE_FIELDS))
    db.refresh(test_claim)
    return test_claim
