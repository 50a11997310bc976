"""
Tests for document upload and AI field extraction.
"""

import asyncio
import json
import uuid
from datetime import date

import pytest

from app.core.exceptions import (
    ClaimNotFoundError,
    DocumentNotFoundError,
    ExternalDependencyError,
    InvalidStateError,
    ValidationError,
)
from app.db.models import ExtractedField, VerificationStatus
from app.repositories import ClaimRepository
from app.services.audit import AuditAction, AuditService
from app.services.documents import DocumentService
from app.services.llm.extraction_service import ExtractionService, calculate_confidence
from app.services.submission import SubmissionService

FNOL_TEXT = b"""FIRST NOTICE OF LOSS
Policy: HO-2025-000101
Date of loss: 2026-01-10
Kitchen fire spread to the dining room. Estimated damage $12,500.
"""

EXTRACTION_RESPONSE = json.dumps({
    "lossDate": "2026-01-10",
    "lossType": "Fire",
    "lossDescription": "Kitchen fire spread to the dining room",
    "estimatedDamageAmount": 12500,
    "policyNumber": "HO-2025-000101",
    "claimantName": None,
    "lossTime": None,
})


class TestConfidence:
    """Test the confidence heuristic."""

    def test_parseable_loss_date(self):
        assert calculate_confidence("lossDate", "2026-01-10") == 0.95

    def test_unparseable_loss_date(self):
        assert calculate_confidence("lossDate", "last Tuesday") == 0.85

    def test_numeric_amount(self):
        assert calculate_confidence("estimatedDamageAmount", 12500) == 0.90

    def test_long_text_is_less_certain(self):
        assert calculate_confidence("lossDescription", "x" * 60) == 0.80
        assert calculate_confidence("lossDescription", "x" * 250) == 0.75

    def test_short_text_base(self):
        assert calculate_confidence("lossType", "Fire") == 0.85


class TestExtractionService:
    """Test parsing of model output against the extraction schema."""

    @pytest.mark.asyncio
    async def test_null_values_skipped(self, scripted_ai_client):
        result = await ExtractionService(scripted_ai_client(EXTRACTION_RESPONSE)).extract(FNOL_TEXT.decode())

        by_name = {f.field_name: f for f in result.fields}
        assert sorted(by_name) == ["estimatedDamageAmount", "lossDate", "lossDescription", "lossType", "policyNumber"]
        assert by_name["estimatedDamageAmount"].value == "12500"
        assert by_name["lossDate"].confidence == 0.95
        assert result.model_name == "fake-model"
        assert result.schema_version == "v1"

    @pytest.mark.asyncio
    async def test_fenced_json_accepted(self, scripted_ai_client):
        reply = "```json\n" + json.dumps({"lossType": "Fire"}) + "\n```"
        result = await ExtractionService(scripted_ai_client(reply)).extract("text")
        assert [f.field_name for f in result.fields] == ["lossType"]

    @pytest.mark.asyncio
    async def test_non_json_response(self, scripted_ai_client):
        with pytest.raises(ExternalDependencyError):
            await ExtractionService(scripted_ai_client("I could not read that document.")).extract("text")

    @pytest.mark.asyncio
    async def test_unknown_key_violates_schema(self, scripted_ai_client):
        reply = json.dumps({"lossType": "Fire", "fraudLikely": "yes"})
        with pytest.raises(ExternalDependencyError):
            await ExtractionService(scripted_ai_client(reply)).extract("text")

    @pytest.mark.asyncio
    async def test_provider_outage(self, failing_ai_client):
        with pytest.raises(ExternalDependencyError):
            await ExtractionService(failing_ai_client).extract("text")


class TestDocumentUpload:
    """Test attaching documents to claims."""

    @pytest.mark.asyncio
    async def test_upload_stores_file_and_audits(self, db, storage, test_claim):
        document = await DocumentService(db, storage).upload_document(
            claim_id=test_claim.claim_id,
            file_name="fnol_report.txt",
            document_type="FNOL Report",
            content=FNOL_TEXT,
            content_type="text/plain",
            uploaded_by="intake-agent-1",
        )

        assert document.file_size_bytes == len(FNOL_TEXT)
        assert await storage.read_text(document.storage_location) == FNOL_TEXT.decode()
        (event,) = AuditService(db).get_entity_history("ClaimDocument", document.document_id)
        assert event.action == AuditAction.DOCUMENT_UPLOADED

    @pytest.mark.asyncio
    async def test_empty_file_rejected(self, db, storage, test_claim):
        with pytest.raises(ValidationError):
            await DocumentService(db, storage).upload_document(
                test_claim.claim_id, "empty.txt", "FNOL Report", b"", "text/plain", "intake-agent-1"
            )

    @pytest.mark.asyncio
    async def test_unknown_claim(self, db, storage):
        with pytest.raises(ClaimNotFoundError):
            await DocumentService(db, storage).upload_document(
                uuid.uuid4(), "a.txt", "FNOL Report", FNOL_TEXT, "text/plain", "intake-agent-1"
            )

    @pytest.mark.asyncio
    async def test_triaged_claim_refuses_documents(self, db, storage, verified_claim):
        verified_claim.mark_triaged()
        ClaimRepository(db).update(verified_claim)
        db.commit()

        with pytest.raises(InvalidStateError):
            await DocumentService(db, storage).upload_document(
                verified_claim.claim_id, "late.txt", "Photo Log", FNOL_TEXT, "text/plain", "intake-agent-1"
            )


class TestFieldExtraction:
    """Test turning a stored document into Unverified fields."""

    async def _upload(self, db, storage, claim):
        return await DocumentService(db, storage).upload_document(
            claim.claim_id, "fnol_report.txt", "FNOL Report", FNOL_TEXT, "text/plain", "intake-agent-1"
        )

    @pytest.mark.asyncio
    async def test_fields_start_unverified(self, db, storage, test_claim, scripted_ai_client):
        document = await self._upload(db, storage, test_claim)
        service = DocumentService(db, storage, ExtractionService(scripted_ai_client(EXTRACTION_RESPONSE)))

        fields = await service.extract_fields(test_claim.claim_id, document.document_id, actor="intake-agent-1")

        assert len(fields) == 5
        assert all(f.verification_status == VerificationStatus.UNVERIFIED for f in fields)
        assert all(f.extracted_by_model == "fake-model" for f in fields)

        (event,) = AuditService(db).get_actions(AuditAction.AI_EXTRACTION_PERFORMED)
        assert event.actor == "intake-agent-1"
        assert event.details["model"] == "fake-model"
        assert event.details["schema_version"] == "v1"
        assert event.details["tokens_used"] == 0
        assert sorted(event.details["fields_extracted"]) == sorted(f.field_name for f in fields)

    @pytest.mark.asyncio
    async def test_second_extraction_returns_first_result(self, db, storage, test_claim, scripted_ai_client):
        document = await self._upload(db, storage, test_claim)
        service = DocumentService(
            db,
            storage,
            ExtractionService(scripted_ai_client(EXTRACTION_RESPONSE, json.dumps({"lossType": "Theft"}))),
        )

        first = await service.extract_fields(test_claim.claim_id, document.document_id)
        second = await service.extract_fields(test_claim.claim_id, document.document_id)

        assert {f.extracted_field_id for f in second} == {f.extracted_field_id for f in first}
        assert db.query(ExtractedField).count() == 5
        assert len(AuditService(db).get_actions(AuditAction.AI_EXTRACTION_PERFORMED)) == 1

    @pytest.mark.asyncio
    async def test_bad_output_stores_nothing(self, db, storage, test_claim, scripted_ai_client):
        document = await self._upload(db, storage, test_claim)
        service = DocumentService(db, storage, ExtractionService(scripted_ai_client("not json")))

        with pytest.raises(ExternalDependencyError):
            await service.extract_fields(test_claim.claim_id, document.document_id)
        assert db.query(ExtractedField).count() == 0

    @pytest.mark.asyncio
    async def test_cancelled_extraction_stores_nothing(self, db, storage, test_claim, cancelled_ai_client):
        document = await self._upload(db, storage, test_claim)
        service = DocumentService(db, storage, ExtractionService(cancelled_ai_client))

        with pytest.raises(asyncio.CancelledError):
            await service.extract_fields(test_claim.claim_id, document.document_id)
        assert db.query(ExtractedField).count() == 0
        assert AuditService(db).get_actions(AuditAction.AI_EXTRACTION_PERFORMED) == []

    @pytest.mark.asyncio
    async def test_document_from_another_claim(self, db, storage, test_claim, test_policy, scripted_ai_client):
        document = await self._upload(db, storage, test_claim)
        other = SubmissionService(db).submit_claim(
            policy_number=test_policy.policy_number,
            loss_date=date(2026, 2, 1),
            loss_type="Water Damage",
            loss_location="14 Alder Lane, Springfield",
            loss_description=None,
            submitted_by="intake-agent-1",
        )
        service = DocumentService(db, storage, ExtractionService(scripted_ai_client(EXTRACTION_RESPONSE)))

        with pytest.raises(DocumentNotFoundError):
            await service.extract_fields(other.claim_id, document.document_id)
        assert service.list_fields(other.claim_id) == []
