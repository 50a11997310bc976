"""
Verification API routes
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator

from app.api.deps import get_verification_service, require_verifier
from app.api.routes.claims import ExtractedFieldResponse, to_field_response
from app.db.models import ActionTaken, VerificationRecord
from app.services.verification import VerificationService

router = APIRouter()


class VerifyFieldRequest(BaseModel):
    action_taken: str
    corrected_value: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("action_taken")
    @classmethod
    def validate_action(cls, v: str) -> str:
        valid_actions = [a.value for a in ActionTaken]
        if v not in valid_actions:
            raise ValueError(f"action_taken must be one of: {', '.join(valid_actions)}")
        return v


class VerificationRecordResponse(BaseModel):
    verification_id: str
    extracted_field_id: str
    verified_by: str
    verified_at: str
    action_taken: str
    resulting_status: str
    corrected_value: Optional[str]
    verification_notes: Optional[str]


def to_record_response(record: VerificationRecord) -> VerificationRecordResponse:
    return VerificationRecordResponse(
        verification_id=str(record.verification_id),
        extracted_field_id=str(record.extracted_field_id),
        verified_by=record.verified_by,
        verified_at=record.verified_at.isoformat(),
        action_taken=record.action_taken.value,
        resulting_status=record.resulting_status.value,
        corrected_value=record.corrected_value,
        verification_notes=record.verification_notes,
    )


@router.post(
    "/fields/{field_id}",
    response_model=VerificationRecordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def verify_field(
    field_id: UUID,
    request: VerifyFieldRequest,
    reviewer: dict = Depends(require_verifier),
    service: VerificationService = Depends(get_verification_service),
):
    """Record the reviewer's decision. A field can be verified exactly once."""
    record = service.verify_field(
        field_id=field_id,
        verified_by=reviewer["sub"],
        action_taken=request.action_taken,
        corrected_value=request.corrected_value,
        notes=request.notes,
    )
    return to_record_response(record)


@router.get("/queue", response_model=List[ExtractedFieldResponse])
async def get_verification_queue(
    sort_by: str = Query("confidence"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    reviewer: dict = Depends(require_verifier),
    service: VerificationService = Depends(get_verification_service),
):
    """Unverified fields across all claims."""
    return [to_field_response(f) for f in service.get_verification_queue(sort_by=sort_by, limit=limit)]
