"""
Claims API routes
"""
from datetime import date, datetime
from typing import List, Optional, Dict, Any
from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator

from app.api.deps import (
    get_current_user_id,
    get_document_service,
    get_risk_read_service,
    get_risk_service,
    get_submission_service,
)
from app.db.models import Claim, ExtractedField, RiskAssessment
from app.services.documents import DocumentService
from app.services.risk.service import RISK_DISCLAIMER, RiskAssessmentService
from app.services.submission import SubmissionService

router = APIRouter()


# Request/Response schemas
class SubmitClaimRequest(BaseModel):
    policy_number: str
    loss_date: date
    loss_type: str
    loss_location: str
    loss_description: Optional[str] = None

    @field_validator("policy_number", "loss_type", "loss_location")
    @classmethod
    def validate_required_text(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()


class UpdateLossDescriptionRequest(BaseModel):
    loss_description: str

    @field_validator("loss_description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("loss_description must not be blank")
        return v


class ClaimResponse(BaseModel):
    claim_id: str
    claim_number: str
    policy_number: str
    loss_date: str
    loss_type: str
    loss_location: str
    loss_description: Optional[str]
    status: str
    submitted_by: str
    submitted_at: str
    updated_at: str
    version: int


class ExtractedFieldResponse(BaseModel):
    extracted_field_id: str
    claim_id: str
    document_id: str
    field_name: str
    field_value: Optional[str]
    effective_value: Optional[str]
    confidence_score: float
    verification_status: str
    extracted_at: str
    extracted_by_model: str


class RiskAssessmentResponse(BaseModel):
    risk_assessment_id: str
    claim_id: str
    risk_level: str
    overall_score: int
    rule_signals: List[Dict[str, Any]]
    ai_observations: List[Dict[str, Any]]
    model_version: str
    created_at: str
    disclaimer: str = RISK_DISCLAIMER


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def to_claim_response(claim: Claim) -> ClaimResponse:
    return ClaimResponse(
        claim_id=str(claim.claim_id),
        claim_number=claim.claim_number,
        policy_number=claim.policy_number,
        loss_date=claim.loss_date.isoformat(),
        loss_type=claim.loss_type,
        loss_location=claim.loss_location,
        loss_description=claim.loss_description,
        status=claim.status.value,
        submitted_by=claim.submitted_by,
        submitted_at=_iso(claim.submitted_at),
        updated_at=_iso(claim.updated_at),
        version=claim.version_id,
    )


def to_field_response(field: ExtractedField) -> ExtractedFieldResponse:
    return ExtractedFieldResponse(
        extracted_field_id=str(field.extracted_field_id),
        claim_id=str(field.claim_id),
        document_id=str(field.document_id),
        field_name=field.field_name,
        field_value=field.field_value,
        effective_value=field.effective_value,
        confidence_score=field.confidence_score,
        verification_status=field.verification_status.value,
        extracted_at=_iso(field.extracted_at),
        extracted_by_model=field.extracted_by_model,
    )


def to_assessment_response(assessment: RiskAssessment) -> RiskAssessmentResponse:
    return RiskAssessmentResponse(
        risk_assessment_id=str(assessment.risk_assessment_id),
        claim_id=str(assessment.claim_id),
        risk_level=assessment.risk_level.value,
        overall_score=assessment.overall_score,
        rule_signals=assessment.rule_signals or [],
        ai_observations=assessment.ai_observations or [],
        model_version=assessment.model_version,
        created_at=_iso(assessment.created_at),
    )


@router.post("", response_model=ClaimResponse, status_code=status.HTTP_201_CREATED)
async def submit_claim(
    request: SubmitClaimRequest,
    user_id: str = Depends(get_current_user_id),
    service: SubmissionService = Depends(get_submission_service),
):
    """Submit a First Notice of Loss. The policy is snapshotted and checked immediately."""
    claim = service.submit_claim(
        policy_number=request.policy_number,
        loss_date=request.loss_date,
        loss_type=request.loss_type,
        loss_location=request.loss_location,
        loss_description=request.loss_description,
        submitted_by=user_id,
    )
    return to_claim_response(claim)


@router.get("/by-number/{claim_number}", response_model=ClaimResponse)
async def get_claim_by_number(
    claim_number: str,
    user_id: str = Depends(get_current_user_id),
    service: SubmissionService = Depends(get_submission_service),
):
    return to_claim_response(service.get_claim_by_number(claim_number))


@router.get("/{claim_id}", response_model=ClaimResponse)
async def get_claim(
    claim_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: SubmissionService = Depends(get_submission_service),
):
    """Get claim details by ID."""
    return to_claim_response(service.get_claim(claim_id))


@router.patch("/{claim_id}/loss-description", response_model=ClaimResponse)
async def update_loss_description(
    claim_id: UUID,
    request: UpdateLossDescriptionRequest,
    user_id: str = Depends(get_current_user_id),
    service: SubmissionService = Depends(get_submission_service),
):
    """Replace the loss narrative. Allowed while the claim is Validated or Verified."""
    claim = service.update_loss_description(claim_id, request.loss_description, actor=user_id)
    return to_claim_response(claim)


@router.get("/{claim_id}/fields", response_model=List[ExtractedFieldResponse])
async def list_extracted_fields(
    claim_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
):
    return [to_field_response(f) for f in service.list_fields(claim_id)]


@router.post(
    "/{claim_id}/risk-assessment",
    response_model=RiskAssessmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def evaluate_risk(
    claim_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: RiskAssessmentService = Depends(get_risk_service),
):
    """Evaluate risk from verified data only. Every call stores a new assessment."""
    outcome = await service.evaluate_risk(claim_id, actor=user_id)
    return to_assessment_response(outcome.assessment)


@router.get("/{claim_id}/risk-assessment", response_model=RiskAssessmentResponse)
async def get_latest_risk_assessment(
    claim_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: RiskAssessmentService = Depends(get_risk_read_service),
):
    return to_assessment_response(service.get_latest_assessment(claim_id))


@router.get("/{claim_id}/risk-assessments", response_model=List[RiskAssessmentResponse])
async def list_risk_assessments(
    claim_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: RiskAssessmentService = Depends(get_risk_read_service),
):
    """All assessments for a claim, oldest first."""
    return [to_assessment_response(a) for a in service.list_assessments(claim_id)]
