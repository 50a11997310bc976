"""
Triage API routes
"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, field_validator

from app.api.deps import get_current_user_id, get_triage_service, require_override_role
from app.db.models import TriageDecision, TriageQueue
from app.services.triage.service import TriageService

router = APIRouter()


class TriageOverrideRequest(BaseModel):
    queue: str
    reason: str

    @field_validator("queue")
    @classmethod
    def validate_queue(cls, v: str) -> str:
        valid_queues = [q.value for q in TriageQueue]
        if v not in valid_queues:
            raise ValueError(f"queue must be one of: {', '.join(valid_queues)}")
        return v

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason is required for a triage override")
        return v


class TriageDecisionResponse(BaseModel):
    triage_decision_id: str
    claim_id: str
    risk_assessment_id: str
    queue: str
    routed_at: str
    is_override: bool
    override_by: Optional[str]
    override_reason: Optional[str]


def to_decision_response(decision: TriageDecision) -> TriageDecisionResponse:
    return TriageDecisionResponse(
        triage_decision_id=str(decision.triage_decision_id),
        claim_id=str(decision.claim_id),
        risk_assessment_id=str(decision.risk_assessment_id),
        queue=decision.queue.value,
        routed_at=decision.routed_at.isoformat(),
        is_override=decision.is_override,
        override_by=decision.override_by,
        override_reason=decision.override_reason,
    )


@router.post("/claims/{claim_id}/triage", response_model=TriageDecisionResponse)
async def triage_claim(
    claim_id: UUID,
    response: Response,
    user_id: str = Depends(get_current_user_id),
    service: TriageService = Depends(get_triage_service),
):
    """Route a claim from its latest risk assessment. Repeat calls return the same decision."""
    outcome = service.triage_claim(claim_id, actor=user_id)
    response.status_code = status.HTTP_201_CREATED if outcome.created else status.HTTP_200_OK
    return to_decision_response(outcome.decision)


@router.post(
    "/claims/{claim_id}/triage/override",
    response_model=TriageDecisionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def override_triage(
    claim_id: UUID,
    request: TriageOverrideRequest,
    supervisor: dict = Depends(require_override_role),
    service: TriageService = Depends(get_triage_service),
):
    """Assign a claim to a queue by hand. The earlier decisions stay in history."""
    decision = service.override_triage(
        claim_id,
        queue=request.queue,
        override_by=supervisor["sub"],
        override_reason=request.reason,
    )
    return to_decision_response(decision)


@router.get("/claims/{claim_id}/triage/history", response_model=List[TriageDecisionResponse])
async def get_triage_history(
    claim_id: UUID,
    user_id: str = Depends(get_current_user_id),
    service: TriageService = Depends(get_triage_service),
):
    return [to_decision_response(d) for d in service.get_triage_history(claim_id)]


@router.get("/triage/queues/{queue}", response_model=List[TriageDecisionResponse])
async def list_queue(
    queue: str,
    user_id: str = Depends(get_current_user_id),
    service: TriageService = Depends(get_triage_service),
):
    """Claims whose current decision places them in the queue."""
    return [to_decision_response(d) for d in service.list_queue(queue)]
