"""
Risk Observation Service

Advisory AI pass for risk evaluation. This is a bounded AI task: the model
sees only human-verified data and may only return qualitative observations
from a closed set of categories. It never produces a risk level, score or
recommendation. Those come from the deterministic rules.

Any failure degrades to "no observations"; the rules alone still yield a
valid assessment.
"""
import json
from dataclasses import dataclass
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from app.core.exceptions import ExternalDependencyError
from app.core.logging import get_logger
from app.services.llm.completion import CompletionClient, parse_json_object
from app.services.verification_guard import VerifiedField

logger = get_logger(__name__)

PROMPT_VERSION = "v1"

OBSERVATION_CATEGORIES = (
    "language_ambiguity",
    "unusual_phrasing",
    "narrative_concern",
    "completeness_concern",
)

# Keys that would mean the model stepped outside its remit
FORBIDDEN_KEYS = {
    "risk_level", "riskLevel", "risk_score", "riskScore", "fraud_score",
    "fraudScore", "score", "recommendation", "recommendations", "decision",
}

SYSTEM_PROMPT = """You review verified insurance claim data and report qualitative observations.

Rules:
- Report only observations about the text: ambiguous language, unusual phrasing,
  concerns about the loss narrative, or information that seems incomplete.
- Do NOT assign a risk level, risk score, or fraud score.
- Do NOT recommend approval, denial, investigation, or any other action.
- Do NOT draw conclusions about coverage or fraud.
- Use only these categories: language_ambiguity, unusual_phrasing,
  narrative_concern, completeness_concern.
- If you have no observations, return an empty list.

Respond with JSON only, in exactly this shape:
{"observations": [{"category": "<category>", "description": "<what you noticed>", "relevantField": "<field name>"}]}"""


@dataclass
class AIObservation:
    """One qualitative observation about verified claim data."""
    category: str
    description: str
    relevant_field: str = ""

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "description": self.description,
            "relevant_field": self.relevant_field,
        }


class _ObservationItem(BaseModel):
    category: Optional[str] = None
    description: Optional[str] = None
    relevantField: Optional[str] = None


class _ObservationResponse(BaseModel):
    observations: List[_ObservationItem] = Field(default_factory=list)


def build_user_prompt(loss_description: Optional[str], verified_fields: List[VerifiedField]) -> str:
    payload = {
        "lossDescription": loss_description or "",
        "verifiedFields": [
            {"name": field.field_name, "value": field.value}
            for field in verified_fields
        ],
    }
    return "Review this verified claim data:\n" + json.dumps(payload, indent=2)


def parse_observations(content: str) -> List[AIObservation]:
    """
    Parse model output into observations.

    Returns [] for unparseable output or output that carries a verdict.
    Observations in unknown categories are dropped individually.
    """
    data = parse_json_object(content)
    if data is None:
        logger.warning("AI observation response was not valid JSON; ignoring")
        return []

    if FORBIDDEN_KEYS & set(data.keys()):
        logger.warning(
            f"AI observation response contained verdict keys {sorted(FORBIDDEN_KEYS & set(data.keys()))}; discarding"
        )
        return []

    try:
        response = _ObservationResponse.model_validate(data)
    except PydanticValidationError as e:
        logger.warning(f"AI observation response failed validation: {e.error_count()} errors; ignoring")
        return []

    observations = []
    for item in response.observations:
        category = (item.category or "unknown").strip()
        if category not in OBSERVATION_CATEGORIES:
            logger.warning(f"Dropping AI observation with unrecognized category '{category}'")
            continue
        observations.append(
            AIObservation(
                category=category,
                description=item.description or "",
                relevant_field=item.relevantField or "",
            )
        )
    return observations


class ObservationService:
    """Collects advisory observations from the AI provider."""

    def __init__(self, client: CompletionClient):
        self.client = client

    @property
    def model_name(self) -> str:
        return self.client.model_name

    async def observe(
        self,
        loss_description: Optional[str],
        verified_fields: List[VerifiedField],
    ) -> List[AIObservation]:
        user_prompt = build_user_prompt(loss_description, verified_fields)
        try:
            result = await self.client.complete(SYSTEM_PROMPT, user_prompt)
        except ExternalDependencyError as e:
            logger.warning(f"AI observation call failed, continuing with rules only: {e.message}")
            return []

        observations = parse_observations(result.content)
        logger.info(f"AI observation pass produced {len(observations)} observations")
        return observations
