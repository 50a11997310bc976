"""
Document Field Extraction Service

Extracts structured FNOL fields from document text. This is a bounded AI
task: the output must conform to a fixed schema, and every value it
produces starts life Unverified until a human reviews it.

Extractable fields:
- lossDate, lossTime
- lossLocation, lossType, lossDescription
- estimatedDamageAmount
- policyNumber, claimantName, claimantContact
"""
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError

from app.core.exceptions import ExternalDependencyError
from app.core.logging import get_logger
from app.services.date_parsing import parse_date
from app.services.llm.completion import CompletionClient, parse_json_object

logger = get_logger(__name__)

SYSTEM_PROMPT_VERSION = "v1"
USER_PROMPT_VERSION = "v1"
SCHEMA_VERSION = "v1"

BASE_CONFIDENCE = 0.85


class ExtractionSchema(BaseModel):
    """Fields the model may return. Anything else is a contract violation."""
    model_config = ConfigDict(extra="forbid")

    lossDate: Optional[str] = None
    lossTime: Optional[str] = None
    lossLocation: Optional[str] = None
    lossType: Optional[str] = None
    lossDescription: Optional[str] = None
    estimatedDamageAmount: Optional[float] = None
    policyNumber: Optional[str] = None
    claimantName: Optional[str] = None
    claimantContact: Optional[str] = None


SYSTEM_PROMPT = """You extract First Notice of Loss data from insurance claim documents.

Rules:
- Extract only what the document states. Never infer or invent values.
- Use null for anything the document does not contain.
- Dates as YYYY-MM-DD. Amounts as plain numbers without currency symbols.
- Respond with a single JSON object matching the schema. No prose."""

USER_PROMPT_TEMPLATE = """Schema:
{schema}

Document:
{document_content}"""


@dataclass
class ExtractedValue:
    """A single extracted value with confidence."""
    field_name: str
    value: str
    confidence: float

    def to_dict(self) -> dict:
        return {
            "field_name": self.field_name,
            "value": self.value,
            "confidence": self.confidence,
        }


@dataclass
class ExtractionResult:
    """All fields extracted from one document, with provenance."""
    fields: List[ExtractedValue] = field(default_factory=list)
    model_name: str = ""
    system_prompt_version: str = SYSTEM_PROMPT_VERSION
    user_prompt_version: str = USER_PROMPT_VERSION
    schema_version: str = SCHEMA_VERSION
    tokens_used: int = 0
    extracted_at: Optional[datetime] = None


def calculate_confidence(field_name: str, value: Any) -> float:
    """Heuristic confidence from field type and value shape."""
    if field_name == "lossDate" and isinstance(value, str):
        return 0.95 if parse_date(value) else BASE_CONFIDENCE
    if field_name == "estimatedDamageAmount" and isinstance(value, (int, float)):
        return 0.90
    if isinstance(value, str):
        if len(value) > 200:
            return 0.75
        if len(value) > 50:
            return 0.80
    return BASE_CONFIDENCE


def _stringify(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class ExtractionService:
    """Service for extracting claim fields from document text."""

    def __init__(self, client: CompletionClient):
        self.client = client

    def build_user_prompt(self, document_content: str) -> str:
        schema = json.dumps(ExtractionSchema.model_json_schema(), indent=2)
        return USER_PROMPT_TEMPLATE.format(schema=schema, document_content=document_content)

    async def extract(self, document_content: str) -> ExtractionResult:
        """
        Extract fields from document text.

        Raises:
            ExternalDependencyError: the AI call failed, or its output was not
                JSON conforming to the schema
        """
        response = await self.client.complete(SYSTEM_PROMPT, self.build_user_prompt(document_content))

        data = parse_json_object(response.content)
        if data is None:
            raise ExternalDependencyError("AI extraction response was not a JSON object")
        try:
            ExtractionSchema.model_validate(data)
        except PydanticValidationError as e:
            raise ExternalDependencyError(
                f"AI extraction response does not conform to schema: {e.error_count()} errors",
                original_error=e,
            ) from e

        fields = [
            ExtractedValue(
                field_name=name,
                value=_stringify(value),
                confidence=calculate_confidence(name, value),
            )
            for name, value in data.items()
            if value is not None
        ]
        logger.info(f"Extracted {len(fields)} fields ({response.total_tokens} tokens)")

        return ExtractionResult(
            fields=fields,
            model_name=response.model_name,
            tokens_used=response.total_tokens,
            extracted_at=response.created_at,
        )
