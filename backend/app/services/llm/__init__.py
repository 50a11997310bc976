"""
Bounded LLM Services

These services use LLMs for specific, constrained tasks:
- Field extraction from documents (schema-constrained output)
- Risk observations (closed set of qualitative categories, advisory only)

LLMs never make decisions here. Extraction output is unverified until a
human reviews it, and observations can only escalate a rule-derived risk
level, never set or lower it.
"""
from app.services.llm.completion import CompletionClient, CompletionResult, get_completion_client
from app.services.llm.extraction_service import ExtractionService, ExtractionResult, ExtractedValue
from app.services.llm.observation_service import ObservationService, AIObservation

__all__ = [
    "CompletionClient",
    "CompletionResult",
    "get_completion_client",
    "ExtractionService",
    "ExtractionResult",
    "ExtractedValue",
    "ObservationService",
    "AIObservation",
]
