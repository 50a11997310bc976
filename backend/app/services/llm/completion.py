"""
AI completion client

Thin async wrapper over a LangChain chat model: system + user prompt in,
text out, with token accounting. Provider failures surface as
ExternalDependencyError; cancellation is never intercepted.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from app.core.exceptions import ExternalDependencyError
from app.core.langfuse_handler import get_llm_callbacks
from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class CompletionResult:
    """Text returned by the model plus usage."""
    content: str
    model_name: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "model_name": self.model_name,
            "prompt_tokens": self.prompt_tokens,
            "completion_tokens": self.completion_tokens,
            "total_tokens": self.total_tokens,
        }


class CompletionClient:
    """Async completion over any BaseChatModel."""

    def __init__(self, llm: BaseChatModel, model_name: str):
        self.llm = llm
        self.model_name = model_name

    async def complete(self, system_prompt: str, user_prompt: str) -> CompletionResult:
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]
        try:
            response = await self.llm.ainvoke(messages, config={"callbacks": get_llm_callbacks()})
        except Exception as e:
            logger.error(f"AI completion failed ({self.model_name}): {e}")
            raise ExternalDependencyError("AI completion failed", original_error=e) from e

        content = response.content if isinstance(response.content, str) else str(response.content)
        usage = getattr(response, "usage_metadata", None) or {}
        result = CompletionResult(
            content=content,
            model_name=self.model_name,
            prompt_tokens=usage.get("input_tokens", 0),
            completion_tokens=usage.get("output_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
        )
        logger.debug(f"AI completion: {result.to_dict()}")
        return result


def parse_json_object(content: str) -> Optional[Dict[str, Any]]:
    """Parse a JSON object from model output, tolerating fences or surrounding prose."""
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        start = content.find("{")
        end = content.rfind("}")
        if start == -1 or end <= start:
            return None
        try:
            parsed = json.loads(content[start : end + 1])
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


_completion_client: Optional[CompletionClient] = None


def get_completion_client() -> CompletionClient:
    """Get or create the shared completion client for the configured provider."""
    global _completion_client
    if _completion_client is None:
        from app.services.llm.provider import get_llm, get_model_name

        _completion_client = CompletionClient(get_llm(), get_model_name())
    return _completion_client
