"""
LangFuse Observability Integration
Traces AI extraction and observation calls when keys are configured.
"""
from typing import List, Optional

from langfuse.callback import CallbackHandler

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

_langfuse_handler: Optional[CallbackHandler] = None


def get_langfuse_handler() -> Optional[CallbackHandler]:
    """Return the shared callback handler, or None when LangFuse is not configured."""
    global _langfuse_handler

    if not settings.LANGFUSE_PUBLIC_KEY or not settings.LANGFUSE_SECRET_KEY:
        return None

    if _langfuse_handler is None:
        try:
            _langfuse_handler = CallbackHandler(
                public_key=settings.LANGFUSE_PUBLIC_KEY,
                secret_key=settings.LANGFUSE_SECRET_KEY,
                host=settings.LANGFUSE_HOST,
            )
            logger.info("LangFuse handler initialized")
        except Exception as e:
            # Tracing is optional; AI calls proceed untraced
            logger.warning(f"Failed to initialize LangFuse: {e}")
            return None

    return _langfuse_handler


def get_llm_callbacks() -> List[CallbackHandler]:
    """Callbacks to pass in a runnable config."""
    handler = get_langfuse_handler()
    return [handler] if handler is not None else []


def flush_langfuse() -> None:
    """Flush pending traces to LangFuse."""
    if _langfuse_handler is not None:
        try:
            _langfuse_handler.flush()
        except Exception as e:
            logger.warning(f"Failed to flush LangFuse: {e}")
