"""
Logging configuration with field masking for sensitive data
"""
import logging
import re
from contextvars import ContextVar
from typing import Any, Optional

from app.core.config import settings


LOGGER_NAME = "claimsintake"

# Correlation id of the request currently being served
correlation_id_var: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

# Patterns to mask in logs
MASK_PATTERNS = [
    (r"""(["']?policy_number["']?\s*[:=]\s*)["'][^"']*["']""", r'\1"***"'),
    (r"""(["']?claimant_name["']?\s*[:=]\s*)["'][^"']*["']""", r'\1"***"'),
    (r"""(["']?corrected_value["']?\s*[:=]\s*)["'][^"']*["']""", r'\1"***"'),
    (r"Bearer\s+[A-Za-z0-9\-_\.]+", "Bearer ***"),
]


class MaskingFormatter(logging.Formatter):
    """Custom formatter that masks sensitive fields."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for pattern, replacement in MASK_PATTERNS:
            message = re.sub(pattern, replacement, message, flags=re.IGNORECASE)
        return message


class CorrelationIdFilter(logging.Filter):
    """Stamp each record with the active request's correlation id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = correlation_id_var.get() or "-"
        return True


def setup_logging() -> logging.Logger:
    """Configure application logging."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)

    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)
    console_handler.addFilter(CorrelationIdFilter())

    formatter = MaskingFormatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(correlation_id)s] %(message)s"
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

    return logger


# Global logger instance
logger = setup_logging()


def get_logger(name: str) -> logging.Logger:
    """Child logger that shares the masking handler."""
    if name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logger.getChild(name)


def log_audit_event(
    action: str,
    actor: str,
    entity_type: str,
    entity_id: str,
    outcome: str,
    details: dict[str, Any],
) -> None:
    """Log an audit event (also persisted to database separately)."""
    logger.info(
        f"AUDIT: {action} | actor={actor} | {entity_type}={entity_id} "
        f"| outcome={outcome} | details={details}"
    )
