"""
Core module exports
"""
from app.core.config import settings
from app.core.security import (
    create_access_token,
    decode_access_token,
    get_current_user_id,
    require_role,
    require_verifier,
    require_override_role,
)
from app.core.logging import logger, get_logger, log_audit_event

__all__ = [
    "settings",
    "create_access_token",
    "decode_access_token",
    "get_current_user_id",
    "require_role",
    "require_verifier",
    "require_override_role",
    "logger",
    "get_logger",
    "log_audit_event",
]
