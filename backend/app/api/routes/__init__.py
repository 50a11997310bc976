"""
API routes package
"""
from app.api.routes import claims, documents, verification, triage

__all__ = [
    "claims",
    "documents",
    "verification",
    "triage",
]
