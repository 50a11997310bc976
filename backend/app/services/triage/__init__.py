"""
Triage Module

Provides deterministic, idempotent queue routing for assessed claims.
"""
from app.services.triage.engine import TriageRouter, TriageRoute, get_triage_router
from app.services.triage.service import TriageService, TriageOutcome

__all__ = ["TriageRouter", "TriageRoute", "get_triage_router", "TriageService", "TriageOutcome"]
