"""
Tests for security features and log masking.
"""

import logging

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from app.core.logging import CorrelationIdFilter, MaskingFormatter, correlation_id_var
from app.core.security import create_access_token, decode_access_token, require_role


class TestTokens:
    """Test JWT creation and decoding."""

    def test_round_trip_keeps_claims(self):
        """Test a token decodes to its subject and role."""
        token = create_access_token(data={"sub": "adjuster-7", "role": "adjuster"})
        payload = decode_access_token(token)
        assert payload["sub"] == "adjuster-7"
        assert payload["role"] == "adjuster"
        assert "exp" in payload

    def test_tampered_token_rejected(self):
        """Test a modified token is rejected with 401."""
        header, payload, _ = create_access_token(data={"sub": "adjuster-7"}).split(".")
        forged_signature = create_access_token(data={"sub": "admin-1"}).split(".")[2]
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(f"{header}.{payload}.{forged_signature}")
        assert exc_info.value.status_code == 401


class TestRoleChecks:
    """Test the role dependency factory."""

    @pytest.mark.asyncio
    async def test_allowed_role_returns_payload(self):
        token = create_access_token(data={"sub": "supervisor-2", "role": "supervisor"})
        checker = require_role(["supervisor", "admin"])
        payload = await checker(HTTPAuthorizationCredentials(scheme="Bearer", credentials=token))
        assert payload["sub"] == "supervisor-2"

    @pytest.mark.asyncio
    async def test_other_role_forbidden(self):
        token = create_access_token(data={"sub": "intake-agent-1", "role": "intake"})
        checker = require_role(["supervisor", "admin"])
        with pytest.raises(HTTPException) as exc_info:
            await checker(HTTPAuthorizationCredentials(scheme="Bearer", credentials=token))
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_subject_unauthorized(self):
        token = create_access_token(data={"role": "admin"})
        checker = require_role(["admin"])
        with pytest.raises(HTTPException) as exc_info:
            await checker(HTTPAuthorizationCredentials(scheme="Bearer", credentials=token))
        assert exc_info.value.status_code == 401


class TestLogMasking:
    """Test sensitive values never reach log output."""

    def _format(self, message: str) -> str:
        record = logging.LogRecord("claimsintake", logging.INFO, __file__, 1, message, None, None)
        CorrelationIdFilter().filter(record)
        return MaskingFormatter("[%(correlation_id)s] %(message)s").format(record)

    def test_policy_number_masked(self):
        output = self._format("AUDIT: details={'policy_number': 'HO-2025-000101'}")
        assert "HO-2025-000101" not in output
        assert "***" in output

    def test_corrected_value_masked(self):
        output = self._format('{"corrected_value": "Jane Q. Claimant"}')
        assert "Jane Q. Claimant" not in output

    def test_bearer_token_masked(self):
        output = self._format("Authorization: Bearer eyJhbGciOi.abc.def")
        assert "eyJhbGciOi" not in output
        assert "Bearer ***" in output

    def test_correlation_id_stamped(self):
        """Test records carry the active correlation id, or '-' outside a request."""
        assert self._format("hello").startswith("[-]")
        token = correlation_id_var.set("req-123")
        try:
            assert self._format("hello").startswith("[req-123]")
        finally:
            correlation_id_var.reset(token)
