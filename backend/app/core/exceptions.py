"""
Domain exceptions.

Every error the services raise derives from ClaimsIntakeError and belongs to
one of five categories: validation, not-found, invalid-state, concurrency
conflict, external dependency. The API layer maps each category to one HTTP
status code in main.py.
"""
from typing import List, Optional


class ClaimsIntakeError(Exception):
    """Base class for all domain errors."""

    error_code = "claims_intake_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ClaimsIntakeError):
    """Malformed command input. Never retried."""

    error_code = "validation_error"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = errors or [message]
        super().__init__(message)


# Not found

class NotFoundError(ClaimsIntakeError):
    error_code = "not_found"


class ClaimNotFoundError(NotFoundError):
    def __init__(self, claim_ref):
        super().__init__(f"Claim {claim_ref} not found")


class DocumentNotFoundError(NotFoundError):
    def __init__(self, document_id):
        super().__init__(f"Document {document_id} not found")


class FieldNotFoundError(NotFoundError):
    def __init__(self, field_id):
        super().__init__(f"Extracted field {field_id} not found")


class PolicyNotFoundError(NotFoundError):
    def __init__(self, policy_number: str):
        super().__init__(f"Policy {policy_number} not found")


class PolicySnapshotNotFoundError(NotFoundError):
    def __init__(self, claim_id):
        super().__init__(f"Policy snapshot not found for claim {claim_id}")


class RiskAssessmentNotFoundError(NotFoundError):
    def __init__(self, claim_id):
        super().__init__(f"No risk assessment found for claim {claim_id}")


# Invalid state

class InvalidStateError(ClaimsIntakeError):
    """Operation attempted outside its required lifecycle phase."""

    error_code = "invalid_state"


class UnverifiedDataError(InvalidStateError):
    """Extracted fields have not been reviewed by a human."""

    def __init__(self, field_names: List[str]):
        self.field_names = list(field_names)
        names = ", ".join(self.field_names)
        super().__init__(f"Unverified extracted fields cannot be used: {names}")


class RejectedDataError(InvalidStateError):
    def __init__(self, field_name: str):
        self.field_name = field_name
        super().__init__(f"Field '{field_name}' was rejected by a reviewer and cannot be used")


class DuplicateVerificationError(InvalidStateError):
    def __init__(self, field_id):
        super().__init__(
            f"Field {field_id} has already been verified. Verification records are immutable."
        )


class DuplicateRecordError(InvalidStateError):
    pass


class ImmutableRecordError(InvalidStateError):
    def __init__(self, entity: str):
        super().__init__(f"{entity} rows are append-only and cannot be modified or deleted")


class UnmappedRiskLevelError(InvalidStateError):
    def __init__(self, risk_level: str):
        self.risk_level = risk_level
        super().__init__(f"Risk level '{risk_level}' has no triage queue mapping")


# Concurrency / external

class ConcurrencyConflictError(ClaimsIntakeError):
    """Write targeted a stale version. Re-read and retry."""

    error_code = "concurrency_conflict"


class ExternalDependencyError(ClaimsIntakeError):
    """AI provider or document storage failure."""

    error_code = "external_dependency_error"

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)
