"""Typed ledger errors.

Every error raised by the billing core derives from LedgerError and carries a
machine-readable code plus the HTTP status the API layer answers with.
"""

from typing import Any, Dict

from fastapi import status


class LedgerError(Exception):
    """Base ledger error."""

    def __init__(self, message: str, code: str, http_status: int = 400):
        """Initialize error."""
        self.message = message
        self.code = code
        self.http_status = http_status
        super().__init__(message)


class ValidationError(LedgerError):
    """Malformed input (bad billMonth, negative amount, missing field)."""

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, "validation_error", status.HTTP_400_BAD_REQUEST)


class NotFoundError(LedgerError):
    """Contract, bill or payment does not exist."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, "not_found", status.HTTP_404_NOT_FOUND)


class ConflictError(LedgerError):
    """Duplicate bill for a month, or re-review of a non-pending payment."""

    def __init__(self, message: str = "Conflict"):
        super().__init__(message, "conflict", status.HTTP_409_CONFLICT)


class StateError(LedgerError):
    """Operation not allowed in the entity's current state (e.g., inactive contract)."""

    def __init__(self, message: str = "Invalid state"):
        super().__init__(message, "invalid_state", status.HTTP_409_CONFLICT)


def error_response(error: LedgerError) -> Dict[str, Any]:
    """Create a standardized error response."""
    return {
        "error": {
            "code": error.code,
            "message": error.message,
        }
    }


__all__ = [
    "LedgerError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StateError",
    "error_response",
]
