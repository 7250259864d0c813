# ledger_service/app/core/exceptions.py
"""
Typed errors raised by the ledger core.

Services raise these; the API layer maps ``status_code`` onto the HTTP
response. ``ConflictError`` is the only retryable one and is normally
absorbed by ``run_atomic`` before it reaches a caller.
"""

from typing import Any, Dict, Optional


class LedgerError(Exception):
    """Base class for all ledger errors."""

    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "details": self.details,
        }


class InsufficientFundsError(LedgerError):
    """A wallet cannot cover the requested debit. Nothing was mutated."""

    status_code = 400

    def __init__(self, currency: str, required=None, message: Optional[str] = None):
        super().__init__(
            message or f"Insufficient {currency} balance",
            {"currency": currency, "required": str(required) if required is not None else None},
        )
        self.currency = currency
        self.required = required


class NotFoundError(LedgerError):
    """Record missing, owned by someone else, or not in the required state."""

    status_code = 404

    def __init__(self, resource: str, record_id: Any, message: Optional[str] = None):
        super().__init__(
            message or f"{resource} {record_id} not found",
            {"resource": resource, "id": record_id},
        )
        self.resource = resource
        self.record_id = record_id


class ValidationError(LedgerError):
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, {"field": field} if field else {})
        self.field = field


class ConflictError(LedgerError):
    """Concurrent mutation of the same wallet or record; safe to retry."""

    status_code = 409
    retryable = True


class PersistenceFailure(LedgerError):
    """Storage unavailable or failed. Any partial work was rolled back."""

    status_code = 503
