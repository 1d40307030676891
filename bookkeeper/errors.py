"""
Domain error taxonomy for the ledger core.

ValidationError is client-correctable and carries a reason code plus enough
structure (line index, account code, difference) to fix and resubmit.
ConflictError covers state-transition races and dependent-data conflicts.
NotFoundError is raised for unknown entries and accounts.
"""
from typing import Any, Dict, List, Optional


class LedgerError(Exception):
    """Base class for all ledger domain errors."""
    error = "LedgerError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message, "details": self.details}


class ValidationError(LedgerError):
    error = "ValidationError"

    def __init__(self, reason: str, message: str, details: Optional[Dict[str, Any]] = None,
                 issues: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message, details)
        self.reason = reason
        self.issues = issues or []

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.error,
            "reason": self.reason,
            "message": self.message,
            "details": self.details,
            "issues": self.issues,
        }


class ValidationFailed(ValidationError):
    """Stored draft no longer passes validation at posting time."""
    error = "ValidationFailed"


class ConflictError(LedgerError):
    error = "ConflictError"


class AlreadyPosted(ConflictError):
    error = "AlreadyPosted"

    def __init__(self, entry_id: str):
        super().__init__(f"Journal entry {entry_id} is already posted", {"entry_id": entry_id})


class NotFoundError(LedgerError):
    error = "NotFound"


class DivisionUndefined(LedgerError):
    """Ratio denominator is zero. Reports turn this into an N/A marker."""
    error = "DivisionUndefined"
