"""
Error Taxonomy
Exceptions raised by the core and rendered by the API layer
"""
from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base error carrying a machine-readable kind"""
    kind = "error"
    status_code = 400

    def __init__(
        self,
        message: str,
        kind: Optional[str] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        super().__init__(message)
        self.message = message
        if kind:
            self.kind = kind
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "details": self.details}


class ValidationFailed(AppError):
    """Malformed input; nothing was persisted"""
    kind = "validation_error"
    status_code = 422

    def __init__(self, message: str, field: Optional[str] = None):
        details = [{"field": field, "message": message}] if field else None
        super().__init__(message, details=details)


class NotFoundError(AppError):
    """Referenced record does not exist"""
    kind = "not_found"
    status_code = 404

    def __init__(self, resource: str, identifier: Any, kind: Optional[str] = None, message: Optional[str] = None):
        super().__init__(message or f"{resource} {identifier} not found", kind=kind)
        self.resource = resource
        self.identifier = identifier


class ConflictError(AppError):
    """Uniqueness violation or a transition the current state does not allow"""
    kind = "conflict"
    status_code = 409


class AlreadyCheckedIn(ConflictError):
    kind = "already_checked_in"


class AlreadyCheckedOut(ConflictError):
    kind = "already_checked_out"


class DuplicatePeriod(ConflictError):
    kind = "duplicate_period"


class InvalidTransition(ConflictError):
    kind = "invalid_transition"


class NotJoined(ConflictError):
    """Employee's joining date falls after the payroll period"""
    kind = "not_joined"
