"""Domain errors raised by services and translated to HTTP at the API edge."""

from __future__ import annotations


class HRMSError(Exception):
    """Base class for expected, user-facing failures."""

    code = "HRMS_ERROR"
    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(HRMSError):
    """Input rejected before any write."""

    code = "VALIDATION_ERROR"


class PermissionDeniedError(HRMSError):
    """Caller's role does not allow the action."""

    code = "PERMISSION_DENIED"
    status_code = 403


class NotFoundError(HRMSError):
    code = "NOT_FOUND"
    status_code = 404


class ConflictError(HRMSError):
    """Action conflicts with current record state (locked, duplicate, processed)."""

    code = "CONFLICT"
