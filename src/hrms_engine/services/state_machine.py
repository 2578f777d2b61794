"""Payroll batch and regularization state machines with transition validation."""

from __future__ import annotations

from enum import Enum

from hrms_engine.services.errors import HRMSError


class BatchStatus(str, Enum):
    """Payroll batch status values."""

    DRAFT = "draft"
    PROCESSED = "processed"
    PAID = "paid"


class RegularizationStatus(str, Enum):
    """Regularization request status values."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class InvalidTransitionError(HRMSError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = str(getattr(from_status, "value", from_status))
        self.to_status = str(getattr(to_status, "value", to_status))
        self.reason = reason
        msg = f"Invalid transition from '{self.from_status}' to '{self.to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class _StateMachine:
    VALID_TRANSITIONS: dict[str, list[str]] = {}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return cls.VALID_TRANSITIONS.get(current_status, [])

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        return not cls.get_next_statuses(status)


class PayrollBatchStateMachine(_StateMachine):
    """State machine for payroll batches.

    Allowed transitions (forward only):
    - draft → processed
    - processed → paid
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        BatchStatus.DRAFT: [BatchStatus.PROCESSED],
        BatchStatus.PROCESSED: [BatchStatus.PAID],
        BatchStatus.PAID: [],  # Terminal state
    }

    # Statuses in which a payroll run may (re)generate the batch's slips
    REPROCESS_ALLOWED = {
        BatchStatus.DRAFT,
        BatchStatus.PROCESSED,
    }

    @classmethod
    def can_mark_paid(cls, status: str) -> bool:
        return status == BatchStatus.PROCESSED

    @classmethod
    def can_reprocess(cls, status: str) -> bool:
        return status in cls.REPROCESS_ALLOWED


class RegularizationStateMachine(_StateMachine):
    """State machine for regularization requests.

    A pending request is decided exactly once:
    - pending → approved
    - pending → rejected
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        RegularizationStatus.PENDING: [
            RegularizationStatus.APPROVED,
            RegularizationStatus.REJECTED,
        ],
        RegularizationStatus.APPROVED: [],
        RegularizationStatus.REJECTED: [],
    }
