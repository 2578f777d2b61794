"""Tests for payroll batch and regularization state machines."""

import pytest

from hrms_engine.services.errors import HRMSError
from hrms_engine.services.state_machine import (
    BatchStatus,
    InvalidTransitionError,
    PayrollBatchStateMachine,
    RegularizationStateMachine,
    RegularizationStatus,
)


class TestPayrollBatchStateMachine:
    """Test batch transitions."""

    def test_valid_transitions(self):
        """Test that forward transitions are allowed."""
        # draft → processed
        assert PayrollBatchStateMachine.can_transition("draft", "processed") is True

        # processed → paid
        assert PayrollBatchStateMachine.can_transition("processed", "paid") is True

    def test_invalid_transitions(self):
        """Test that skips and backward moves are blocked."""
        # Can't skip processing
        assert PayrollBatchStateMachine.can_transition("draft", "paid") is False

        # Can't go backwards
        assert PayrollBatchStateMachine.can_transition("processed", "draft") is False
        assert PayrollBatchStateMachine.can_transition("paid", "processed") is False
        assert PayrollBatchStateMachine.can_transition("paid", "draft") is False

    def test_enum_and_string_are_interchangeable(self):
        assert PayrollBatchStateMachine.can_transition(
            BatchStatus.DRAFT, BatchStatus.PROCESSED
        ) is True
        assert PayrollBatchStateMachine.can_transition(BatchStatus.PROCESSED, "paid") is True

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransitionError) as exc_info:
            PayrollBatchStateMachine.validate_transition("draft", "paid")

        assert exc_info.value.from_status == "draft"
        assert exc_info.value.to_status == "paid"
        assert exc_info.value.code == "INVALID_TRANSITION"
        assert isinstance(exc_info.value, HRMSError)

    def test_error_message_includes_reason(self):
        err = InvalidTransitionError(BatchStatus.PAID, BatchStatus.PROCESSED, "already paid")
        assert err.from_status == "paid"
        assert err.to_status == "processed"
        assert "already paid" in err.message

    def test_paid_is_terminal(self):
        assert PayrollBatchStateMachine.is_terminal("paid") is True
        assert PayrollBatchStateMachine.is_terminal("draft") is False
        assert PayrollBatchStateMachine.get_next_statuses("paid") == []

    def test_get_next_statuses(self):
        assert PayrollBatchStateMachine.get_next_statuses("draft") == ["processed"]
        assert PayrollBatchStateMachine.get_next_statuses("processed") == ["paid"]
        assert PayrollBatchStateMachine.get_next_statuses("unknown") == []

    def test_can_reprocess(self):
        """A batch may be regenerated until it is paid."""
        assert PayrollBatchStateMachine.can_reprocess("draft") is True
        assert PayrollBatchStateMachine.can_reprocess("processed") is True
        assert PayrollBatchStateMachine.can_reprocess("paid") is False

    def test_can_mark_paid(self):
        assert PayrollBatchStateMachine.can_mark_paid("processed") is True
        assert PayrollBatchStateMachine.can_mark_paid("draft") is False
        assert PayrollBatchStateMachine.can_mark_paid("paid") is False


class TestRegularizationStateMachine:
    """Test request decisions."""

    def test_pending_can_be_decided(self):
        assert RegularizationStateMachine.can_transition("pending", "approved") is True
        assert RegularizationStateMachine.can_transition("pending", "rejected") is True

    def test_decisions_are_final(self):
        for decided in (RegularizationStatus.APPROVED, RegularizationStatus.REJECTED):
            assert RegularizationStateMachine.is_terminal(decided) is True
            for target in RegularizationStatus:
                assert RegularizationStateMachine.can_transition(decided, target) is False

    def test_unknown_decision_is_invalid(self):
        with pytest.raises(InvalidTransitionError):
            RegularizationStateMachine.validate_transition("pending", "escalated")

    def test_cannot_return_to_pending(self):
        assert RegularizationStateMachine.can_transition("pending", "pending") is False
