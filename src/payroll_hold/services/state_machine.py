"""Withdrawal request state machine with transition validation."""

from __future__ import annotations

from enum import Enum

from payroll_hold.errors import InvalidTransitionError


class WithdrawalStatus(str, Enum):
    """Withdrawal request status values."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class SalaryRecordStatus(str, Enum):
    """Salary record status values."""

    PENDING = "pending"
    PAID = "paid"


class WithdrawalStateMachine:
    """State machine for withdrawal request transitions.

    Allowed transitions:
    - pending → approved
    - pending → rejected

    Approved and rejected are terminal; a request is never re-opened.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        WithdrawalStatus.PENDING: [WithdrawalStatus.APPROVED, WithdrawalStatus.REJECTED],
        WithdrawalStatus.APPROVED: [],
        WithdrawalStatus.REJECTED: [],
    }

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            reason = None
            if cls.is_terminal(from_status):
                reason = f"request is already {from_status}"
            raise InvalidTransitionError(from_status, to_status, reason)

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        """Check if no further transitions are possible."""
        return status in cls.VALID_TRANSITIONS and not cls.VALID_TRANSITIONS[status]
