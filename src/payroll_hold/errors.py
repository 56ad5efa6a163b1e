"""Error taxonomy for salary processing and hold withdrawals.

Every failure a caller can observe is one of these types. None of them
are converted into fallback values inside the services.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID


class PayrollHoldError(Exception):
    """Base class for all domain errors."""

    code = "PAYROLL_HOLD_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses."""
        return {"detail": str(self), "code": self.code}


class NotFound(PayrollHoldError):
    """Unknown employee, request or record id."""

    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: UUID | str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class AuthorizationError(PayrollHoldError):
    """Caller is not allowed to perform the operation."""

    code = "FORBIDDEN"


class InvalidSalaryComputation(PayrollHoldError):
    """The salary structure cannot produce a valid payout for the month."""

    code = "INVALID_SALARY_COMPUTATION"

    def __init__(self, employee_id: UUID | None, month: str, reason: str):
        self.employee_id = employee_id
        self.month = month
        self.reason = reason
        super().__init__(f"Cannot compute salary for {month}: {reason}")


class AlreadyProcessed(PayrollHoldError):
    """Salary for this employee and month has already been processed."""

    code = "ALREADY_PROCESSED"

    def __init__(self, employee_id: UUID, month: str):
        self.employee_id = employee_id
        self.month = month
        super().__init__(f"Salary for employee {employee_id} already processed for {month}")


class DuplicateAccrual(PayrollHoldError):
    """An accrual already exists for the same employee and payment.

    Raised by the hold ledger as an internal consistency guard. Seeing it
    outside of tests means a month was about to be double-accrued.
    """

    code = "DUPLICATE_ACCRUAL"

    def __init__(self, employee_id: UUID, key: str):
        self.employee_id = employee_id
        self.key = key
        super().__init__(f"Hold accrual for employee {employee_id} already exists ({key})")


class InsufficientHoldBalance(PayrollHoldError):
    """Requested withdrawal exceeds the withdrawable hold balance."""

    code = "INSUFFICIENT_HOLD_BALANCE"

    def __init__(self, requested: Decimal, withdrawable: Decimal, message: str | None = None):
        self.requested = requested
        self.withdrawable = withdrawable
        super().__init__(
            message
            or f"Requested amount {requested} exceeds withdrawable balance {withdrawable}"
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["requested"] = str(self.requested)
        data["withdrawable"] = str(self.withdrawable)
        return data


class InvalidWithdrawalAmount(InsufficientHoldBalance):
    """Withdrawal amount is zero or negative."""

    code = "INVALID_WITHDRAWAL_AMOUNT"

    def __init__(self, requested: Decimal, withdrawable: Decimal):
        super().__init__(
            requested,
            withdrawable,
            f"Withdrawal amount must be positive, got {requested}",
        )


class StaleWithdrawalRequest(PayrollHoldError):
    """A pending request can no longer be satisfied at approval time.

    The request is left pending for manual re-review.
    """

    code = "STALE_WITHDRAWAL_REQUEST"

    def __init__(self, request_id: UUID, reason: str):
        self.request_id = request_id
        self.reason = reason
        super().__init__(f"Withdrawal request {request_id} is stale: {reason}")


class InvalidTransitionError(PayrollHoldError):
    """Raised when an invalid state transition is attempted."""

    code = "INVALID_TRANSITION"

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ConcurrentModificationError(PayrollHoldError):
    """The hold account changed between read and write."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(self, employee_id: UUID, expected_version: int):
        self.employee_id = employee_id
        self.expected_version = expected_version
        super().__init__(
            f"Hold account for employee {employee_id} was modified concurrently "
            f"(expected version {expected_version})"
        )
