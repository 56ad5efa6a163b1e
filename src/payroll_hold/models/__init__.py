"""ORM models."""

from payroll_hold.models.base import Base, TimestampMixin
from payroll_hold.models.employee import AttendanceSummaryRecord, Employee
from payroll_hold.models.hold import HoldAccount, HoldAccrualEntry, WithdrawalRequest
from payroll_hold.models.salary import SalaryRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "Employee",
    "AttendanceSummaryRecord",
    "SalaryRecord",
    "HoldAccount",
    "HoldAccrualEntry",
    "WithdrawalRequest",
]
