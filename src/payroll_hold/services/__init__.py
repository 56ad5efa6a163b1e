"""Payroll hold services."""

from payroll_hold.services.authorization import Access, CallerContext, Role, assert_access
from payroll_hold.services.directory import EmployeeDirectory
from payroll_hold.services.hold_ledger import HoldAccountSnapshot, HoldLedgerService
from payroll_hold.services.salary_processor import ProcessResult, SalaryProcessor
from payroll_hold.services.state_machine import WithdrawalStateMachine, WithdrawalStatus
from payroll_hold.services.withdrawal_service import WithdrawalRequestView, WithdrawalService

__all__ = [
    "Access",
    "CallerContext",
    "Role",
    "assert_access",
    "EmployeeDirectory",
    "HoldAccountSnapshot",
    "HoldLedgerService",
    "ProcessResult",
    "SalaryProcessor",
    "WithdrawalStateMachine",
    "WithdrawalStatus",
    "WithdrawalRequestView",
    "WithdrawalService",
]
