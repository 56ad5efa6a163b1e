"""Type definitions for the salary calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any
from uuid import UUID


@dataclass(frozen=True)
class SalaryStructure:
    """Salary structure for one employee, as supplied by the directory."""

    employee_id: UUID
    basic_salary: Decimal
    hold_percent: Decimal
    allowances: dict[str, Decimal] = field(default_factory=dict)
    deductions: dict[str, Decimal] = field(default_factory=dict)
    employment_status: str = "active"

    @property
    def total_allowances(self) -> Decimal:
        return sum(self.allowances.values(), Decimal("0"))

    @property
    def total_deductions(self) -> Decimal:
        return sum(self.deductions.values(), Decimal("0"))


@dataclass(frozen=True)
class AttendanceSummary:
    """Attendance totals for one employee and month."""

    employee_id: UUID
    month: str
    unpaid_leave_days: int = 0
    half_days: int = 0
    total_working_days: int = 0


@dataclass(frozen=True)
class SalaryBreakdown:
    """Computed salary for a month, before it is persisted.

    Invariant: payable_net == gross_salary - fixed_deductions
    - leave_deductions - hold_amount, and payable_net >= 0.
    """

    employee_id: UUID
    month: str
    basic_salary: Decimal
    total_allowances: Decimal
    gross_salary: Decimal
    days_in_month: int
    daily_rate: Decimal
    unpaid_leave_days: int
    half_days: int
    fixed_deductions: Decimal
    leave_deductions: Decimal
    hold_percent: Decimal
    hold_amount: Decimal
    payable_net: Decimal
    status: str = "pending"

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": str(self.employee_id),
            "month": self.month,
            "basic_salary": str(self.basic_salary),
            "total_allowances": str(self.total_allowances),
            "gross_salary": str(self.gross_salary),
            "days_in_month": self.days_in_month,
            "daily_rate": str(self.daily_rate),
            "unpaid_leave_days": self.unpaid_leave_days,
            "half_days": self.half_days,
            "fixed_deductions": str(self.fixed_deductions),
            "leave_deductions": str(self.leave_deductions),
            "hold_percent": str(self.hold_percent),
            "hold_amount": str(self.hold_amount),
            "payable_net": str(self.payable_net),
            "status": self.status,
        }
