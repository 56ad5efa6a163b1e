"""Employee directory backed by the employee and attendance tables."""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_hold.calculators.periods import parse_month
from payroll_hold.calculators.types import AttendanceSummary, SalaryStructure
from payroll_hold.config import get_settings
from payroll_hold.errors import InvalidSalaryComputation, NotFound
from payroll_hold.models import AttendanceSummaryRecord, Employee

logger = logging.getLogger(__name__)

EMPLOYEE_STATUSES = ("active", "on_leave", "terminated")


def _decimal_map(values: dict[str, Any] | None, field_name: str, employee_id: UUID) -> dict[str, Decimal]:
    """Convert a stored JSON name -> amount map into Decimals."""
    result: dict[str, Decimal] = {}
    for name, raw in (values or {}).items():
        if raw is None:
            continue
        try:
            result[name] = Decimal(str(raw))
        except InvalidOperation:
            raise InvalidSalaryComputation(
                employee_id, "-", f"{field_name} '{name}' is not a number: {raw!r}"
            ) from None
    return result


def _json_map(values: dict[str, Decimal] | None) -> dict[str, str]:
    return {name: str(amount) for name, amount in (values or {}).items()}


class EmployeeDirectory:
    """Supplies salary structures and attendance summaries.

    Also carries the administrative updates that populate them.
    """

    def __init__(self, session: AsyncSession, default_hold_percent: Decimal | None = None):
        self.session = session
        if default_hold_percent is None:
            default_hold_percent = get_settings().default_hold_percent
        self.default_hold_percent = default_hold_percent

    async def get_employee(self, employee_id: UUID) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFound("Employee", employee_id)
        return employee

    async def get_salary_structure(self, employee_id: UUID) -> SalaryStructure:
        """Read the salary structure for an employee.

        Raises:
            NotFound: unknown employee id
        """
        employee = await self.get_employee(employee_id)
        hold_percent = (
            employee.hold_percent
            if employee.hold_percent is not None
            else self.default_hold_percent
        )
        return SalaryStructure(
            employee_id=employee.employee_id,
            basic_salary=Decimal(str(employee.basic_salary)),
            hold_percent=Decimal(str(hold_percent)),
            allowances=_decimal_map(employee.allowances, "allowance", employee_id),
            deductions=_decimal_map(employee.deductions, "deduction", employee_id),
            employment_status=employee.status,
        )

    async def get_attendance_summary(self, employee_id: UUID, month: str) -> AttendanceSummary:
        """Read the attendance summary for a month.

        A month with nothing recorded has no unpaid leave and no half days.
        """
        parse_month(month)
        result = await self.session.execute(
            select(AttendanceSummaryRecord).where(
                AttendanceSummaryRecord.employee_id == employee_id,
                AttendanceSummaryRecord.month == month,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            return AttendanceSummary(employee_id=employee_id, month=month)

        return AttendanceSummary(
            employee_id=employee_id,
            month=month,
            unpaid_leave_days=record.unpaid_leave_days,
            half_days=record.half_days,
            total_working_days=record.total_working_days,
        )

    async def register_employee(
        self,
        *,
        employee_code: str,
        name: str,
        basic_salary: Decimal,
        allowances: dict[str, Decimal] | None = None,
        deductions: dict[str, Decimal] | None = None,
        hold_percent: Decimal | None = None,
        status: str = "active",
    ) -> Employee:
        """Add an employee with an initial salary structure."""
        self._check_status(status)
        employee = Employee(
            employee_code=employee_code,
            name=name,
            status=status,
            basic_salary=basic_salary,
            allowances=_json_map(allowances),
            deductions=_json_map(deductions),
            hold_percent=hold_percent,
        )
        self.session.add(employee)
        await self.session.flush()
        logger.info("Registered employee %s (%s)", employee.employee_id, employee_code)
        return employee

    async def update_salary_structure(
        self,
        employee_id: UUID,
        *,
        basic_salary: Decimal | None = None,
        allowances: dict[str, Decimal] | None = None,
        deductions: dict[str, Decimal] | None = None,
        hold_percent: Decimal | None = None,
        status: str | None = None,
    ) -> Employee:
        """Administrative update of the salary structure.

        Fields left as None are unchanged. Already processed months are
        not affected; their figures live on the salary records.
        """
        employee = await self.get_employee(employee_id)
        if basic_salary is not None:
            employee.basic_salary = basic_salary
        if allowances is not None:
            employee.allowances = _json_map(allowances)
        if deductions is not None:
            employee.deductions = _json_map(deductions)
        if hold_percent is not None:
            employee.hold_percent = hold_percent
        if status is not None:
            self._check_status(status)
            employee.status = status
        await self.session.flush()
        logger.info("Updated salary structure for employee %s", employee_id)
        return employee

    async def record_attendance(
        self,
        employee_id: UUID,
        month: str,
        *,
        unpaid_leave_days: int,
        half_days: int,
        total_working_days: int,
    ) -> AttendanceSummaryRecord:
        """Insert or replace the attendance summary for a month."""
        parse_month(month)
        await self.get_employee(employee_id)

        result = await self.session.execute(
            select(AttendanceSummaryRecord).where(
                AttendanceSummaryRecord.employee_id == employee_id,
                AttendanceSummaryRecord.month == month,
            )
        )
        record = result.scalar_one_or_none()
        if record is None:
            record = AttendanceSummaryRecord(employee_id=employee_id, month=month)
            self.session.add(record)

        record.unpaid_leave_days = unpaid_leave_days
        record.half_days = half_days
        record.total_working_days = total_working_days
        await self.session.flush()
        return record

    @staticmethod
    def _check_status(status: str) -> None:
        if status not in EMPLOYEE_STATUSES:
            raise ValueError(f"Invalid employee status: {status}")
