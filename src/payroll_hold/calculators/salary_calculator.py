"""Monthly salary calculator.

Pure computation: no database access, no clock, no side effects. The same
inputs always produce the same breakdown, so preview and process share it.

Pipeline:
1) gross = basic + sum(allowances)
2) daily rate = basic / calendar days in the month
3) leave deductions = daily rate * (unpaid days + half days / 2)
4) fixed deductions = sum(deductions)
5) hold = (gross - fixed - leave) * hold percent, floored at zero
6) payable net = gross - fixed - leave - hold, must not be negative
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from payroll_hold.calculators.periods import days_in_month
from payroll_hold.calculators.types import AttendanceSummary, SalaryBreakdown, SalaryStructure
from payroll_hold.errors import InvalidSalaryComputation

HALF_DAY_WEIGHT = Decimal("0.5")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


class SalaryCalculator:
    """Computes a salary breakdown from structure and attendance."""

    OUTPUT_PRECISION = Decimal("0.01")

    @classmethod
    def round_money(cls, amount: Decimal) -> Decimal:
        """Round to cents using round-half-up."""
        return amount.quantize(cls.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @classmethod
    def calculate(
        cls,
        structure: SalaryStructure,
        month: str,
        attendance: AttendanceSummary,
    ) -> SalaryBreakdown:
        """Compute the breakdown for one employee and month.

        Raises:
            InvalidSalaryComputation: invalid structure or attendance, or the
                deductions exceed gross salary.
            ValueError: month is not YYYY-MM.
        """
        days = days_in_month(month)
        cls._validate(structure, month, attendance)

        gross = cls.round_money(structure.basic_salary + structure.total_allowances)
        daily_rate = structure.basic_salary / Decimal(days)

        leave_days = Decimal(attendance.unpaid_leave_days) + HALF_DAY_WEIGHT * Decimal(
            attendance.half_days
        )
        leave_deductions = cls.round_money(daily_rate * leave_days)
        fixed_deductions = cls.round_money(structure.total_deductions)

        hold_base = gross - fixed_deductions - leave_deductions
        # Never a negative hold
        hold_amount = cls.round_money(max(hold_base, ZERO) * structure.hold_percent / HUNDRED)

        payable_net = gross - fixed_deductions - leave_deductions - hold_amount
        if payable_net < 0:
            raise InvalidSalaryComputation(
                structure.employee_id,
                month,
                f"deductions ({fixed_deductions + leave_deductions}) exceed gross salary ({gross})",
            )

        return SalaryBreakdown(
            employee_id=structure.employee_id,
            month=month,
            basic_salary=cls.round_money(structure.basic_salary),
            total_allowances=cls.round_money(structure.total_allowances),
            gross_salary=gross,
            days_in_month=days,
            daily_rate=cls.round_money(daily_rate),
            unpaid_leave_days=attendance.unpaid_leave_days,
            half_days=attendance.half_days,
            fixed_deductions=fixed_deductions,
            leave_deductions=leave_deductions,
            hold_percent=structure.hold_percent,
            hold_amount=hold_amount,
            payable_net=payable_net,
        )

    @staticmethod
    def _validate(
        structure: SalaryStructure,
        month: str,
        attendance: AttendanceSummary,
    ) -> None:
        errors: list[str] = []

        if structure.basic_salary < 0:
            errors.append("basic salary is negative")
        for name, amount in structure.allowances.items():
            if amount < 0:
                errors.append(f"allowance '{name}' is negative")
        for name, amount in structure.deductions.items():
            if amount < 0:
                errors.append(f"deduction '{name}' is negative")
        if not ZERO <= structure.hold_percent <= HUNDRED:
            errors.append(f"hold percent {structure.hold_percent} outside 0-100")
        if attendance.unpaid_leave_days < 0 or attendance.half_days < 0:
            errors.append("attendance counts are negative")

        if errors:
            raise InvalidSalaryComputation(structure.employee_id, month, "; ".join(errors))


def calculate_salary(
    structure: SalaryStructure,
    month: str,
    attendance: AttendanceSummary,
) -> SalaryBreakdown:
    """Module-level shortcut for SalaryCalculator.calculate."""
    return SalaryCalculator.calculate(structure, month, attendance)
