"""Salary calculation."""

from payroll_hold.calculators.periods import add_months, days_in_month, parse_month
from payroll_hold.calculators.salary_calculator import SalaryCalculator, calculate_salary
from payroll_hold.calculators.types import AttendanceSummary, SalaryBreakdown, SalaryStructure

__all__ = [
    "SalaryCalculator",
    "calculate_salary",
    "SalaryStructure",
    "AttendanceSummary",
    "SalaryBreakdown",
    "add_months",
    "days_in_month",
    "parse_month",
]
