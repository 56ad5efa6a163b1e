"""Monthly salary record model."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from payroll_hold.models.base import Base, TimestampMixin

PAYMENT_MODES = ("cash", "bank_transfer", "cheque")


class SalaryRecord(Base, TimestampMixin):
    """One processed salary per employee per month.

    Rows are never recomputed. Reprocessing a month is rejected.
    """

    __tablename__ = "salary_record"

    salary_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    basic_salary: Mapped[Decimal] = mapped_column(nullable=False)
    gross_salary: Mapped[Decimal] = mapped_column(nullable=False)
    fixed_deductions: Mapped[Decimal] = mapped_column(nullable=False)
    leave_deductions: Mapped[Decimal] = mapped_column(nullable=False)
    hold_percent: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    hold_amount: Mapped[Decimal] = mapped_column(nullable=False)
    payable_net: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    payment_date: Mapped[datetime | None] = mapped_column(nullable=True)
    payment_mode: Mapped[str] = mapped_column(String, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("employee_id", "month", name="salary_record_employee_month_unique"),
        CheckConstraint("status IN ('pending', 'paid')", name="salary_record_status_check"),
        CheckConstraint(
            "payment_mode IN ('cash', 'bank_transfer', 'cheque')",
            name="salary_record_payment_mode_check",
        ),
        CheckConstraint("payable_net >= 0", name="salary_record_payable_net_check"),
        CheckConstraint("hold_amount >= 0", name="salary_record_hold_amount_check"),
    )
