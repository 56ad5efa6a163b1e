"""Employee directory models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, DateTime, ForeignKey, Integer, Numeric, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from payroll_hold.models.base import Base, TimestampMixin

JsonMap = JSON().with_variant(JSONB(), "postgresql")


class Employee(Base, TimestampMixin):
    """Employee record with its salary structure."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_code: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="active")
    basic_salary: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    # name -> decimal string, e.g. {"hra": "3000.00"}
    allowances: Mapped[dict[str, Any]] = mapped_column(JsonMap, nullable=False, default=dict)
    deductions: Mapped[dict[str, Any]] = mapped_column(JsonMap, nullable=False, default=dict)
    # NULL means the configured default applies
    hold_percent: Mapped[Decimal | None] = mapped_column(Numeric(5, 2), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("employee_code", name="employee_code_unique"),
        CheckConstraint(
            "status IN ('active', 'on_leave', 'terminated')",
            name="employee_status_check",
        ),
        CheckConstraint("basic_salary >= 0", name="employee_basic_salary_check"),
        CheckConstraint(
            "hold_percent IS NULL OR (hold_percent >= 0 AND hold_percent <= 100)",
            name="employee_hold_percent_check",
        ),
    )


class AttendanceSummaryRecord(Base, TimestampMixin):
    """Monthly attendance totals supplied by the attendance ledger."""

    __tablename__ = "attendance_summary"

    attendance_summary_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="CASCADE"),
        nullable=False,
    )
    month: Mapped[str] = mapped_column(String(7), nullable=False)
    unpaid_leave_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    half_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_working_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("employee_id", "month", name="attendance_summary_employee_month_unique"),
        CheckConstraint(
            "unpaid_leave_days >= 0 AND half_days >= 0 AND total_working_days >= 0",
            name="attendance_summary_counts_check",
        ),
    )
