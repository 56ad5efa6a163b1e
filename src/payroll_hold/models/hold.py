"""Hold ledger and withdrawal request models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from payroll_hold.models.base import Base, TimestampMixin


class HoldAccount(Base):
    """Per-employee hold account.

    Every balance-affecting write locks this row and bumps `version`.
    """

    __tablename__ = "hold_account"

    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        primary_key=True,
    )
    lifetime_withdrawn: Mapped[Decimal] = mapped_column(nullable=False, default=Decimal("0"))
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("lifetime_withdrawn >= 0", name="hold_account_withdrawn_check"),
    )


class HoldAccrualEntry(Base, TimestampMixin):
    """Append-only hold accrual, one per paid salary record."""

    __tablename__ = "hold_accrual_entry"

    hold_accrual_entry_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    salary_record_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("salary_record.salary_record_id", ondelete="RESTRICT"),
        nullable=True,
    )
    month: Mapped[str | None] = mapped_column(String(7), nullable=True)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    accrued_at: Mapped[datetime] = mapped_column(nullable=False)
    matures_on: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "accrued_at", name="hold_accrual_employee_accrued_at_unique"),
        UniqueConstraint("employee_id", "month", name="hold_accrual_employee_month_unique"),
        CheckConstraint("amount >= 0", name="hold_accrual_amount_check"),
    )


class WithdrawalRequest(Base):
    """Employee request to withdraw matured hold funds."""

    __tablename__ = "withdrawal_request"

    withdrawal_request_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    requested_at: Mapped[datetime] = mapped_column(nullable=False)
    decided_at: Mapped[datetime | None] = mapped_column(nullable=True)
    decided_by: Mapped[UUID | None] = mapped_column(nullable=True)
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    decision_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="withdrawal_request_amount_check"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="withdrawal_request_status_check",
        ),
    )
