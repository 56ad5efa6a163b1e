"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

MONTH_REGEX = r"^\d{4}-(0[1-9]|1[0-2])$"

PaymentMode = Literal["cash", "bank_transfer", "cheque"]
EmployeeStatus = Literal["active", "on_leave", "terminated"]


# ============================================================================
# Employee directory schemas
# ============================================================================


class EmployeeCreate(BaseModel):
    """Schema for registering an employee with a salary structure."""

    employee_code: str = Field(min_length=1, max_length=50)
    name: str = Field(min_length=1, max_length=200)
    basic_salary: Decimal = Field(ge=0, decimal_places=2)
    allowances: dict[str, Decimal] = Field(default_factory=dict)
    deductions: dict[str, Decimal] = Field(default_factory=dict)
    hold_percent: Decimal | None = Field(default=None, ge=0, le=100)
    status: EmployeeStatus = "active"


class SalaryStructureUpdate(BaseModel):
    """Schema for updating a salary structure. Omitted fields are unchanged."""

    basic_salary: Decimal | None = Field(default=None, ge=0, decimal_places=2)
    allowances: dict[str, Decimal] | None = None
    deductions: dict[str, Decimal] | None = None
    hold_percent: Decimal | None = Field(default=None, ge=0, le=100)
    status: EmployeeStatus | None = None


class EmployeeResponse(BaseModel):
    """Schema for employee response."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    employee_code: str
    name: str
    status: str
    basic_salary: Decimal
    allowances: dict[str, Decimal]
    deductions: dict[str, Decimal]
    hold_percent: Decimal | None = None


class AttendanceUpdate(BaseModel):
    """Schema for recording a month's attendance summary."""

    unpaid_leave_days: int = Field(default=0, ge=0)
    half_days: int = Field(default=0, ge=0)
    total_working_days: int = Field(default=0, ge=0)


class AttendanceResponse(BaseModel):
    """Schema for attendance summary response."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    month: str
    unpaid_leave_days: int
    half_days: int
    total_working_days: int


# ============================================================================
# Salary schemas
# ============================================================================


class SalaryBreakdownResponse(BaseModel):
    """Schema for a computed (not yet persisted) salary."""

    model_config = ConfigDict(from_attributes=True)

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
    status: str


class ProcessSalaryRequest(BaseModel):
    """Schema for processing a month's salary."""

    month: str = Field(pattern=MONTH_REGEX)
    payment_mode: PaymentMode
    notes: str | None = Field(default=None, max_length=2000)


class SalaryRecordResponse(BaseModel):
    """Schema for a persisted salary record."""

    model_config = ConfigDict(from_attributes=True)

    salary_record_id: UUID
    employee_id: UUID
    month: str
    basic_salary: Decimal
    gross_salary: Decimal
    fixed_deductions: Decimal
    leave_deductions: Decimal
    hold_percent: Decimal
    hold_amount: Decimal
    payable_net: Decimal
    status: str
    payment_date: datetime | None = None
    payment_mode: str
    notes: str | None = None


class HoldAccrualResponse(BaseModel):
    """Schema for a hold accrual entry."""

    model_config = ConfigDict(from_attributes=True)

    hold_accrual_entry_id: UUID
    employee_id: UUID
    month: str | None = None
    amount: Decimal
    accrued_at: datetime
    matures_on: date


class ProcessSalaryResponse(BaseModel):
    """Schema for the result of processing a salary."""

    record: SalaryRecordResponse
    accrual: HoldAccrualResponse


class SalaryHistoryResponse(BaseModel):
    """Schema for an employee's salary history."""

    items: list[SalaryRecordResponse]
    total: int


# ============================================================================
# Hold schemas
# ============================================================================


class HoldSnapshotResponse(BaseModel):
    """Schema for the hold account view."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    as_of: date
    hold_percent: Decimal
    total_accrued: Decimal
    matured: Decimal
    lifetime_withdrawn: Decimal
    pending_amount: Decimal
    hold_balance: Decimal
    withdrawable: Decimal
    next_maturity_date: date | None = None


class WithdrawalCreate(BaseModel):
    """Schema for requesting a withdrawal."""

    amount: Decimal
    notes: str | None = Field(default=None, max_length=2000)


class ApprovalRequest(BaseModel):
    """Schema for approving a withdrawal request."""

    payment_method: PaymentMode
    reference_number: str | None = Field(default=None, max_length=100)
    notes: str | None = Field(default=None, max_length=2000)


class RejectionRequest(BaseModel):
    """Schema for rejecting a withdrawal request."""

    reason: str | None = Field(default=None, max_length=2000)


class WithdrawalRequestResponse(BaseModel):
    """Schema for a withdrawal request."""

    model_config = ConfigDict(from_attributes=True)

    withdrawal_request_id: UUID
    employee_id: UUID
    amount: Decimal
    status: str
    requested_at: datetime
    decided_at: datetime | None = None
    decided_by: UUID | None = None
    payment_method: str | None = None
    reference_number: str | None = None
    notes: str | None = None
    decision_reason: str | None = None
    employee_name: str | None = None
    employee_code: str | None = None


class WithdrawalRequestListResponse(BaseModel):
    """Schema for listing withdrawal requests."""

    items: list[WithdrawalRequestResponse]
    total: int


# ============================================================================
# Error schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Schema for error responses."""

    detail: str
    code: str | None = None
