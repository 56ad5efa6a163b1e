"""Salary preview, processing and history endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from payroll_hold.api.dependencies import Caller, Salaries
from payroll_hold.api.schemas import (
    MONTH_REGEX,
    ErrorResponse,
    HoldAccrualResponse,
    ProcessSalaryRequest,
    ProcessSalaryResponse,
    SalaryBreakdownResponse,
    SalaryHistoryResponse,
    SalaryRecordResponse,
)

router = APIRouter(prefix="/salary", tags=["salary"])


@router.get(
    "/{employee_id}/preview",
    response_model=SalaryBreakdownResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def preview_salary(
    salaries: Salaries,
    caller: Caller,
    employee_id: Annotated[UUID, Path()],
    month: Annotated[str, Query(pattern=MONTH_REGEX)],
) -> SalaryBreakdownResponse:
    """Calculate a month's salary without persisting anything."""
    breakdown = await salaries.preview(caller, employee_id, month)
    return SalaryBreakdownResponse.model_validate(breakdown)


@router.post(
    "/{employee_id}/process",
    response_model=ProcessSalaryResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def process_salary(
    salaries: Salaries,
    caller: Caller,
    employee_id: Annotated[UUID, Path()],
    payload: ProcessSalaryRequest,
) -> ProcessSalaryResponse:
    """Pay a month's salary and accrue its hold (admin only)."""
    result = await salaries.process(
        caller,
        employee_id,
        payload.month,
        payload.payment_mode,
        notes=payload.notes,
    )
    return ProcessSalaryResponse(
        record=SalaryRecordResponse.model_validate(result.record),
        accrual=HoldAccrualResponse.model_validate(result.accrual),
    )


@router.get(
    "/{employee_id}/history",
    response_model=SalaryHistoryResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def salary_history(
    salaries: Salaries,
    caller: Caller,
    employee_id: Annotated[UUID, Path()],
) -> SalaryHistoryResponse:
    """List processed salaries, most recent first."""
    records = await salaries.history(caller, employee_id)
    return SalaryHistoryResponse(
        items=[SalaryRecordResponse.model_validate(r) for r in records],
        total=len(records),
    )
