"""Employee directory administration endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from payroll_hold.api.dependencies import Caller, DbSession, Directory
from payroll_hold.api.schemas import (
    MONTH_REGEX,
    AttendanceResponse,
    AttendanceUpdate,
    EmployeeCreate,
    EmployeeResponse,
    ErrorResponse,
    SalaryStructureUpdate,
)
from payroll_hold.database import transaction
from payroll_hold.services import Access, assert_access

router = APIRouter(prefix="/employees", tags=["employees"])


@router.post(
    "",
    response_model=EmployeeResponse,
    status_code=status.HTTP_201_CREATED,
    responses={403: {"model": ErrorResponse}},
)
async def create_employee(
    db: DbSession,
    directory: Directory,
    caller: Caller,
    payload: EmployeeCreate,
) -> EmployeeResponse:
    """Register an employee with an initial salary structure."""
    assert_access(caller, Access.ADMIN)
    async with transaction(db):
        employee = await directory.register_employee(**payload.model_dump())
    return EmployeeResponse.model_validate(employee)


@router.put(
    "/{employee_id}/salary-structure",
    response_model=EmployeeResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_salary_structure(
    db: DbSession,
    directory: Directory,
    caller: Caller,
    employee_id: Annotated[UUID, Path()],
    payload: SalaryStructureUpdate,
) -> EmployeeResponse:
    """Update an employee's salary structure."""
    assert_access(caller, Access.ADMIN)
    async with transaction(db):
        employee = await directory.update_salary_structure(
            employee_id, **payload.model_dump(exclude_none=True)
        )
    return EmployeeResponse.model_validate(employee)


@router.put(
    "/{employee_id}/attendance/{month}",
    response_model=AttendanceResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def record_attendance(
    db: DbSession,
    directory: Directory,
    caller: Caller,
    employee_id: Annotated[UUID, Path()],
    month: Annotated[str, Path(pattern=MONTH_REGEX)],
    payload: AttendanceUpdate,
) -> AttendanceResponse:
    """Insert or replace the attendance summary for a month."""
    assert_access(caller, Access.ADMIN)
    async with transaction(db):
        record = await directory.record_attendance(employee_id, month, **payload.model_dump())
    return AttendanceResponse.model_validate(record)
