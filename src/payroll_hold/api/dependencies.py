"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_hold.events import EventEmitter
from payroll_hold.services import (
    CallerContext,
    EmployeeDirectory,
    HoldLedgerService,
    Role,
    SalaryProcessor,
    WithdrawalService,
)
from payroll_hold.services.hold_ledger import Clock


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_emitter(request: Request) -> EventEmitter:
    return request.app.state.emitter


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


async def get_caller(
    x_employee_id: Annotated[str | None, Header()] = None,
    x_role: Annotated[str | None, Header()] = None,
) -> CallerContext:
    """Build the caller context from the X-Employee-ID and X-Role headers."""
    if not x_employee_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Employee-ID header is required",
        )
    try:
        user_id = UUID(x_employee_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Employee-ID format",
        )
    try:
        role = Role((x_role or Role.EMPLOYEE.value).lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-Role value",
        )
    return CallerContext(user_id=user_id, role=role, employee_id=user_id)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Caller = Annotated[CallerContext, Depends(get_caller)]
Emitter = Annotated[EventEmitter, Depends(get_emitter)]
AppClock = Annotated[Clock, Depends(get_clock)]


def get_directory(db: DbSession) -> EmployeeDirectory:
    return EmployeeDirectory(db)


def get_salary_processor(db: DbSession, emitter: Emitter, clock: AppClock) -> SalaryProcessor:
    return SalaryProcessor(db, emitter=emitter, clock=clock)


def get_withdrawal_service(db: DbSession, emitter: Emitter, clock: AppClock) -> WithdrawalService:
    return WithdrawalService(db, ledger=HoldLedgerService(db, clock=clock), emitter=emitter, clock=clock)


Directory = Annotated[EmployeeDirectory, Depends(get_directory)]
Salaries = Annotated[SalaryProcessor, Depends(get_salary_processor)]
Withdrawals = Annotated[WithdrawalService, Depends(get_withdrawal_service)]
