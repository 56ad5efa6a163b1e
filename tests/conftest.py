"""Pytest fixtures for payroll hold tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from payroll_hold.api.app import create_app
from payroll_hold.database import create_engine, create_schema, create_session_factory, transaction
from payroll_hold.events import DomainEvent, EventEmitter
from payroll_hold.models import Employee
from payroll_hold.services import (
    CallerContext,
    EmployeeDirectory,
    HoldLedgerService,
    SalaryProcessor,
    WithdrawalService,
)

ADMIN_ID = UUID("00000000-0000-0000-0000-00000000a0a0")


class FixedClock:
    """Clock that only moves when a test moves it."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingHandler:
    """Event handler that keeps every event it receives."""

    def __init__(self) -> None:
        self.events: list[DomainEvent] = []

    def __call__(self, event: DomainEvent) -> None:
        self.events.append(event)

    @property
    def event_types(self) -> list[str]:
        return [e.event_type for e in self.events]


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh file-backed SQLite database per test."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'payroll_hold.db'}")
    await create_schema(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(utc(2024, 4, 30, 12, 0))


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def emitter(recorder: RecordingHandler) -> EventEmitter:
    emitter = EventEmitter()
    emitter.on_all(recorder)
    return emitter


@pytest.fixture
def admin() -> CallerContext:
    return CallerContext.admin(ADMIN_ID)


@pytest.fixture
def ledger(session: AsyncSession, clock: FixedClock) -> HoldLedgerService:
    return HoldLedgerService(
        session,
        maturity_months=3,
        clock=clock,
        default_hold_percent=Decimal("10"),
    )


@pytest.fixture
def directory(session: AsyncSession) -> EmployeeDirectory:
    return EmployeeDirectory(session, default_hold_percent=Decimal("10"))


@pytest.fixture
def processor(session, directory, ledger, emitter, clock) -> SalaryProcessor:
    return SalaryProcessor(session, directory=directory, ledger=ledger, emitter=emitter, clock=clock)


@pytest.fixture
def withdrawals(session, ledger, emitter, clock) -> WithdrawalService:
    return WithdrawalService(session, ledger=ledger, emitter=emitter, clock=clock)


async def register(
    session: AsyncSession,
    *,
    code: str | None = None,
    basic_salary: str = "30000",
    allowances: dict[str, Decimal] | None = None,
    deductions: dict[str, Decimal] | None = None,
    hold_percent: str | None = "10",
) -> Employee:
    """Register an employee and commit."""
    directory = EmployeeDirectory(session, default_hold_percent=Decimal("10"))
    async with transaction(session):
        return await directory.register_employee(
            employee_code=code or f"EMP-{uuid4().hex[:8]}",
            name="Asha Rao",
            basic_salary=Decimal(basic_salary),
            allowances=allowances if allowances is not None else {"hra": Decimal("3000")},
            deductions=deductions if deductions is not None else {"pf": Decimal("1800")},
            hold_percent=Decimal(hold_percent) if hold_percent is not None else None,
        )


async def seed_accrual(
    ledger: HoldLedgerService,
    employee_id: UUID,
    amount: str,
    accrued_at: datetime,
    month: str | None = None,
) -> None:
    """Append a committed accrual entry."""
    async with transaction(ledger.session):
        await ledger.accrue(employee_id, Decimal(amount), accrued_at, month=month)


@pytest_asyncio.fixture
async def employee(session: AsyncSession) -> Employee:
    """Employee with basic 30000, hra 3000, pf 1800 and a 10% hold."""
    return await register(session)


@pytest.fixture
def employee_caller(employee: Employee) -> CallerContext:
    return CallerContext.for_employee(employee.employee_id)


@pytest_asyncio.fixture
async def funded_employee(employee: Employee, ledger: HoldLedgerService) -> Employee:
    """Employee with 5000 of matured hold as of the fixture clock."""
    await seed_accrual(ledger, employee.employee_id, "5000", utc(2024, 1, 15, 9, 0), "2024-01")
    return employee


@pytest_asyncio.fixture
async def client(session_factory, emitter, clock) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, sharing the test database."""
    app = create_app(session_factory=session_factory, emitter=emitter, clock=clock)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def admin_headers() -> dict[str, str]:
    return {"X-Employee-ID": str(ADMIN_ID), "X-Role": "admin"}


def employee_headers(employee_id: UUID) -> dict[str, str]:
    return {"X-Employee-ID": str(employee_id), "X-Role": "employee"}
