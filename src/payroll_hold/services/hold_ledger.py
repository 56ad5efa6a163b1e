"""Hold ledger - append-only accrual log and withdrawable balance.

Provides:
- Idempotency-guarded accrual (one entry per employee per payment)
- Calendar-month maturity aging
- Point-in-time snapshots of accrued, matured, pending and withdrawn amounts
- A per-employee account row that serialises every balance-affecting write
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_hold.calculators.periods import add_months
from payroll_hold.config import get_settings
from payroll_hold.errors import ConcurrentModificationError, DuplicateAccrual, NotFound
from payroll_hold.models import Employee, HoldAccount, HoldAccrualEntry, WithdrawalRequest
from payroll_hold.services.state_machine import WithdrawalStatus

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _money(value: object) -> Decimal:
    return Decimal(str(value if value is not None else 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


def _as_date(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True)
class HoldAccountSnapshot:
    """Derived view of an employee's hold account at a point in time.

    hold_balance = total_accrued - lifetime_withdrawn
    withdrawable = matured - lifetime_withdrawn - pending_amount
    """

    employee_id: UUID
    as_of: date
    hold_percent: Decimal
    total_accrued: Decimal
    matured: Decimal
    lifetime_withdrawn: Decimal
    pending_amount: Decimal
    hold_balance: Decimal
    withdrawable: Decimal
    next_maturity_date: date | None
    version: int


class HoldLedgerService:
    """Append-only hold accrual ledger.

    Notes:
    - hold_accrual_entry rows are never updated or deleted.
    - Unique (employee_id, accrued_at) and (employee_id, month) guard
      against double-accruing a payment.
    - Writers lock the employee's hold_account row first and bump its
      version with a conditional update.
    """

    def __init__(
        self,
        session: AsyncSession,
        maturity_months: int | None = None,
        clock: Clock | None = None,
        default_hold_percent: Decimal | None = None,
    ):
        self.session = session
        settings = get_settings()
        if maturity_months is None:
            maturity_months = settings.hold_maturity_months
        if default_hold_percent is None:
            default_hold_percent = settings.default_hold_percent
        self.maturity_months = maturity_months
        self.default_hold_percent = default_hold_percent
        self.clock = clock or utcnow

    def maturity_date(self, accrued_at: date | datetime) -> date:
        """Date on which an accrual becomes withdrawable."""
        return add_months(_as_date(accrued_at), self.maturity_months)

    async def lock_account(self, employee_id: UUID) -> HoldAccount:
        """Get or create the employee's hold account and lock it for update.

        Must be called inside the transaction that performs the write.
        """
        await self._ensure_employee(employee_id)
        await self._create_account_if_missing(employee_id)

        result = await self.session.execute(
            select(HoldAccount)
            .where(HoldAccount.employee_id == employee_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def accrue(
        self,
        employee_id: UUID,
        amount: Decimal,
        accrued_at: datetime,
        *,
        month: str | None = None,
        salary_record_id: UUID | None = None,
    ) -> HoldAccrualEntry:
        """Append an accrual entry maturing `maturity_months` after accrued_at.

        Raises:
            DuplicateAccrual: an entry exists for the same accrued_at or month
            ValueError: negative amount
        """
        if amount < 0:
            raise ValueError("Accrual amount must not be negative")

        account = await self.lock_account(employee_id)

        duplicate = await self._find_duplicate(employee_id, accrued_at, month)
        if duplicate is not None:
            error = DuplicateAccrual(employee_id, duplicate)
            logger.error("Consistency guard tripped: %s", error)
            raise error

        entry = HoldAccrualEntry(
            employee_id=employee_id,
            salary_record_id=salary_record_id,
            month=month,
            amount=_money(amount),
            accrued_at=accrued_at,
            matures_on=self.maturity_date(accrued_at),
        )
        self.session.add(entry)
        await self.session.flush()
        await self.bump_version(account)

        logger.info(
            "Accrued hold %s for employee %s (matures %s)",
            entry.amount,
            employee_id,
            entry.matures_on,
        )
        return entry

    async def snapshot(
        self,
        employee_id: UUID,
        as_of: date | datetime | None = None,
        *,
        exclude_request_id: UUID | None = None,
    ) -> HoldAccountSnapshot:
        """Compute the hold account view as of a date.

        An accrual counts as matured when matures_on <= as_of. Pending
        requests are subtracted, optionally excluding one request (used
        when re-validating that request for approval).
        """
        as_of_date = _as_date(as_of if as_of is not None else self.clock())
        employee = await self._ensure_employee(employee_id)

        # Shared lock keeps the accrual log and pending set consistent
        # with each other while concurrent writers wait.
        account_result = await self.session.execute(
            select(HoldAccount)
            .where(HoldAccount.employee_id == employee_id)
            .with_for_update(read=True)
            .execution_options(populate_existing=True)
        )
        account = account_result.scalar_one_or_none()
        lifetime_withdrawn = _money(account.lifetime_withdrawn) if account else ZERO
        version = account.version if account else 0

        total_accrued = _money(
            await self.session.scalar(
                select(func.coalesce(func.sum(HoldAccrualEntry.amount), 0)).where(
                    HoldAccrualEntry.employee_id == employee_id
                )
            )
        )
        matured = _money(
            await self.session.scalar(
                select(func.coalesce(func.sum(HoldAccrualEntry.amount), 0)).where(
                    HoldAccrualEntry.employee_id == employee_id,
                    HoldAccrualEntry.matures_on <= as_of_date,
                )
            )
        )
        next_maturity = await self.session.scalar(
            select(func.min(HoldAccrualEntry.matures_on)).where(
                HoldAccrualEntry.employee_id == employee_id,
                HoldAccrualEntry.matures_on > as_of_date,
            )
        )

        pending_query = select(func.coalesce(func.sum(WithdrawalRequest.amount), 0)).where(
            WithdrawalRequest.employee_id == employee_id,
            WithdrawalRequest.status == WithdrawalStatus.PENDING.value,
        )
        if exclude_request_id is not None:
            pending_query = pending_query.where(
                WithdrawalRequest.withdrawal_request_id != exclude_request_id
            )
        pending_amount = _money(await self.session.scalar(pending_query))

        raw_withdrawable = matured - lifetime_withdrawn - pending_amount
        withdrawable = raw_withdrawable
        if raw_withdrawable < 0:
            logger.warning(
                "Negative withdrawable %s for employee %s (matured=%s withdrawn=%s pending=%s)",
                raw_withdrawable,
                employee_id,
                matured,
                lifetime_withdrawn,
                pending_amount,
            )
            withdrawable = ZERO

        return HoldAccountSnapshot(
            employee_id=employee_id,
            as_of=as_of_date,
            hold_percent=(
                Decimal(str(employee.hold_percent))
                if employee.hold_percent is not None
                else self.default_hold_percent
            ),
            total_accrued=total_accrued,
            matured=matured,
            lifetime_withdrawn=lifetime_withdrawn,
            pending_amount=pending_amount,
            hold_balance=total_accrued - lifetime_withdrawn,
            withdrawable=withdrawable,
            next_maturity_date=_as_date(next_maturity) if next_maturity else None,
            version=version,
        )

    async def record_withdrawal(self, account: HoldAccount, amount: Decimal) -> HoldAccount:
        """Add an approved withdrawal to the lifetime withdrawn total.

        Only the withdrawal workflow calls this, with the account it has
        already locked in the current transaction.
        """
        if amount <= 0:
            raise ValueError("Withdrawal amount must be positive")

        return await self.bump_version(
            account,
            lifetime_withdrawn=_money(account.lifetime_withdrawn) + _money(amount),
        )

    async def bump_version(self, account: HoldAccount, **values: object) -> HoldAccount:
        """Conditionally advance the account version, applying `values`.

        Raises:
            ConcurrentModificationError: the row moved since it was read
        """
        expected = account.version
        result = await self.session.execute(
            update(HoldAccount)
            .where(
                HoldAccount.employee_id == account.employee_id,
                HoldAccount.version == expected,
            )
            .values(version=expected + 1, updated_at=func.now(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise ConcurrentModificationError(account.employee_id, expected)

        await self.session.refresh(account)
        return account

    async def list_entries(self, employee_id: UUID) -> list[HoldAccrualEntry]:
        """Accrual entries for an employee, oldest first."""
        result = await self.session.execute(
            select(HoldAccrualEntry)
            .where(HoldAccrualEntry.employee_id == employee_id)
            .order_by(HoldAccrualEntry.accrued_at)
        )
        return list(result.scalars().all())

    async def _ensure_employee(self, employee_id: UUID) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFound("Employee", employee_id)
        return employee

    async def _create_account_if_missing(self, employee_id: UUID) -> None:
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        elif dialect == "sqlite":
            from sqlalchemy.dialects.sqlite import insert
        else:
            if await self.session.get(HoldAccount, employee_id) is None:
                self.session.add(HoldAccount(employee_id=employee_id))
                await self.session.flush()
            return

        await self.session.execute(
            insert(HoldAccount)
            .values(employee_id=employee_id, lifetime_withdrawn=ZERO, version=0)
            .on_conflict_do_nothing(index_elements=["employee_id"])
        )

    async def _find_duplicate(
        self,
        employee_id: UUID,
        accrued_at: datetime,
        month: str | None,
    ) -> str | None:
        result = await self.session.execute(
            select(HoldAccrualEntry.hold_accrual_entry_id).where(
                HoldAccrualEntry.employee_id == employee_id,
                HoldAccrualEntry.accrued_at == accrued_at,
            )
        )
        if result.first() is not None:
            return f"accrued_at={accrued_at.isoformat()}"

        if month is not None:
            result = await self.session.execute(
                select(HoldAccrualEntry.hold_accrual_entry_id).where(
                    HoldAccrualEntry.employee_id == employee_id,
                    HoldAccrualEntry.month == month,
                )
            )
            if result.first() is not None:
                return f"month={month}"

        return None
