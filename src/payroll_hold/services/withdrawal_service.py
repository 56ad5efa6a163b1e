"""Withdrawal workflow - request, approve and reject hold withdrawals.

Every state change runs in one transaction that first locks the
employee's hold account, so the balance check and the write that depends
on it cannot interleave with another request for the same employee.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_hold.database import transaction
from payroll_hold.errors import (
    ConcurrentModificationError,
    InsufficientHoldBalance,
    InvalidTransitionError,
    InvalidWithdrawalAmount,
    NotFound,
    StaleWithdrawalRequest,
)
from payroll_hold.events import (
    DomainEvent,
    EventEmitter,
    EventMetadata,
    WithdrawalApproved,
    WithdrawalRejected,
    WithdrawalRequested,
)
from payroll_hold.models import Employee, WithdrawalRequest
from payroll_hold.models.salary import PAYMENT_MODES
from payroll_hold.services.authorization import Access, CallerContext, assert_access
from payroll_hold.services.hold_ledger import CENTS, Clock, HoldAccountSnapshot, HoldLedgerService, utcnow
from payroll_hold.services.state_machine import WithdrawalStateMachine, WithdrawalStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WithdrawalRequestView:
    """A withdrawal request with the employee details admins review."""

    request: WithdrawalRequest
    employee_name: str
    employee_code: str


class WithdrawalService:
    """State machine driver for withdrawal requests.

    Operations:
    - snapshot: hold account view for the employee or an admin
    - request: employee asks to withdraw matured funds
    - approve: admin approves, debiting the ledger
    - reject: admin rejects, no ledger change
    - list_by_status: admin review queue
    """

    def __init__(
        self,
        session: AsyncSession,
        ledger: HoldLedgerService | None = None,
        emitter: EventEmitter | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.clock = clock or utcnow
        self.ledger = ledger or HoldLedgerService(session, clock=self.clock)
        self.emitter = emitter

    async def snapshot(
        self,
        caller: CallerContext,
        employee_id: UUID,
        as_of: date | datetime | None = None,
    ) -> HoldAccountSnapshot:
        """Hold account view, readable by the employee and by admins."""
        assert_access(caller, Access.SELF, employee_id, allow_admin=True)
        async with transaction(self.session):
            return await self.ledger.snapshot(employee_id, as_of or self.clock())

    async def request(
        self,
        caller: CallerContext,
        employee_id: UUID,
        amount: Decimal,
        notes: str | None = None,
    ) -> WithdrawalRequest:
        """Create a pending withdrawal request.

        Raises:
            InvalidWithdrawalAmount: amount is not a positive cent amount
            InsufficientHoldBalance: amount exceeds the withdrawable balance
            NotFound: unknown employee
        """
        assert_access(caller, Access.SELF, employee_id)
        amount = Decimal(str(amount))
        now = self.clock()

        async with transaction(self.session):
            account = await self.ledger.lock_account(employee_id)
            snapshot = await self.ledger.snapshot(employee_id, now)

            if amount <= 0 or amount != amount.quantize(CENTS):
                raise InvalidWithdrawalAmount(amount, snapshot.withdrawable)
            if amount > snapshot.withdrawable:
                logger.warning(
                    "Withdrawal of %s refused for employee %s: withdrawable %s",
                    amount,
                    employee_id,
                    snapshot.withdrawable,
                )
                raise InsufficientHoldBalance(amount, snapshot.withdrawable)

            request = WithdrawalRequest(
                employee_id=employee_id,
                amount=amount,
                status=WithdrawalStatus.PENDING.value,
                requested_at=now,
                notes=notes,
            )
            self.session.add(request)
            await self.session.flush()
            await self.ledger.bump_version(account)

        logger.info(
            "Withdrawal request %s for %s created by employee %s",
            request.withdrawal_request_id,
            amount,
            employee_id,
        )
        self._emit(
            WithdrawalRequested(
                metadata=self._metadata(caller),
                withdrawal_request_id=request.withdrawal_request_id,
                employee_id=employee_id,
                amount=amount,
                withdrawable_before=snapshot.withdrawable,
            )
        )
        return request

    async def approve(
        self,
        caller: CallerContext,
        request_id: UUID,
        payment_method: str,
        reference_number: str | None = None,
        notes: str | None = None,
    ) -> WithdrawalRequest:
        """Approve a pending request and record the withdrawal.

        The amount is re-validated against the balance at approval time,
        ignoring the request's own pending claim.

        Raises:
            NotFound: unknown request
            InvalidTransitionError: request is not pending
            StaleWithdrawalRequest: balance no longer covers the request;
                the request stays pending
        """
        assert_access(caller, Access.ADMIN)
        if payment_method not in PAYMENT_MODES:
            raise ValueError(f"Invalid payment method: {payment_method}")
        now = self.clock()

        async with transaction(self.session):
            request = await self._load_request(request_id)
            account = await self.ledger.lock_account(request.employee_id)
            request = await self._load_request(request_id)
            WithdrawalStateMachine.validate_transition(request.status, WithdrawalStatus.APPROVED.value)

            snapshot = await self.ledger.snapshot(
                request.employee_id, now, exclude_request_id=request_id
            )
            amount = Decimal(str(request.amount))
            if amount > snapshot.withdrawable:
                logger.warning(
                    "Withdrawal request %s is stale: amount %s, withdrawable %s",
                    request_id,
                    amount,
                    snapshot.withdrawable,
                )
                raise StaleWithdrawalRequest(
                    request_id,
                    f"amount {amount} exceeds withdrawable {snapshot.withdrawable}",
                )

            try:
                await self.ledger.record_withdrawal(account, amount)
            except ConcurrentModificationError as exc:
                raise StaleWithdrawalRequest(request_id, "hold balance changed concurrently") from exc

            await self._finish(
                request,
                WithdrawalStatus.APPROVED,
                decided_at=now,
                decided_by=caller.user_id,
                payment_method=payment_method,
                reference_number=reference_number,
                decision_reason=notes,
            )

        logger.info(
            "Withdrawal request %s approved (%s via %s)",
            request_id,
            amount,
            payment_method,
        )
        self._emit(
            WithdrawalApproved(
                metadata=self._metadata(caller),
                withdrawal_request_id=request_id,
                employee_id=request.employee_id,
                amount=amount,
                payment_method=payment_method,
                reference_number=reference_number,
            )
        )
        return request

    async def reject(
        self,
        caller: CallerContext,
        request_id: UUID,
        reason: str | None = None,
    ) -> WithdrawalRequest:
        """Reject a pending request. The ledger is not touched.

        Raises:
            NotFound: unknown request
            InvalidTransitionError: request is not pending (including a
                second rejection); its state is left unchanged
        """
        assert_access(caller, Access.ADMIN)
        now = self.clock()

        async with transaction(self.session):
            request = await self._load_request(request_id)
            account = await self.ledger.lock_account(request.employee_id)
            request = await self._load_request(request_id)
            WithdrawalStateMachine.validate_transition(request.status, WithdrawalStatus.REJECTED.value)

            await self._finish(
                request,
                WithdrawalStatus.REJECTED,
                decided_at=now,
                decided_by=caller.user_id,
                decision_reason=reason,
            )
            # Releasing a pending claim changes the withdrawable view
            await self.ledger.bump_version(account)

        logger.info("Withdrawal request %s rejected", request_id)
        self._emit(
            WithdrawalRejected(
                metadata=self._metadata(caller),
                withdrawal_request_id=request_id,
                employee_id=request.employee_id,
                amount=Decimal(str(request.amount)),
                reason=reason,
            )
        )
        return request

    async def list_by_status(
        self,
        caller: CallerContext,
        status: str | None = None,
    ) -> list[WithdrawalRequestView]:
        """List requests newest first, optionally filtered by status."""
        assert_access(caller, Access.ADMIN)
        if status is not None and status not in WithdrawalStateMachine.VALID_TRANSITIONS:
            raise ValueError(f"Invalid withdrawal status: {status}")

        query = select(WithdrawalRequest, Employee.name, Employee.employee_code).join(
            Employee, WithdrawalRequest.employee_id == Employee.employee_id
        )
        if status is not None:
            query = query.where(WithdrawalRequest.status == status)
        query = query.order_by(WithdrawalRequest.requested_at.desc()).execution_options(
            populate_existing=True
        )

        async with transaction(self.session):
            result = await self.session.execute(query)
            rows = result.all()

        return [
            WithdrawalRequestView(request=request, employee_name=name, employee_code=code)
            for request, name, code in rows
        ]

    async def get_request(self, caller: CallerContext, request_id: UUID) -> WithdrawalRequest:
        """Fetch one request; visible to its employee and to admins."""
        async with transaction(self.session):
            request = await self._load_request(request_id)
        assert_access(caller, Access.SELF, request.employee_id, allow_admin=True)
        return request

    async def _load_request(self, request_id: UUID) -> WithdrawalRequest:
        result = await self.session.execute(
            select(WithdrawalRequest)
            .where(WithdrawalRequest.withdrawal_request_id == request_id)
            .execution_options(populate_existing=True)
        )
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFound("Withdrawal request", request_id)
        return request

    async def _finish(
        self,
        request: WithdrawalRequest,
        to_status: WithdrawalStatus,
        **values: object,
    ) -> None:
        """Move a pending request to a terminal status with a conditional update."""
        result = await self.session.execute(
            update(WithdrawalRequest)
            .where(
                WithdrawalRequest.withdrawal_request_id == request.withdrawal_request_id,
                WithdrawalRequest.status == WithdrawalStatus.PENDING.value,
            )
            .values(status=to_status.value, **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await self.session.refresh(request)
            raise InvalidTransitionError(request.status, to_status.value, "status changed concurrently")

        await self.session.refresh(request)

    def _metadata(self, caller: CallerContext) -> EventMetadata:
        return EventMetadata.create(actor_id=caller.user_id, actor_type=caller.actor_type)

    def _emit(self, event: DomainEvent) -> None:
        if self.emitter is not None:
            self.emitter.emit(event)
