"""Salary processor - main orchestrator for monthly salary runs.

process() persists the paid salary record and the hold accrual in one
transaction: either both exist afterwards or neither does.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_hold.calculators import SalaryBreakdown, SalaryCalculator, parse_month
from payroll_hold.database import transaction
from payroll_hold.errors import AlreadyProcessed
from payroll_hold.events import EventEmitter, EventMetadata, HoldAccrued, SalaryProcessed
from payroll_hold.models import HoldAccrualEntry, SalaryRecord
from payroll_hold.models.salary import PAYMENT_MODES
from payroll_hold.services.authorization import Access, CallerContext, assert_access
from payroll_hold.services.directory import EmployeeDirectory
from payroll_hold.services.hold_ledger import Clock, HoldLedgerService, utcnow
from payroll_hold.services.state_machine import SalaryRecordStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of processing one employee's month."""

    record: SalaryRecord
    accrual: HoldAccrualEntry
    breakdown: SalaryBreakdown


class SalaryProcessor:
    """Service for previewing and processing monthly salaries.

    Operations:
    - preview: calculate only, nothing is written
    - process: persist a paid salary record and accrue its hold
    - history: processed salary records for an employee
    """

    def __init__(
        self,
        session: AsyncSession,
        directory: EmployeeDirectory | None = None,
        ledger: HoldLedgerService | None = None,
        emitter: EventEmitter | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.clock = clock or utcnow
        self.directory = directory or EmployeeDirectory(session)
        self.ledger = ledger or HoldLedgerService(session, clock=self.clock)
        self.emitter = emitter

    async def preview(
        self,
        caller: CallerContext,
        employee_id: UUID,
        month: str,
    ) -> SalaryBreakdown:
        """Calculate what the month would look like without persisting it."""
        assert_access(caller, Access.SELF, employee_id, allow_admin=True)
        parse_month(month)

        async with transaction(self.session):
            structure = await self.directory.get_salary_structure(employee_id)
            attendance = await self.directory.get_attendance_summary(employee_id, month)

        return SalaryCalculator.calculate(structure, month, attendance)

    async def process(
        self,
        caller: CallerContext,
        employee_id: UUID,
        month: str,
        payment_mode: str,
        notes: str | None = None,
    ) -> ProcessResult:
        """Pay a month's salary and accrue its hold.

        Raises:
            AlreadyProcessed: a record exists for (employee_id, month)
            InvalidSalaryComputation: deductions exceed gross salary
            NotFound: unknown employee
        """
        assert_access(caller, Access.ADMIN)
        parse_month(month)
        if payment_mode not in PAYMENT_MODES:
            raise ValueError(f"Invalid payment mode: {payment_mode}")

        try:
            async with transaction(self.session):
                # Serialises with withdrawals and other runs for this employee
                await self.ledger.lock_account(employee_id)

                if await self._find_record(employee_id, month) is not None:
                    logger.warning(
                        "Salary for employee %s already processed for %s", employee_id, month
                    )
                    raise AlreadyProcessed(employee_id, month)

                structure = await self.directory.get_salary_structure(employee_id)
                attendance = await self.directory.get_attendance_summary(employee_id, month)
                breakdown = SalaryCalculator.calculate(structure, month, attendance)

                payment_date = self.clock()
                record = SalaryRecord(
                    employee_id=employee_id,
                    month=month,
                    basic_salary=breakdown.basic_salary,
                    gross_salary=breakdown.gross_salary,
                    fixed_deductions=breakdown.fixed_deductions,
                    leave_deductions=breakdown.leave_deductions,
                    hold_percent=breakdown.hold_percent,
                    hold_amount=breakdown.hold_amount,
                    payable_net=breakdown.payable_net,
                    status=SalaryRecordStatus.PAID.value,
                    payment_date=payment_date,
                    payment_mode=payment_mode,
                    notes=notes,
                )
                self.session.add(record)
                await self.session.flush()

                accrual = await self.ledger.accrue(
                    employee_id,
                    breakdown.hold_amount,
                    payment_date,
                    month=month,
                    salary_record_id=record.salary_record_id,
                )
        except IntegrityError:
            # A concurrent run committed the same month first
            async with transaction(self.session):
                existing = await self._find_record(employee_id, month)
            if existing is not None:
                raise AlreadyProcessed(employee_id, month) from None
            raise

        logger.info(
            "Processed salary for employee %s %s: net %s, hold %s",
            employee_id,
            month,
            breakdown.payable_net,
            breakdown.hold_amount,
        )
        if self.emitter is not None:
            metadata = EventMetadata.create(actor_id=caller.user_id, actor_type=caller.actor_type)
            self.emitter.emit_all(
                [
                    SalaryProcessed(
                        metadata=metadata,
                        salary_record_id=record.salary_record_id,
                        employee_id=employee_id,
                        month=month,
                        gross_salary=breakdown.gross_salary,
                        payable_net=breakdown.payable_net,
                        hold_amount=breakdown.hold_amount,
                        payment_mode=payment_mode,
                    ),
                    HoldAccrued(
                        metadata=EventMetadata.create(
                            actor_id=caller.user_id,
                            actor_type=caller.actor_type,
                            correlation_id=metadata.correlation_id,
                        ),
                        hold_accrual_entry_id=accrual.hold_accrual_entry_id,
                        employee_id=employee_id,
                        amount=accrual.amount,
                        matures_on=accrual.matures_on,
                    ),
                ]
            )

        return ProcessResult(record=record, accrual=accrual, breakdown=breakdown)

    async def history(self, caller: CallerContext, employee_id: UUID) -> list[SalaryRecord]:
        """Processed salary records, most recent payment first."""
        assert_access(caller, Access.SELF, employee_id, allow_admin=True)

        async with transaction(self.session):
            await self.directory.get_employee(employee_id)
            result = await self.session.execute(
                select(SalaryRecord)
                .where(SalaryRecord.employee_id == employee_id)
                .order_by(SalaryRecord.payment_date.desc(), SalaryRecord.month.desc())
            )
            return list(result.scalars().all())

    async def _find_record(self, employee_id: UUID, month: str) -> SalaryRecord | None:
        result = await self.session.execute(
            select(SalaryRecord).where(
                SalaryRecord.employee_id == employee_id,
                SalaryRecord.month == month,
            )
        )
        return result.scalar_one_or_none()
