"""Tests for domain events and the event emitter."""

import json
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_hold.errors import InsufficientHoldBalance
from payroll_hold.events import (
    EventCategory,
    EventEmitter,
    EventMetadata,
    HoldAccrued,
    SalaryProcessed,
    WithdrawalApproved,
    WithdrawalRequested,
    log_event,
)
from payroll_hold.services import CallerContext


def make_accrued() -> HoldAccrued:
    return HoldAccrued(
        metadata=EventMetadata.create(actor_type="admin"),
        hold_accrual_entry_id=uuid4(),
        employee_id=uuid4(),
        amount=Decimal("2920.00"),
        matures_on=date(2024, 7, 30),
    )


def make_requested() -> WithdrawalRequested:
    return WithdrawalRequested(
        metadata=EventMetadata.create(actor_type="employee"),
        withdrawal_request_id=uuid4(),
        employee_id=uuid4(),
        amount=Decimal("1000.00"),
        withdrawable_before=Decimal("5000.00"),
    )


class TestDomainEvents:
    """Test event types and serialization."""

    def test_event_type_and_category(self):
        event = make_accrued()

        assert event.event_type == "HoldAccrued"
        assert event.category == EventCategory.HOLD
        assert make_requested().category == EventCategory.WITHDRAWAL

    def test_to_json_serializes_decimals_dates_and_uuids(self):
        event = make_accrued()
        data = json.loads(event.to_json())

        assert data["event_type"] == "HoldAccrued"
        assert data["amount"] == "2920.00"
        assert data["matures_on"] == "2024-07-30"
        assert data["employee_id"] == str(event.employee_id)
        assert data["metadata"]["actor_type"] == "admin"

    def test_metadata_correlation_id_propagates(self):
        first = EventMetadata.create()
        second = EventMetadata.create(correlation_id=first.correlation_id)

        assert second.correlation_id == first.correlation_id
        assert second.event_id != first.event_id


class TestEventEmitter:
    """Test handler routing and isolation."""

    def test_on_routes_by_type(self):
        emitter = EventEmitter()
        received = []
        emitter.on(HoldAccrued, received.append)

        emitter.emit(make_requested())
        emitter.emit(make_accrued())

        assert [e.event_type for e in received] == ["HoldAccrued"]

    def test_on_list_of_types(self):
        emitter = EventEmitter()
        received = []
        emitter.on([HoldAccrued, WithdrawalRequested], received.append)

        emitter.emit_all([make_requested(), make_accrued()])

        assert len(received) == 2

    def test_on_category(self):
        emitter = EventEmitter()
        received = []
        emitter.on_category(EventCategory.WITHDRAWAL, received.append)

        emitter.emit_all([make_accrued(), make_requested()])

        assert [e.event_type for e in received] == ["WithdrawalRequested"]

    def test_failing_handler_is_isolated(self, caplog):
        emitter = EventEmitter()
        received = []

        def broken(event):
            raise RuntimeError("notification service down")

        emitter.on_all(broken)
        emitter.on_all(received.append)

        errors = emitter.emit(make_accrued())

        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)
        assert len(received) == 1
        assert "failed for event HoldAccrued" in caplog.text

    def test_off_removes_handler(self):
        emitter = EventEmitter()
        received = []

        def handler(event):
            received.append(event)

        emitter.on_all(handler)
        emitter.off(handler)

        emitter.emit(make_accrued())

        assert received == []

    def test_log_event_handler(self, caplog):
        caplog.set_level("INFO", logger="payroll_hold.events.emitter")

        log_event(make_accrued())

        assert "event HoldAccrued" in caplog.text


class TestServiceEvents:
    """Test that services publish events only after a successful commit."""

    async def test_process_emits_salary_and_accrual_events(
        self, processor, admin, employee, recorder
    ):
        await processor.process(admin, employee.employee_id, "2024-04", "bank_transfer")

        assert recorder.event_types == ["SalaryProcessed", "HoldAccrued"]
        processed, accrued = recorder.events
        assert isinstance(processed, SalaryProcessed)
        assert processed.payment_mode == "bank_transfer"
        assert processed.metadata.actor_id == admin.user_id
        assert accrued.metadata.correlation_id == processed.metadata.correlation_id

    async def test_failed_request_emits_nothing(
        self, withdrawals, employee, employee_caller, recorder
    ):
        with pytest.raises(InsufficientHoldBalance):
            await withdrawals.request(employee_caller, employee.employee_id, Decimal("10"))

        assert recorder.events == []

    async def test_approval_event(self, withdrawals, admin, funded_employee, recorder):
        employee_id = funded_employee.employee_id
        request = await withdrawals.request(
            CallerContext.for_employee(employee_id), employee_id, Decimal("1000")
        )
        await withdrawals.approve(
            admin, request.withdrawal_request_id, "cash", reference_number="RCPT-7"
        )

        assert recorder.event_types == ["WithdrawalRequested", "WithdrawalApproved"]
        approved = recorder.events[-1]
        assert isinstance(approved, WithdrawalApproved)
        assert approved.reference_number == "RCPT-7"
        assert approved.amount == Decimal("1000")
