"""Domain event types for salary and hold operations.

All events are immutable frozen dataclasses carrying metadata for
traceability. They are emitted only after the transaction that produced
them has committed.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid4


class EventCategory(str, Enum):
    """Event categories for routing and filtering."""

    SALARY = "salary"
    HOLD = "hold"
    WITHDRAWAL = "withdrawal"


@dataclass(frozen=True)
class EventMetadata:
    """Metadata attached to every domain event."""

    event_id: UUID
    timestamp: datetime
    correlation_id: UUID
    actor_id: UUID | None
    actor_type: str  # 'employee', 'admin', 'system'
    source_service: str
    version: int = 1

    @classmethod
    def create(
        cls,
        actor_id: UUID | None = None,
        actor_type: str = "system",
        source_service: str = "payroll_hold",
        correlation_id: UUID | None = None,
    ) -> EventMetadata:
        """Create metadata with auto-generated fields."""
        return cls(
            event_id=uuid4(),
            timestamp=datetime.now(timezone.utc),
            correlation_id=correlation_id or uuid4(),
            actor_id=actor_id,
            actor_type=actor_type,
            source_service=source_service,
        )


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    metadata: EventMetadata

    @property
    def event_type(self) -> str:
        """Event type name for routing."""
        return self.__class__.__name__

    @property
    def category(self) -> EventCategory:
        """Event category for filtering."""
        raise NotImplementedError("Subclasses must define category")

    def to_dict(self) -> dict[str, Any]:
        """Serialize event to dictionary."""
        data = _serialize_dict(asdict(self))
        data["event_type"] = self.event_type
        return data

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps(self.to_dict(), default=str)


def _serialize_dict(obj: Any) -> Any:
    """Recursively serialize objects for JSON compatibility."""
    if isinstance(obj, dict):
        return {k: _serialize_dict(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_serialize_dict(v) for v in obj]
    elif isinstance(obj, UUID):
        return str(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Decimal):
        return str(obj)
    elif isinstance(obj, Enum):
        return obj.value
    return obj


@dataclass(frozen=True)
class SalaryProcessed(DomainEvent):
    """A month's salary was paid to an employee."""

    salary_record_id: UUID
    employee_id: UUID
    month: str
    gross_salary: Decimal
    payable_net: Decimal
    hold_amount: Decimal
    payment_mode: str

    @property
    def category(self) -> EventCategory:
        return EventCategory.SALARY


@dataclass(frozen=True)
class HoldAccrued(DomainEvent):
    """A hold amount was appended to an employee's accrual log."""

    hold_accrual_entry_id: UUID
    employee_id: UUID
    amount: Decimal
    matures_on: date

    @property
    def category(self) -> EventCategory:
        return EventCategory.HOLD


@dataclass(frozen=True)
class WithdrawalRequested(DomainEvent):
    """An employee asked to withdraw matured hold funds."""

    withdrawal_request_id: UUID
    employee_id: UUID
    amount: Decimal
    withdrawable_before: Decimal

    @property
    def category(self) -> EventCategory:
        return EventCategory.WITHDRAWAL


@dataclass(frozen=True)
class WithdrawalApproved(DomainEvent):
    """A withdrawal request was approved and the ledger debited."""

    withdrawal_request_id: UUID
    employee_id: UUID
    amount: Decimal
    payment_method: str
    reference_number: str | None

    @property
    def category(self) -> EventCategory:
        return EventCategory.WITHDRAWAL


@dataclass(frozen=True)
class WithdrawalRejected(DomainEvent):
    """A withdrawal request was rejected."""

    withdrawal_request_id: UUID
    employee_id: UUID
    amount: Decimal
    reason: str | None

    @property
    def category(self) -> EventCategory:
        return EventCategory.WITHDRAWAL
