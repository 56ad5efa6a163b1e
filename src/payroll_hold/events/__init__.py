"""Domain events."""

from payroll_hold.events.emitter import EventEmitter, log_event
from payroll_hold.events.types import (
    DomainEvent,
    EventCategory,
    EventMetadata,
    HoldAccrued,
    SalaryProcessed,
    WithdrawalApproved,
    WithdrawalRejected,
    WithdrawalRequested,
)

__all__ = [
    "EventEmitter",
    "log_event",
    "DomainEvent",
    "EventCategory",
    "EventMetadata",
    "HoldAccrued",
    "SalaryProcessed",
    "WithdrawalApproved",
    "WithdrawalRejected",
    "WithdrawalRequested",
]
