"""Core value types and error taxonomy for slot availability and booking.

Everything here is plain data: intervals are half-open [start, end) and
always carry timezone-aware datetimes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional


@dataclass(frozen=True)
class TimeInterval:
    """Half-open interval [start, end) between two aware instants."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("TimeInterval requires timezone-aware datetimes")
        if not self.start < self.end:
            raise ValueError(f"TimeInterval start must precede end: {self.start} >= {self.end}")

    def overlaps(self, other: TimeInterval) -> bool:
        # Touching endpoints do not count as a conflict.
        return other.start < self.end and other.end > self.start


@dataclass(frozen=True)
class SlotTemplateEntry:
    display_label: str  # e.g. "09:00 AM"
    hour_of_day: int
    minute_of_day: int = 0


@dataclass(frozen=True)
class DaySlot:
    date: date
    template: SlotTemplateEntry
    interval: TimeInterval
    available: bool

    def to_dict(self) -> Dict[str, object]:
        return {"time": self.template.display_label, "available": self.available}


@dataclass(frozen=True)
class BookingRequest:
    """A paid booking waiting to be finalized."""

    customer_name: str
    customer_email: str
    customer_phone: str
    date: date
    slot_label: str
    currency: str
    amount: float
    transaction_id: str


@dataclass(frozen=True)
class StageError:
    stage: str  # "availability" | "calendar" | "persistence" | "notification"
    message: str


@dataclass
class BookingOutcome:
    """Result of one booking reconciliation.

    Built up stage by stage; `success` only reflects whether the customer
    was notified, `conflict` marks a slot taken after payment.
    """

    transaction_id: str
    calendar_event_id: Optional[str] = None
    persisted_record_id: Optional[str] = None
    notification_sent: bool = False
    conflict: bool = False
    errors: List[StageError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.notification_sent and not self.conflict


@dataclass
class AvailabilityResult:
    start_date: date
    days: int
    availability: Dict[str, List[DaySlot]]
    demo: bool = False
    degraded: bool = False


@dataclass(frozen=True)
class SlotCheck:
    date: date
    slot: str
    available: bool
    fallback: bool = False
    demo: bool = False


class UpstreamUnavailable(RuntimeError):
    """The external calendar could not be reached or is not configured."""


class InvalidDateError(ValueError):
    """Date is not a valid YYYY-MM-DD calendar date."""


class UnknownSlotError(ValueError):
    """Slot label does not name an entry of the slot template."""


class NotificationError(RuntimeError):
    """Confirmation email could not be sent."""


class PersistenceError(RuntimeError):
    """Booking record could not be written."""
