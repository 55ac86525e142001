"""Fixed daily slot template and slot time helpers.

The practice offers eleven one-hour slots per day, 09:00 AM through
07:00 PM, in a fixed UTC offset. Labels are 12-hour clock strings and
are the identifiers clients send back when checking or booking a slot.
"""

from __future__ import annotations
import re
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, List, Optional, Tuple

from ..models import InvalidDateError, SlotTemplateEntry, TimeInterval, UnknownSlotError

SLOT_DURATION = timedelta(minutes=60)

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_LABEL_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")


def format_slot_label(hour: int, minute: int = 0) -> str:
    """Format a 24-hour time as a template label, e.g. 13:00 -> "01:00 PM"."""
    period = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    return f"{display_hour:02d}:{minute:02d} {period}"


def parse_slot_label(label: str) -> Tuple[int, int]:
    """Parse a 12-hour label into (hour, minute) on the 24-hour clock.

    12 AM maps to hour 0 and 12 PM stays hour 12.

    Raises:
        UnknownSlotError: If the label is not of the form "HH:MM AM|PM".
    """
    match = _LABEL_RE.match(label or "")
    if not match:
        raise UnknownSlotError(f"Invalid slot label: {label!r}. Use e.g. '09:00 AM'")

    hours, minutes, period = int(match.group(1)), int(match.group(2)), match.group(3).upper()
    if not 1 <= hours <= 12 or not 0 <= minutes <= 59:
        raise UnknownSlotError(f"Invalid slot label: {label!r}")

    if period == "PM" and hours != 12:
        hours += 12
    if period == "AM" and hours == 12:
        hours = 0
    return hours, minutes


def parse_date(value: str) -> date:
    """Parse a strict YYYY-MM-DD string.

    Raises:
        InvalidDateError: On bad format or a non-existent date (e.g. 2026-02-30).
    """
    value = (value or "").strip()
    if not _DATE_RE.match(value):
        raise InvalidDateError("Invalid date format. Use YYYY-MM-DD")
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidDateError(f"Invalid date: {value}") from e


class SlotTemplate:
    """Ordered, immutable list of daily slot start times."""

    def __init__(self, entries: Iterable[SlotTemplateEntry], duration: timedelta = SLOT_DURATION):
        self.entries: Tuple[SlotTemplateEntry, ...] = tuple(entries)
        self.duration = duration
        self._by_time = {(e.hour_of_day, e.minute_of_day): e for e in self.entries}

    @classmethod
    def hourly(cls, first_hour: int = 9, last_hour: int = 19) -> SlotTemplate:
        return cls(
            SlotTemplateEntry(format_slot_label(h), h, 0)
            for h in range(first_hour, last_hour + 1)
        )

    def __iter__(self):
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def labels(self) -> List[str]:
        return [e.display_label for e in self.entries]

    def find(self, label: str) -> Optional[SlotTemplateEntry]:
        try:
            return self._by_time.get(parse_slot_label(label))
        except UnknownSlotError:
            return None

    def resolve(self, label: str) -> SlotTemplateEntry:
        """Map a client label onto its template entry.

        Raises:
            UnknownSlotError: If the label is malformed or not offered.
        """
        entry = self._by_time.get(parse_slot_label(label))
        if entry is None:
            raise UnknownSlotError(f"Slot {label!r} is not offered")
        return entry

    def interval_for(self, day: date, entry: SlotTemplateEntry, tz: tzinfo) -> TimeInterval:
        start = datetime(day.year, day.month, day.day, entry.hour_of_day, entry.minute_of_day, tzinfo=tz)
        return TimeInterval(start, start + self.duration)


def day_bounds(start_day: date, days: int, tz: tzinfo) -> TimeInterval:
    """Local midnight of start_day up to local midnight `days` later."""
    start = datetime(start_day.year, start_day.month, start_day.day, tzinfo=tz)
    return TimeInterval(start, start + timedelta(days=days))


DEFAULT_TEMPLATE = SlotTemplate.hourly()
