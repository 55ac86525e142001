"""Slot availability computed from the calendar's busy periods.

This module turns the raw busy periods reported by a BusyIntervalSource
into per-slot availability for one or more days. A slot is unavailable
iff some busy interval overlaps it (half-open test, touching endpoints
do not conflict). Corrupt busy data is dropped rather than trusted.
"""

from __future__ import annotations
import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Optional

from ..adapters.busy_source import BusyIntervalSource
from ..models import (
    AvailabilityResult,
    DaySlot,
    SlotTemplateEntry,
    TimeInterval,
    UpstreamUnavailable,
)
from .slots import DEFAULT_TEMPLATE, SlotTemplate, day_bounds

logger = logging.getLogger(__name__)


def _parse_instant(value: Any, tz: tzinfo) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    # Naive timestamps are read as practice-local time.
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def coerce_busy_intervals(raw: Iterable[Any], tz: tzinfo) -> List[TimeInterval]:
    """Convert upstream busy periods into TimeIntervals.

    Accepts TimeInterval objects or mappings with "start"/"end" keys
    (Google freebusy shape). Entries that are malformed or have
    start >= end are logged and skipped, so they never block a slot.
    """
    intervals: List[TimeInterval] = []
    for item in raw or []:
        if isinstance(item, TimeInterval):
            intervals.append(item)
            continue
        try:
            intervals.append(TimeInterval(_parse_instant(item["start"], tz), _parse_instant(item["end"], tz)))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed busy interval %r: %s", item, e)
    return intervals


def is_slot_free(slot: TimeInterval, busy: Iterable[TimeInterval]) -> bool:
    return not any(slot.overlaps(b) for b in busy)


def clamp_days(days: Optional[int], max_days: int) -> int:
    if days is None:
        return 1
    return max(1, min(int(days), max_days))


class AvailabilityCalculator:
    """Computes per-slot availability over a date window.

    Args:
        source: Where busy periods come from. None means the calendar is not
            configured and every slot is reported available (demo mode).
        tz: Fixed practice time zone used to build slot intervals.
        template: Daily slot template.
        max_days: Cap on the window length.
        past_slot_policy: "show" or "hide". With "hide", slots starting at
            or before now() are reported unavailable.
        now: Clock, injectable for tests.
    """

    def __init__(
        self,
        source: Optional[BusyIntervalSource],
        tz: tzinfo,
        template: SlotTemplate = DEFAULT_TEMPLATE,
        max_days: int = 60,
        past_slot_policy: str = "show",
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.source = source
        self.tz = tz
        self.template = template
        self.max_days = max_days
        self.past_slot_policy = past_slot_policy
        self._now = now or (lambda: datetime.now(tz))

    def _cutoff(self) -> Optional[datetime]:
        return self._now() if self.past_slot_policy == "hide" else None

    def day_slots(self, day: date, busy: Iterable[TimeInterval]) -> List[DaySlot]:
        """Pure availability for one day given already-coerced busy intervals."""
        busy = list(busy)
        cutoff = self._cutoff()

        slots = []
        for entry in self.template:
            interval = self.template.interval_for(day, entry, self.tz)
            available = is_slot_free(interval, busy)
            if cutoff is not None and interval.start <= cutoff:
                available = False
            slots.append(DaySlot(day, entry, interval, available))
        return slots

    def compute(self, start_date: date, days: int, busy: Iterable[TimeInterval]) -> Dict[str, List[DaySlot]]:
        busy = list(busy)
        return {
            (start_date + timedelta(days=offset)).isoformat(): self.day_slots(start_date + timedelta(days=offset), busy)
            for offset in range(days)
        }

    def get_availability(self, start_date: date, days: Optional[int] = 1) -> AvailabilityResult:
        """Fetch busy periods for the window and compute availability.

        Never raises for upstream problems: an unconfigured calendar yields
        demo=True, a failing one degraded=True, both with every slot open.
        """
        days = clamp_days(days, self.max_days)

        if self.source is None:
            logger.warning("📅 Calendar not configured, reporting all slots available for %s (+%d days)", start_date, days)
            return AvailabilityResult(start_date, days, self.compute(start_date, days, []), demo=True)

        window = day_bounds(start_date, days, self.tz)
        try:
            raw = self.source.fetch_busy(window.start, window.end)
        except UpstreamUnavailable as e:
            logger.error("📅 Busy lookup failed for %s (+%d days), falling back to all available: %s", start_date, days, e)
            return AvailabilityResult(start_date, days, self.compute(start_date, days, []), degraded=True)

        busy = coerce_busy_intervals(raw, self.tz)
        logger.info("📅 Found %d busy periods between %s and %s", len(busy), window.start, window.end)
        return AvailabilityResult(start_date, days, self.compute(start_date, days, busy))

    def check_slot(self, day: date, entry: SlotTemplateEntry) -> bool:
        """Re-query busy periods for exactly one slot.

        Raises:
            UpstreamUnavailable: If the source is missing or fails. Callers
                decide whether that fails open or closed.
        """
        if self.source is None:
            raise UpstreamUnavailable("Calendar is not configured")
        interval = self.template.interval_for(day, entry, self.tz)
        cutoff = self._cutoff()
        if cutoff is not None and interval.start <= cutoff:
            return False
        raw = self.source.fetch_busy(interval.start, interval.end)
        return is_slot_free(interval, coerce_busy_intervals(raw, self.tz))
