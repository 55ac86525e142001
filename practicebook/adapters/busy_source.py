"""Busy-period sources for availability checks.

A BusyIntervalSource answers one question: which periods of the
practitioner's calendar are taken between two instants. The Google-backed
source is used in production; the static source serves tests and local
runs without credentials.
"""

from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..models import UpstreamUnavailable


class BusyIntervalSource(Protocol):
    def fetch_busy(self, time_min: datetime, time_max: datetime) -> List[Any]:
        """Return busy periods overlapping [time_min, time_max).

        Items are {"start": ISO8601, "end": ISO8601} mappings or TimeIntervals.

        Raises:
            UpstreamUnavailable: If the calendar cannot be queried.
        """
        ...


class GoogleBusySource:
    """Busy periods from the Google Calendar freebusy endpoint."""

    def __init__(self, client, calendar_id: str):
        self.client = client
        self.calendar_id = calendar_id

    def fetch_busy(self, time_min: datetime, time_max: datetime) -> List[Dict[str, str]]:
        return self.client.query_busy(self.calendar_id, time_min, time_max)


class StaticBusySource:
    """In-memory busy list, e.g. BUSY = [{"start": ..., "end": ...}].

    Args:
        busy: Busy periods returned for every query.
        error: If set, every query raises UpstreamUnavailable with this message.
    """

    def __init__(self, busy: Optional[Sequence[Any]] = None, error: Optional[str] = None):
        self.busy = list(busy or [])
        self.error = error
        self.calls: List[tuple] = []

    def fetch_busy(self, time_min: datetime, time_max: datetime) -> List[Any]:
        self.calls.append((time_min, time_max))
        if self.error:
            raise UpstreamUnavailable(self.error)
        return list(self.busy)
