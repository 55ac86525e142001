from __future__ import annotations

from datetime import date, timedelta, timezone
from unittest.mock import Mock

import pytest

from practicebook.adapters.booking_store import BookingStore
from practicebook.models import BookingRequest, UpstreamUnavailable

IST = timezone(timedelta(hours=5, minutes=30), "Asia/Kolkata")
DAY = date(2026, 10, 20)


def busy(start: str, end: str, day: date = DAY) -> dict:
    """Google-style busy period in practice-local time, e.g. busy("10:00", "11:00")."""
    return {"start": f"{day.isoformat()}T{start}:00+05:30", "end": f"{day.isoformat()}T{end}:00+05:30"}


class FakeEventWriter:
    def __init__(self, event_id: str = "evt_123", error: Exception | None = None):
        self.event_id = event_id
        self.error = error
        self.calls = []

    def create_booking_event(self, request, interval):
        self.calls.append((request, interval))
        if self.error:
            raise self.error
        return self.event_id


@pytest.fixture
def booking_request() -> BookingRequest:
    return BookingRequest(
        customer_name="Asha Rao",
        customer_email="asha@example.com",
        customer_phone="+91 98765 43210",
        date=DAY,
        slot_label="10:00 AM",
        currency="INR",
        amount=1500,
        transaction_id="tx_Razorpay_1760000000",
    )


@pytest.fixture
def store():
    s = BookingStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def notifier():
    return Mock()


@pytest.fixture
def writer():
    return FakeEventWriter()


@pytest.fixture
def failing_writer():
    return FakeEventWriter(error=UpstreamUnavailable("Google Calendar event insert failed: 503"))
