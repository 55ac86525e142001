"""Tests for the pre-payment slot re-check."""

from datetime import datetime

import pytest

from practicebook.adapters.busy_source import StaticBusySource
from practicebook.models import UnknownSlotError
from practicebook.tools.availability import AvailabilityCalculator
from practicebook.tools.conflict_guard import SlotConflictGuard

from conftest import DAY, IST, busy


def _guard(source) -> SlotConflictGuard:
    return SlotConflictGuard(AvailabilityCalculator(source, IST))


def test_free_slot_is_available():
    check = _guard(StaticBusySource([busy("09:00", "10:00")])).check(DAY, "10:00 AM")

    assert check.available is True
    assert check.fallback is False
    assert check.slot == "10:00 AM"


def test_slot_taken_since_listing_is_unavailable():
    # Customer must go back to slot selection; no charge for this request.
    check = _guard(StaticBusySource([busy("10:00", "11:00")])).check(DAY, "10:00 AM")

    assert check.available is False
    assert check.fallback is False


def test_queries_exactly_the_slot_interval():
    source = StaticBusySource()
    _guard(source).check(DAY, "04:00 PM")

    assert source.calls == [(datetime(2026, 10, 20, 16, tzinfo=IST), datetime(2026, 10, 20, 17, tzinfo=IST))]


def test_upstream_failure_fails_open():
    check = _guard(StaticBusySource(error="connection reset")).check(DAY, "10:00 AM")

    assert check.available is True
    assert check.fallback is True


def test_demo_mode_is_available():
    check = _guard(None).check(DAY, "10:00 AM")

    assert check.available is True
    assert check.demo is True


def test_label_is_normalised():
    check = _guard(StaticBusySource()).check(DAY, "4:00 pm")
    assert check.slot == "04:00 PM"


def test_unknown_slot_raises():
    with pytest.raises(UnknownSlotError):
        _guard(StaticBusySource()).check(DAY, "08:00 PM")
