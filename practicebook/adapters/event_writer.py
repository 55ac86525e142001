"""Calendar event creation for finalized bookings."""

from __future__ import annotations
from typing import Protocol

from ..models import BookingRequest, TimeInterval


class EventWriter(Protocol):
    def create_booking_event(self, request: BookingRequest, interval: TimeInterval) -> str:
        """Create the calendar event for a booking and return its id."""
        ...


def event_summary(request: BookingRequest) -> str:
    return f"Session - {request.customer_name}"


def event_description(request: BookingRequest) -> str:
    return (
        f"Client: {request.customer_name}\n"
        f"Email: {request.customer_email}\n"
        f"Phone: {request.customer_phone}\n"
        f"Payment: {request.currency} {request.amount:g} ({request.transaction_id})"
    )


class GoogleEventWriter:
    def __init__(self, client, calendar_id: str):
        self.client = client
        self.calendar_id = calendar_id

    def create_booking_event(self, request: BookingRequest, interval: TimeInterval) -> str:
        return self.client.create_event(
            self.calendar_id,
            summary=event_summary(request),
            start=interval.start,
            end=interval.end,
            description=event_description(request),
        )
