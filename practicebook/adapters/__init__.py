"""
Adapters package: busy-period sources, calendar event writers, booking store
"""

from .booking_store import BookingStore
from .busy_source import BusyIntervalSource, GoogleBusySource, StaticBusySource
from .event_writer import EventWriter, GoogleEventWriter

__all__ = [
    "BookingStore",
    "BusyIntervalSource",
    "GoogleBusySource",
    "StaticBusySource",
    "EventWriter",
    "GoogleEventWriter",
]
