"""Wiring of the booking components from Settings.

Clients are built here and injected; nothing below this layer reads
environment or global settings.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Optional

from .adapters.booking_store import BookingStore
from .adapters.busy_source import BusyIntervalSource, GoogleBusySource
from .adapters.event_writer import EventWriter, GoogleEventWriter
from .config import Settings
from .graph import BookingReconciler
from .integrations.google_calendar import GoogleCalendarClient
from .integrations.mailer import SmtpMailer
from .tools.availability import AvailabilityCalculator
from .tools.conflict_guard import SlotConflictGuard

logger = logging.getLogger(__name__)


@dataclass
class Services:
    calculator: AvailabilityCalculator
    guard: SlotConflictGuard
    reconciler: BookingReconciler
    store: Optional[BookingStore] = None


def build_services(
    settings: Settings,
    source: Optional[BusyIntervalSource] = None,
    event_writer: Optional[EventWriter] = None,
    store: Optional[BookingStore] = None,
    notifier=None,
) -> Services:
    """Assemble calculator, guard and reconciler.

    Explicit arguments win over what settings would build, which is how
    tests inject fakes. Without calendar settings the source and event
    writer stay None and the system runs in demo mode.
    """
    if settings.calendar_configured and (source is None or event_writer is None):
        client = GoogleCalendarClient.from_settings(settings)
        source = source or GoogleBusySource(client, settings.google_calendar_id)
        event_writer = event_writer or GoogleEventWriter(client, settings.google_calendar_id)
    elif source is None:
        logger.warning("Missing Google Calendar configuration, running in demo mode")

    store = store or BookingStore(settings.database_path)
    notifier = notifier or SmtpMailer.from_settings(settings)

    calculator = AvailabilityCalculator(
        source,
        settings.tz,
        max_days=settings.max_window_days,
        past_slot_policy=settings.past_slot_policy,
    )
    return Services(
        calculator=calculator,
        guard=SlotConflictGuard(calculator),
        reconciler=BookingReconciler(calculator, event_writer, store, notifier),
        store=store,
    )
