"""State management for the booking reconciliation workflow.

This module defines the state structure used throughout the LangGraph workflow.
The state is passed between nodes and accumulates information as a paid
booking moves from payment confirmation to customer notification.
"""

from __future__ import annotations
from typing import TypedDict, Optional, List

from .models import BookingRequest, SlotTemplateEntry, StageError, TimeInterval


class BookingState(TypedDict, total=False):
    """State object for one booking attempt.

    Using total=False allows nodes to populate fields incrementally.

    Attributes:
        request: The paid booking as received from the client.
        entry: Template entry the slot label resolved to.
        interval: Absolute [start, end) of the booked slot.

        slot_free: Result of the post-payment re-check (None if it could not run).
        conflict: True once the re-check found the slot taken.

        calendar_event_id: Id of the created event, if any.
        persisted_record_id: Id of the stored booking record, if any.
        notification_sent: Whether customer and practitioner were emailed.

        errors: Stage failures recorded along the way.
        transcript: Human-readable log of the steps taken.
    """

    # Input
    request: BookingRequest
    entry: SlotTemplateEntry
    interval: TimeInterval

    # Post-payment check
    slot_free: Optional[bool]
    conflict: bool

    # Side effects
    calendar_event_id: Optional[str]
    persisted_record_id: Optional[str]
    notification_sent: bool

    # Logging + result
    errors: List[StageError]
    transcript: List[str]
