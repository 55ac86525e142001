"""Booking reconciliation workflow.

Entered only after the payment provider reports success. The graph
re-checks the slot, creates the calendar event, stores the booking and
notifies customer and practitioner:

    recheck_slot -> create_event -> persist -> notify -> done
                 \\-> slot_unavailable (slot taken after payment)

Payment is never unwound here. A conflict is stored with status
"conflict" and reported to the practitioner for manual follow-up.
Calendar and storage failures are recorded and the flow continues; a
notification failure marks the booking failed but keeps every id
already produced.
"""

from __future__ import annotations
import logging
from typing import Optional

from langgraph.graph import StateGraph, END

from .adapters.booking_store import BookingStore
from .adapters.event_writer import EventWriter
from .models import BookingOutcome, BookingRequest, StageError
from .state import BookingState
from .tools.availability import AvailabilityCalculator

logger = logging.getLogger(__name__)


def _fail(state: BookingState, stage: str, message: str) -> BookingState:
    errors = state.get("errors", []) + [StageError(stage, message)]
    transcript = state.get("transcript", []) + [f"[ERR] {stage}: {message}"]
    return {**state, "errors": errors, "transcript": transcript}


def build_booking_graph(
    calculator: AvailabilityCalculator,
    event_writer: Optional[EventWriter] = None,
    store: Optional[BookingStore] = None,
    notifier=None,
):
    """Build and compile the booking reconciliation graph.

    Args:
        calculator: Used for the authoritative post-payment slot check.
        event_writer: Creates the calendar event; None skips that step.
        store: Durable booking records; None skips persistence.
        notifier: Object with notify(request, outcome); None counts as a
            notification failure since the customer would get no confirmation.
    """

    def node_recheck_slot(state: BookingState) -> BookingState:
        """Final availability check, same overlap test as the availability query."""
        logger.info("🔹 Executing Node: recheck_slot")
        request = state["request"]
        entry = state["entry"]

        if calculator.source is None:
            transcript = state.get("transcript", []) + ["[SYS] Calendar not configured, skipping re-check"]
            return {**state, "slot_free": None, "transcript": transcript}

        try:
            free = calculator.check_slot(request.date, entry)
        except Exception as e:
            logger.error("Post-payment check failed for %s %s: %s", request.date, entry.display_label, e)
            return {**_fail(state, "availability", str(e)), "slot_free": None}

        if not free:
            logger.warning(
                "⚠️  Slot %s on %s taken after payment %s, manual follow-up needed",
                entry.display_label, request.date, request.transaction_id,
            )
            transcript = state.get("transcript", []) + [f"[SYS] Slot {entry.display_label} is no longer free"]
            return {**state, "slot_free": False, "conflict": True, "transcript": transcript}

        transcript = state.get("transcript", []) + [f"[SYS] Slot {entry.display_label} still free"]
        return {**state, "slot_free": True, "transcript": transcript}

    def node_slot_unavailable(state: BookingState) -> BookingState:
        """Leave a record and a practitioner notice for the paid, unbookable slot."""
        logger.info("🔹 Executing Node: slot_unavailable")
        request = state["request"]
        state = {
            **_fail(state, "availability", "Slot taken after payment, manual follow-up needed"),
            "conflict": True,
            "calendar_event_id": None,
            "notification_sent": False,
        }

        if store is not None:
            try:
                record_id = store.save(request, state["interval"].start, None, status="conflict")
            except Exception as e:
                logger.exception("Conflict record write failed for %s", request.transaction_id)
                state = {**_fail(state, "persistence", str(e)), "persisted_record_id": None}
            else:
                transcript = state.get("transcript", []) + [f"[SYS] Saved conflict record: {record_id}"]
                state = {**state, "persisted_record_id": record_id, "transcript": transcript}

        if notifier is None:
            return _fail(state, "notification", "No notifier configured")
        try:
            notifier.notify_conflict(request, outcome_from_state(state))
        except Exception as e:
            logger.exception("Conflict notice failed for %s", request.transaction_id)
            return _fail(state, "notification", str(e))

        transcript = state.get("transcript", []) + ["[SYS] Practitioner notified of conflict"]
        return {**state, "transcript": transcript}

    def node_create_event(state: BookingState) -> BookingState:
        logger.info("🔹 Executing Node: create_event")
        if event_writer is None:
            return state

        try:
            event_id = event_writer.create_booking_event(state["request"], state["interval"])
        except Exception as e:
            logger.exception("Calendar event creation failed for %s", state["request"].transaction_id)
            return {**_fail(state, "calendar", str(e)), "calendar_event_id": None}

        transcript = state.get("transcript", []) + [f"[SYS] Created calendar event: {event_id}"]
        return {**state, "calendar_event_id": event_id, "transcript": transcript}

    def node_persist(state: BookingState) -> BookingState:
        logger.info("🔹 Executing Node: persist")
        if store is None:
            return state

        try:
            record_id = store.save(state["request"], state["interval"].start, state.get("calendar_event_id"))
        except Exception as e:
            logger.exception("Booking record write failed for %s", state["request"].transaction_id)
            return {**_fail(state, "persistence", str(e)), "persisted_record_id": None}

        transcript = state.get("transcript", []) + [f"[SYS] Saved booking record: {record_id}"]
        return {**state, "persisted_record_id": record_id, "transcript": transcript}

    def node_notify(state: BookingState) -> BookingState:
        logger.info("🔹 Executing Node: notify")
        if notifier is None:
            return {**_fail(state, "notification", "No notifier configured"), "notification_sent": False}

        try:
            notifier.notify(state["request"], outcome_from_state(state))
        except Exception as e:
            logger.exception("Confirmation email failed for %s", state["request"].transaction_id)
            return {**_fail(state, "notification", str(e)), "notification_sent": False}

        transcript = state.get("transcript", []) + [f"[SYS] Notified {state['request'].customer_email}"]
        return {**state, "notification_sent": True, "transcript": transcript}

    def node_done(state: BookingState) -> BookingState:
        logger.info("🔹 Executing Node: done")
        status = "success" if state.get("notification_sent") else "failed"
        return {**state, "transcript": state.get("transcript", []) + [f"[SYS] Booking {status}"]}

    def route_after_recheck(state: BookingState) -> str:
        if state.get("conflict"):
            return "slot_unavailable"
        if state.get("slot_free") is True:
            return "create_event"
        # Calendar unknown (demo or outage): no event, still record and confirm.
        return "persist"

    g = StateGraph(BookingState)
    g.add_node("recheck_slot", node_recheck_slot)
    g.add_node("slot_unavailable", node_slot_unavailable)
    g.add_node("create_event", node_create_event)
    g.add_node("persist", node_persist)
    g.add_node("notify", node_notify)
    g.add_node("done", node_done)

    g.set_entry_point("recheck_slot")
    g.add_conditional_edges(
        "recheck_slot",
        route_after_recheck,
        {"slot_unavailable": "slot_unavailable", "create_event": "create_event", "persist": "persist"},
    )
    g.add_edge("slot_unavailable", END)
    g.add_edge("create_event", "persist")
    g.add_edge("persist", "notify")
    g.add_edge("notify", "done")
    g.add_edge("done", END)

    return g.compile()


def outcome_from_state(state: BookingState) -> BookingOutcome:
    return BookingOutcome(
        transaction_id=state["request"].transaction_id,
        calendar_event_id=state.get("calendar_event_id"),
        persisted_record_id=state.get("persisted_record_id"),
        notification_sent=bool(state.get("notification_sent")),
        conflict=bool(state.get("conflict")),
        errors=list(state.get("errors", [])),
    )


class BookingReconciler:
    """Finalizes a paid booking through the reconciliation graph."""

    def __init__(
        self,
        calculator: AvailabilityCalculator,
        event_writer: Optional[EventWriter] = None,
        store: Optional[BookingStore] = None,
        notifier=None,
    ):
        self.calculator = calculator
        self.graph = build_booking_graph(calculator, event_writer, store, notifier)

    def finalize(self, request: BookingRequest) -> BookingOutcome:
        """Run the booking workflow for one paid request.

        Raises:
            UnknownSlotError: If the slot label is not in the template.
        """
        entry = self.calculator.template.resolve(request.slot_label)
        interval = self.calculator.template.interval_for(request.date, entry, self.calculator.tz)

        init_state: BookingState = {
            "request": request,
            "entry": entry,
            "interval": interval,
            "conflict": False,
            "notification_sent": False,
            "errors": [],
            "transcript": [f"[SYS] Payment {request.transaction_id} confirmed"],
        }
        final_state = self.graph.invoke(init_state)
        outcome = outcome_from_state(final_state)

        logger.info(
            "Booking %s finalized: success=%s conflict=%s event=%s record=%s errors=%d",
            request.transaction_id, outcome.success, outcome.conflict,
            outcome.calendar_event_id, outcome.persisted_record_id, len(outcome.errors),
        )
        return outcome
