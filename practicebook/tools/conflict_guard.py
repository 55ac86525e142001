"""Pre-payment re-check of a single slot.

Availability shown to the client may be minutes old. Right before the
customer is charged, the chosen slot is checked again against the live
calendar. This narrows the double-booking window but is not a lock.
Any failure here fails open: checkout is never blocked on a flaky read,
the post-payment check in the booking graph is the final word.
"""

from __future__ import annotations
import logging
from datetime import date

from ..models import SlotCheck, UpstreamUnavailable
from .availability import AvailabilityCalculator

logger = logging.getLogger(__name__)


class SlotConflictGuard:
    def __init__(self, calculator: AvailabilityCalculator):
        self.calculator = calculator

    def check(self, day: date, slot_label: str) -> SlotCheck:
        """Return fresh availability for one slot.

        Raises:
            UnknownSlotError: If slot_label is not in the template.
        """
        entry = self.calculator.template.resolve(slot_label)

        if self.calculator.source is None:
            # Demo mode - always available
            return SlotCheck(day, entry.display_label, available=True, demo=True)

        try:
            available = self.calculator.check_slot(day, entry)
        except UpstreamUnavailable as e:
            logger.warning("🔍 Slot check failed for %s %s, allowing checkout: %s", day, entry.display_label, e)
            return SlotCheck(day, entry.display_label, available=True, fallback=True)

        logger.info("🔍 Slot %s on %s: %s", entry.display_label, day, "AVAILABLE" if available else "BUSY")
        return SlotCheck(day, entry.display_label, available=available)
