"""
Tools package for slot availability and booking
"""

from .slots import (
    DEFAULT_TEMPLATE,
    SlotTemplate,
    format_slot_label,
    parse_date,
    parse_slot_label,
)

from .availability import (
    AvailabilityCalculator,
    clamp_days,
    coerce_busy_intervals,
    is_slot_free,
)

from .conflict_guard import SlotConflictGuard

from .pricing import payment_config

__all__ = [
    "DEFAULT_TEMPLATE",
    "SlotTemplate",
    "format_slot_label",
    "parse_date",
    "parse_slot_label",
    "AvailabilityCalculator",
    "clamp_days",
    "coerce_busy_intervals",
    "is_slot_free",
    "SlotConflictGuard",
    "payment_config",
]
