"""
practicebook - slot availability and booking reconciliation for a single-practitioner practice
"""

__version__ = "0.1.0"

from .config import Settings, settings, load_settings
from .state import BookingState

__all__ = ["Settings", "settings", "load_settings", "BookingState"]
