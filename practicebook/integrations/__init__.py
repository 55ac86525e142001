"""External service integrations.

This package contains modules for integrating with:
- Google Calendar API (busy periods and event creation)
- SMTP email (booking confirmations)
"""

from __future__ import annotations
