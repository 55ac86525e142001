"""Google Calendar API integration.

This module wraps the two Calendar API calls the booking flow needs:
a freebusy query for the practitioner's calendar and event insertion.
Authentication uses a service account whose credentials are passed in
explicitly; the API client is built lazily on first use and reused.
"""

from __future__ import annotations
import json
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from google_auth_httplib2 import AuthorizedHttp
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..config import Settings
from ..models import UpstreamUnavailable

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/calendar"]

# Everything that can go wrong between us and Google.
_UPSTREAM_ERRORS = (HttpError, GoogleAuthError, httplib2.HttpLib2Error, OSError, ValueError, KeyError)


def load_service_account_info(settings: Settings) -> Dict[str, Any]:
    """Read service-account JSON from the inline key or the key file.

    Raises:
        UpstreamUnavailable: If neither is set, the JSON is unreadable or
            it is not a JSON object.
    """
    try:
        if settings.google_service_account_key:
            info = json.loads(settings.google_service_account_key)
        elif settings.google_service_account_file:
            with open(settings.google_service_account_file, "r", encoding="utf-8") as f:
                info = json.load(f)
        else:
            raise UpstreamUnavailable("Missing GOOGLE_SERVICE_ACCOUNT_KEY or GOOGLE_SERVICE_ACCOUNT_FILE")
    except (OSError, ValueError) as e:
        raise UpstreamUnavailable(f"Unreadable service account key: {e}") from e

    if not isinstance(info, dict):
        raise UpstreamUnavailable(f"Service account key must be a JSON object, got {type(info).__name__}")
    return info


class GoogleCalendarClient:
    """Lazily-built Calendar API client.

    Credentials are loaded once and shared. httplib2 is not thread-safe, so
    each thread gets its own authorized Http and service object.

    Args:
        credentials_loader: Returns the parsed service-account JSON. Called
            on first use, so a bad key degrades requests instead of startup.
        timeout_seconds: Socket timeout for every API call. Keep it short so
            callers fall back quickly instead of hanging.
        timezone_name: Zone label sent with queries and events.
        scopes: OAuth scopes for the service account.
    """

    def __init__(
        self,
        credentials_loader: Callable[[], Dict[str, Any]],
        timeout_seconds: float = 5.0,
        timezone_name: str = "Asia/Kolkata",
        scopes: Optional[List[str]] = None,
    ):
        self.credentials_loader = credentials_loader
        self.timeout_seconds = timeout_seconds
        self.timezone_name = timezone_name
        self.scopes = scopes or SCOPES
        self._credentials = None
        self._lock = threading.Lock()
        self._local = threading.local()

    @classmethod
    def from_settings(cls, settings: Settings) -> GoogleCalendarClient:
        return cls(
            lambda: load_service_account_info(settings),
            timeout_seconds=settings.calendar_timeout_seconds,
            timezone_name=settings.timezone_name,
        )

    def _get_credentials(self):
        with self._lock:
            if self._credentials is None:
                info = self.credentials_loader()
                try:
                    self._credentials = service_account.Credentials.from_service_account_info(
                        info, scopes=self.scopes
                    )
                except Exception as e:
                    raise UpstreamUnavailable(f"Invalid service account credentials: {e}") from e
            return self._credentials

    @property
    def service(self):
        service = getattr(self._local, "service", None)
        if service is None:
            creds = self._get_credentials()
            try:
                http = AuthorizedHttp(creds, http=httplib2.Http(timeout=self.timeout_seconds))
                service = build("calendar", "v3", http=http, cache_discovery=False)
            except Exception as e:
                raise UpstreamUnavailable(f"Calendar client setup failed: {e}") from e
            self._local.service = service
        return service

    def query_busy(self, calendar_id: str, time_min: datetime, time_max: datetime) -> List[Dict[str, str]]:
        """Return busy periods of one calendar between two aware instants.

        Returns:
            List of {"start": RFC3339, "end": RFC3339} dicts as reported by Google.

        Raises:
            UpstreamUnavailable: On any API, auth or network failure, or when
                Google reports an error for the calendar itself.
        """
        body = {
            "timeMin": time_min.isoformat(),
            "timeMax": time_max.isoformat(),
            "timeZone": self.timezone_name,
            "items": [{"id": calendar_id}],
        }
        try:
            response = self.service.freebusy().query(body=body).execute()
        except UpstreamUnavailable:
            raise
        except _UPSTREAM_ERRORS as e:
            raise UpstreamUnavailable(f"Google Calendar freebusy failed: {e}") from e

        calendar = (response.get("calendars") or {}).get(calendar_id) or {}
        if calendar.get("errors"):
            raise UpstreamUnavailable(f"Google Calendar reported errors: {calendar['errors']}")
        return calendar.get("busy", [])

    def create_event(
        self,
        calendar_id: str,
        summary: str,
        start: datetime,
        end: datetime,
        description: str = "",
    ) -> str:
        """Insert an event and return its id.

        No attendees are added: a service account cannot send invites
        without domain-wide delegation, confirmation goes out by email.

        Raises:
            UpstreamUnavailable: If the event could not be created.
        """
        event = {
            "summary": summary,
            "description": description,
            "start": {"dateTime": start.isoformat(), "timeZone": self.timezone_name},
            "end": {"dateTime": end.isoformat(), "timeZone": self.timezone_name},
            "reminders": {
                "useDefault": False,
                "overrides": [
                    {"method": "email", "minutes": 24 * 60},  # 1 day before
                    {"method": "popup", "minutes": 30},
                ],
            },
        }
        try:
            created = self.service.events().insert(calendarId=calendar_id, body=event).execute()
        except UpstreamUnavailable:
            raise
        except _UPSTREAM_ERRORS as e:
            raise UpstreamUnavailable(f"Google Calendar event insert failed: {e}") from e

        event_id = created.get("id")
        if not event_id:
            raise UpstreamUnavailable("Google Calendar returned no event id")
        return event_id
