"""Configuration management for the booking service.

This module handles all configuration settings including Google Calendar
credentials, the practice's fixed time zone, SMTP and storage paths.
Settings are loaded from .env file if present.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from datetime import timedelta, timezone
from typing import Optional

from dotenv import load_dotenv

PAST_SLOT_POLICIES = {"show", "hide"}


@dataclass(frozen=True)
class Settings:
    """Application settings and configuration.

    All settings are immutable (frozen=True) to prevent accidental modification.
    Use load_settings() to build an instance from environment variables.

    Attributes:
        google_service_account_key: Inline service-account JSON.
        google_service_account_file: Path to a service-account JSON file.
        google_calendar_id: Calendar holding the practitioner's appointments.
        calendar_timeout_seconds: Network timeout for Calendar API calls.
        utc_offset_minutes: Fixed offset of the practice's local time.
        timezone_name: IANA label written on created calendar events.
        max_window_days: Upper bound for the availability query window.
        past_slot_policy: "show" lists past slots as usual, "hide" marks them unavailable.
    """

    google_service_account_key: Optional[str] = None
    google_service_account_file: Optional[str] = None
    google_calendar_id: Optional[str] = None
    calendar_timeout_seconds: float = 5.0

    utc_offset_minutes: int = 330
    timezone_name: str = "Asia/Kolkata"
    max_window_days: int = 60
    past_slot_policy: str = "show"

    # Email
    email_user: Optional[str] = None
    email_pass: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    practitioner_email: Optional[str] = None

    database_path: str = "bookings.db"
    log_level: str = "INFO"

    @property
    def calendar_configured(self) -> bool:
        has_key = bool(self.google_service_account_key or self.google_service_account_file)
        return has_key and bool(self.google_calendar_id)

    @property
    def email_configured(self) -> bool:
        return bool(self.email_user and self.email_pass)

    @property
    def tz(self) -> timezone:
        return timezone(timedelta(minutes=self.utc_offset_minutes), self.timezone_name)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected an integer.") from e


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise RuntimeError(f"Invalid {name} value: {raw!r}. Expected a number.") from e


def load_settings(dotenv_path: str | None = None) -> Settings:
    # dotenv_path allows overriding in tests; real env vars always win.
    load_dotenv(dotenv_path=dotenv_path, override=False)

    max_window_days = _int_env("AVAILABILITY_MAX_DAYS", 60)
    if max_window_days < 1:
        raise RuntimeError("AVAILABILITY_MAX_DAYS must be >= 1")

    past_slot_policy = os.getenv("PAST_SLOT_POLICY", "show").strip().lower()
    if past_slot_policy not in PAST_SLOT_POLICIES:
        raise RuntimeError(
            f"Invalid PAST_SLOT_POLICY value: {past_slot_policy!r}. Expected one of {sorted(PAST_SLOT_POLICIES)}."
        )

    email_user = os.getenv("EMAIL_USER") or None

    return Settings(
        google_service_account_key=os.getenv("GOOGLE_SERVICE_ACCOUNT_KEY") or None,
        google_service_account_file=os.getenv("GOOGLE_SERVICE_ACCOUNT_FILE") or None,
        google_calendar_id=os.getenv("GOOGLE_CALENDAR_ID") or None,
        calendar_timeout_seconds=_float_env("CALENDAR_TIMEOUT_SECONDS", 5.0),
        utc_offset_minutes=_int_env("PRACTICE_UTC_OFFSET_MINUTES", 330),
        timezone_name=os.getenv("PRACTICE_TIMEZONE", "Asia/Kolkata"),
        max_window_days=max_window_days,
        past_slot_policy=past_slot_policy,
        email_user=email_user,
        email_pass=os.getenv("EMAIL_PASS") or None,
        smtp_host=os.getenv("SMTP_HOST", "smtp.gmail.com"),
        smtp_port=_int_env("SMTP_PORT", 465),
        practitioner_email=os.getenv("PRACTITIONER_EMAIL") or email_user,
        database_path=os.getenv("DATABASE_PATH", "bookings.db"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )


# Global settings instance - import this in other modules
settings = load_settings()
