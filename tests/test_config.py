from __future__ import annotations

from datetime import timedelta

import pytest

from practicebook.config import Settings, load_settings

_KEYS = [
    "GOOGLE_SERVICE_ACCOUNT_KEY", "GOOGLE_SERVICE_ACCOUNT_FILE", "GOOGLE_CALENDAR_ID",
    "CALENDAR_TIMEOUT_SECONDS", "PRACTICE_UTC_OFFSET_MINUTES", "PRACTICE_TIMEZONE",
    "AVAILABILITY_MAX_DAYS", "PAST_SLOT_POLICY", "EMAIL_USER", "EMAIL_PASS", "SMTP_HOST",
    "SMTP_PORT", "PRACTITIONER_EMAIL", "DATABASE_PATH", "LOG_LEVEL",
]


@pytest.fixture
def env(monkeypatch, tmp_path):
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)
    # Empty .env so a developer's local file never leaks into tests.
    dotenv = tmp_path / ".env"
    dotenv.write_text("")
    return monkeypatch, str(dotenv)


def test_defaults(env):
    _, dotenv = env
    s = load_settings(dotenv)

    assert s.calendar_configured is False
    assert s.email_configured is False
    assert s.max_window_days == 60
    assert s.past_slot_policy == "show"
    assert s.tz.utcoffset(None) == timedelta(hours=5, minutes=30)


def test_calendar_needs_key_and_id(env):
    monkeypatch, dotenv = env
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_KEY", "{}")
    assert load_settings(dotenv).calendar_configured is False

    monkeypatch.setenv("GOOGLE_CALENDAR_ID", "practice@group.calendar.google.com")
    assert load_settings(dotenv).calendar_configured is True


def test_practitioner_email_defaults_to_sender(env):
    monkeypatch, dotenv = env
    monkeypatch.setenv("EMAIL_USER", "clinic@example.com")
    monkeypatch.setenv("EMAIL_PASS", "app-password")

    s = load_settings(dotenv)
    assert s.email_configured is True
    assert s.practitioner_email == "clinic@example.com"


def test_invalid_past_slot_policy(env):
    monkeypatch, dotenv = env
    monkeypatch.setenv("PAST_SLOT_POLICY", "sometimes")
    with pytest.raises(RuntimeError):
        load_settings(dotenv)


def test_invalid_integer(env):
    monkeypatch, dotenv = env
    monkeypatch.setenv("AVAILABILITY_MAX_DAYS", "sixty")
    with pytest.raises(RuntimeError):
        load_settings(dotenv)


def test_window_must_be_positive(env):
    monkeypatch, dotenv = env
    monkeypatch.setenv("AVAILABILITY_MAX_DAYS", "0")
    with pytest.raises(RuntimeError):
        load_settings(dotenv)


def test_settings_are_frozen():
    with pytest.raises(Exception):
        Settings().max_window_days = 5
