"""Tests for the Google Calendar client wrapper (no network)."""

import threading
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from practicebook.config import Settings
from practicebook.integrations.google_calendar import GoogleCalendarClient, load_service_account_info
from practicebook.models import UpstreamUnavailable

from conftest import IST

START = datetime(2026, 10, 20, 10, tzinfo=IST)
END = datetime(2026, 10, 20, 11, tzinfo=IST)


@pytest.fixture
def client():
    c = GoogleCalendarClient(lambda: {}, timeout_seconds=3)
    c._local.service = MagicMock()
    return c


def test_query_busy_returns_calendar_busy_list(client):
    busy = [{"start": "2026-10-20T04:30:00Z", "end": "2026-10-20T05:30:00Z"}]
    client.service.freebusy.return_value.query.return_value.execute.return_value = {
        "calendars": {"cal@example.com": {"busy": busy}}
    }

    assert client.query_busy("cal@example.com", START, END) == busy

    body = client.service.freebusy.return_value.query.call_args.kwargs["body"]
    assert body["timeMin"] == "2026-10-20T10:00:00+05:30"
    assert body["items"] == [{"id": "cal@example.com"}]


def test_query_busy_calendar_errors(client):
    client.service.freebusy.return_value.query.return_value.execute.return_value = {
        "calendars": {"cal@example.com": {"errors": [{"reason": "notFound"}]}}
    }
    with pytest.raises(UpstreamUnavailable):
        client.query_busy("cal@example.com", START, END)


def test_query_busy_network_error(client):
    client.service.freebusy.return_value.query.return_value.execute.side_effect = TimeoutError("timed out")
    with pytest.raises(UpstreamUnavailable):
        client.query_busy("cal@example.com", START, END)


def test_create_event_has_no_attendees(client):
    client.service.events.return_value.insert.return_value.execute.return_value = {"id": "evt_9"}

    assert client.create_event("cal@example.com", "Session - Asha", START, END, "Phone: 123") == "evt_9"

    body = client.service.events.return_value.insert.call_args.kwargs["body"]
    assert "attendees" not in body
    assert body["start"]["dateTime"] == "2026-10-20T10:00:00+05:30"
    assert body["end"]["timeZone"] == "Asia/Kolkata"


def test_create_event_without_id(client):
    client.service.events.return_value.insert.return_value.execute.return_value = {}
    with pytest.raises(UpstreamUnavailable):
        client.create_event("cal@example.com", "Session", START, END)


def test_bad_credentials_surface_as_upstream_unavailable():
    def loader():
        raise UpstreamUnavailable("Missing GOOGLE_SERVICE_ACCOUNT_KEY or GOOGLE_SERVICE_ACCOUNT_FILE")

    with pytest.raises(UpstreamUnavailable):
        GoogleCalendarClient(loader).query_busy("cal@example.com", START, END)


def test_non_object_key_surfaces_as_upstream_unavailable():
    with pytest.raises(UpstreamUnavailable):
        GoogleCalendarClient(lambda: "not-an-object").query_busy("cal@example.com", START, END)


@patch("practicebook.integrations.google_calendar.build")
@patch("practicebook.integrations.google_calendar.AuthorizedHttp")
@patch("practicebook.integrations.google_calendar.service_account.Credentials.from_service_account_info")
def test_each_thread_gets_its_own_service(from_info, authorized_http, build):
    build.side_effect = lambda *a, **kw: MagicMock()
    client = GoogleCalendarClient(lambda: {"type": "service_account"})
    services = []

    def grab():
        services.append(client.service)
        services.append(client.service)

    worker = threading.Thread(target=grab)
    worker.start()
    worker.join()
    grab()

    assert services[0] is services[1]
    assert services[2] is services[3]
    assert services[0] is not services[2]
    assert build.call_count == 2
    assert authorized_http.call_count == 2
    from_info.assert_called_once()


class TestLoadServiceAccountInfo:
    def test_inline_key(self):
        assert load_service_account_info(Settings(google_service_account_key='{"type": "service_account"}')) == {
            "type": "service_account"
        }

    def test_key_file(self, tmp_path):
        path = tmp_path / "sa.json"
        path.write_text('{"client_email": "svc@example.iam.gserviceaccount.com"}')
        info = load_service_account_info(Settings(google_service_account_file=str(path)))
        assert info["client_email"] == "svc@example.iam.gserviceaccount.com"

    def test_missing(self):
        with pytest.raises(UpstreamUnavailable):
            load_service_account_info(Settings())

    def test_bad_json(self):
        with pytest.raises(UpstreamUnavailable):
            load_service_account_info(Settings(google_service_account_key="{not json"))

    @pytest.mark.parametrize("key", ['"x"', "[]", "42"])
    def test_json_that_is_not_an_object(self, key):
        with pytest.raises(UpstreamUnavailable, match="JSON object"):
            load_service_account_info(Settings(google_service_account_key=key))
