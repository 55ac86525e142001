"""Tests for the SMTP confirmation mailer (SMTP is always patched)."""

import smtplib
from dataclasses import replace
from unittest.mock import patch

import pytest

from practicebook.integrations.mailer import SmtpMailer, conflict_message, customer_message, practitioner_message
from practicebook.models import BookingOutcome, NotificationError, StageError


def _mailer(**kwargs) -> SmtpMailer:
    return SmtpMailer("clinic@example.com", "app-password", practitioner_email="doctor@example.com", **kwargs)


def test_sends_customer_and_practitioner_copies(booking_request):
    outcome = BookingOutcome(transaction_id=booking_request.transaction_id, calendar_event_id="evt_1")

    with patch("practicebook.integrations.mailer.smtplib.SMTP_SSL") as smtp_ssl:
        _mailer().notify(booking_request, outcome)

    server = smtp_ssl.return_value
    server.login.assert_called_once_with("clinic@example.com", "app-password")
    sent_to = [c.args[0]["To"] for c in server.send_message.call_args_list]
    assert sent_to == ["asha@example.com", "doctor@example.com"]
    server.quit.assert_called_once()


def test_starttls_on_submission_port(booking_request):
    outcome = BookingOutcome(transaction_id=booking_request.transaction_id)

    with patch("practicebook.integrations.mailer.smtplib.SMTP") as smtp:
        _mailer(port=587).notify(booking_request, outcome)

    smtp.return_value.starttls.assert_called_once()


def test_missing_credentials(booking_request):
    with pytest.raises(NotificationError, match="Email config missing"):
        SmtpMailer(None, None).notify(booking_request, BookingOutcome(transaction_id="tx"))


def test_smtp_failure_raises_notification_error(booking_request):
    with patch("practicebook.integrations.mailer.smtplib.SMTP_SSL") as smtp_ssl:
        smtp_ssl.return_value.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        with pytest.raises(NotificationError):
            _mailer().notify(booking_request, BookingOutcome(transaction_id="tx"))


def test_messages_mention_slot_and_follow_up(booking_request):
    subject, text, _ = customer_message(booking_request, BookingOutcome(transaction_id="tx"))
    assert subject == "Confirmed: 2026-10-20 at 10:00 AM"
    assert "INR 1500" in text

    outcome = BookingOutcome(transaction_id="tx", errors=[StageError("calendar", "insert failed")])
    _, text, _ = practitioner_message(booking_request, outcome)
    assert "Calendar event: NOT CREATED" in text
    assert "Needs follow-up [calendar]: insert failed" in text


def test_html_bodies_escape_customer_input(booking_request):
    request = replace(booking_request, customer_name="<img src=x onerror=alert(1)>", customer_phone="<b>1</b>")
    outcome = BookingOutcome(transaction_id="tx", errors=[StageError("calendar", "<script>x</script>")])

    _, text, html = customer_message(request, outcome)
    assert "<img" not in html
    assert "Hello &lt;img src=x onerror=alert(1)&gt;," in html
    assert "Hello <img src=x onerror=alert(1)>," in text

    for _, _, html in (practitioner_message(request, outcome), conflict_message(request, outcome)):
        assert "<img" not in html and "<script>" not in html and "<b>" not in html
        assert "Name: &lt;img src=x onerror=alert(1)&gt;" in html


def test_conflict_notice_goes_to_practitioner_only(booking_request):
    outcome = BookingOutcome(transaction_id=booking_request.transaction_id, persisted_record_id="bkg_1", conflict=True)

    with patch("practicebook.integrations.mailer.smtplib.SMTP_SSL") as smtp_ssl:
        _mailer().notify_conflict(booking_request, outcome)

    sent = [c.args[0] for c in smtp_ssl.return_value.send_message.call_args_list]
    assert [m["To"] for m in sent] == ["doctor@example.com"]
    assert sent[0]["Subject"].startswith("ACTION NEEDED")


def test_conflict_notice_without_credentials(booking_request):
    with pytest.raises(NotificationError):
        SmtpMailer(None, None).notify_conflict(booking_request, BookingOutcome(transaction_id="tx"))
