"""SMTP confirmation mailer.

Sends the booking confirmation to the customer and a copy to the
practitioner. This is the customer's only proof of booking, so any
failure is raised to the caller as NotificationError. A slot taken
after payment gets a practitioner-only notice instead.
"""

from __future__ import annotations
import html
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Tuple

from ..config import Settings
from ..models import BookingOutcome, BookingRequest, NotificationError

logger = logging.getLogger(__name__)


def _format_amount(request: BookingRequest) -> str:
    return f"{request.currency} {request.amount:g}"


def _lines_to_html(lines: List[str]) -> str:
    return "<br>".join(html.escape(line) for line in lines)


def customer_message(request: BookingRequest, outcome: BookingOutcome) -> Tuple[str, str, str]:
    """Return (subject, text, html) for the customer confirmation."""
    day = request.date.strftime("%A, %d %B %Y")
    subject = f"Confirmed: {request.date.isoformat()} at {request.slot_label}"
    text = (
        f"Hello {request.customer_name},\n\n"
        f"Your appointment is confirmed for {day} at {request.slot_label}.\n"
        f"Payment received: {_format_amount(request)} (transaction {request.transaction_id}).\n\n"
        "If you need to reschedule, simply reply to this email."
    )
    body = (
        '<div style="font-family: Arial, sans-serif; padding: 20px; color: #333;">'
        "<h2>Appointment confirmed</h2>"
        f"<p>Hello {html.escape(request.customer_name)},</p>"
        f"<p>Your appointment is confirmed for <strong>{day}</strong> "
        f"at <strong>{html.escape(request.slot_label)}</strong>.</p>"
        f"<p>Payment received: {html.escape(_format_amount(request))}<br>"
        f"Transaction: {html.escape(request.transaction_id)}</p>"
        "</div>"
    )
    return subject, text, body


def _booking_lines(request: BookingRequest, outcome: BookingOutcome) -> List[str]:
    lines = [
        f"Name: {request.customer_name}",
        f"Email: {request.customer_email}",
        f"Phone: {request.customer_phone}",
        f"Slot: {request.date.isoformat()} {request.slot_label}",
        f"Paid: {_format_amount(request)} ({request.transaction_id})",
        f"Calendar event: {outcome.calendar_event_id or 'NOT CREATED'}",
        f"Record: {outcome.persisted_record_id or 'NOT SAVED'}",
    ]
    for err in outcome.errors:
        lines.append(f"Needs follow-up [{err.stage}]: {err.message}")
    return lines


def practitioner_message(request: BookingRequest, outcome: BookingOutcome) -> Tuple[str, str, str]:
    """Return (subject, text, html) for the practitioner alert."""
    subject = f"New booking: {request.customer_name} - {request.date.isoformat()} {request.slot_label}"
    lines = _booking_lines(request, outcome)
    return subject, "\n".join(lines), _lines_to_html(lines)


def conflict_message(request: BookingRequest, outcome: BookingOutcome) -> Tuple[str, str, str]:
    """Return (subject, text, html) for a paid booking whose slot was taken."""
    subject = f"ACTION NEEDED: slot taken after payment - {request.date.isoformat()} {request.slot_label}"
    lines = [
        "Payment was captured but the slot was booked by someone else before confirmation.",
        "No calendar event was created and the customer has not been confirmed.",
        "",
        *_booking_lines(request, outcome),
    ]
    return subject, "\n".join(lines), _lines_to_html(lines)


class SmtpMailer:
    """Sends booking emails through an SMTP account (Gmail by default)."""

    def __init__(
        self,
        user: Optional[str],
        password: Optional[str],
        host: str = "smtp.gmail.com",
        port: int = 465,
        practitioner_email: Optional[str] = None,
        timeout_seconds: float = 10.0,
    ):
        self.user = user
        self.password = password
        self.host = host
        self.port = port
        self.practitioner_email = practitioner_email or user
        self.timeout_seconds = timeout_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> SmtpMailer:
        return cls(
            settings.email_user,
            settings.email_pass,
            host=settings.smtp_host,
            port=settings.smtp_port,
            practitioner_email=settings.practitioner_email,
        )

    def _build(self, to: str, subject: str, text: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["From"] = self.user
        msg["To"] = to
        msg["Subject"] = subject
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))
        return msg

    def _send_all(self, messages: List[MIMEMultipart]) -> None:
        context = ssl.create_default_context()
        if self.port == 465:
            server = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout_seconds)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout_seconds)
        try:
            if self.port == 587:
                server.starttls(context=context)
            server.login(self.user, self.password)
            for msg in messages:
                server.send_message(msg)
        finally:
            server.quit()

    def notify(self, request: BookingRequest, outcome: BookingOutcome) -> None:
        """Email the customer and the practitioner.

        Raises:
            NotificationError: If email is not configured or sending fails.
        """
        if not self.user or not self.password:
            raise NotificationError("Email config missing")

        messages = [self._build(request.customer_email, *customer_message(request, outcome))]
        if self.practitioner_email:
            messages.append(self._build(self.practitioner_email, *practitioner_message(request, outcome)))

        try:
            self._send_all(messages)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send email: {e}") from e
        logger.info("✅ Confirmation sent to %s for %s %s", request.customer_email, request.date, request.slot_label)

    def notify_conflict(self, request: BookingRequest, outcome: BookingOutcome) -> None:
        """Tell the practitioner a paid slot could not be booked.

        Raises:
            NotificationError: If email is not configured or sending fails.
        """
        if not self.user or not self.password or not self.practitioner_email:
            raise NotificationError("Email config missing")

        try:
            self._send_all([self._build(self.practitioner_email, *conflict_message(request, outcome))])
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send conflict notice: {e}") from e
        logger.warning("⚠️  Conflict notice sent for %s (%s)", request.transaction_id, request.slot_label)
