# app/services/email.py
"""
Outgoing email for appointment notifications and counselor messages.

The send functions are synchronous and meant to be queued with FastAPI
``BackgroundTasks`` so the request never waits on SMTP. Failures are logged,
never raised.
"""
import logging
import smtplib
import time
from dataclasses import dataclass
from datetime import date, time as dt_time
from email.message import EmailMessage
from html import escape
from typing import Optional

from app.config.settings import settings

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
SUPPORT_FOOTER = (
    "This is an automated message from MindCare Hub.\n"
    "For support, contact support@mindcarehub.my or +60 3-2345 6789."
)


@dataclass
class AppointmentEmailData:
    patient_email: str
    patient_name: str
    provider_name: str
    appointment_date: date
    appointment_time: dt_time
    session_type: str
    appointment_id: Optional[int] = None
    reason: Optional[str] = None


def _format_date(value: date) -> str:
    return value.strftime("%A, %d %B %Y")


def _format_time(value: dt_time) -> str:
    return value.strftime("%H:%M")


def _html(title: str, paragraphs: list, rows: Optional[list] = None) -> str:
    body = "".join(f"<p>{escape(p)}</p>" for p in paragraphs)
    table = ""
    if rows:
        cells = "".join(
            f"<tr><td><strong>{escape(label)}</strong></td><td>{escape(str(value))}</td></tr>"
            for label, value in rows
        )
        table = f"<table>{cells}</table>"
    footer = "".join(f"<p><small>{escape(line)}</small></p>" for line in SUPPORT_FOOTER.splitlines())
    return (
        "<!DOCTYPE html><html><body style=\"font-family: Arial, sans-serif\">"
        f"<h2>MindCare Hub</h2><h3>{escape(title)}</h3>{body}{table}<hr>{footer}"
        "</body></html>"
    )


def _text(paragraphs: list, rows: Optional[list] = None) -> str:
    lines = list(paragraphs)
    if rows:
        lines.append("")
        lines.extend(f"{label}: {value}" for label, value in rows)
    lines.extend(["", SUPPORT_FOOTER])
    return "\n".join(lines)


def _appointment_rows(data: AppointmentEmailData) -> list:
    rows = [
        ("Patient", data.patient_name),
        ("Provider", data.provider_name),
        ("Date", _format_date(data.appointment_date)),
        ("Time", _format_time(data.appointment_time)),
        ("Session Type", data.session_type),
    ]
    if data.reason:
        rows.append(("Reason", data.reason))
    if data.appointment_id:
        rows.append(("Appointment ID", f"#{data.appointment_id}"))
    return rows


def build_message(to_email: str, subject: str, text: str, html: str) -> EmailMessage:
    msg = EmailMessage()
    msg["From"] = settings.email_from
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text)
    msg.add_alternative(html, subtype="html")
    return msg


def deliver(msg: EmailMessage) -> bool:
    """
    Send ``msg`` over SMTP, retrying with exponential backoff.

    Returns:
        True when the message was handed to the server (or only logged
        because no SMTP host is configured), False when every attempt failed.
    """
    if not settings.smtp_host:
        logger.info(f"SMTP not configured; would send '{msg['Subject']}' to {msg['To']}")
        return True

    for attempt in range(1, MAX_ATTEMPTS + 1):
        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=20) as smtp:
                if settings.smtp_use_tls:
                    smtp.starttls()
                if settings.smtp_username:
                    smtp.login(settings.smtp_username, settings.smtp_password or "")
                smtp.send_message(msg)
            logger.info(f"Email sent to {msg['To']} with subject '{msg['Subject']}'")
            return True
        except (smtplib.SMTPException, OSError) as e:
            if attempt == MAX_ATTEMPTS:
                logger.error(f"Failed to send email to {msg['To']} after {attempt} attempts: {e}")
                return False
            delay = 2 ** (attempt - 1)
            logger.warning(f"Email attempt {attempt} to {msg['To']} failed, retrying in {delay}s: {e}")
            time.sleep(delay)
    return False


def send_appointment_confirmation(data: AppointmentEmailData) -> bool:
    subject = "Appointment Confirmation - MindCare Hub"
    paragraphs = [
        f"Dear {data.patient_name},",
        "Thank you for booking an appointment with MindCare Hub. "
        "Your request has been received and is pending confirmation.",
        "Your provider will review and confirm the appointment within 24 hours. "
        "Please contact us at least 24 hours in advance to reschedule or cancel.",
    ]
    rows = _appointment_rows(data)
    return deliver(build_message(data.patient_email, subject, _text(paragraphs, rows), _html(subject, paragraphs, rows)))


def send_appointment_status(data: AppointmentEmailData, status: str, note: Optional[str] = None) -> bool:
    subject = f"Appointment {status.capitalize()} - MindCare Hub"
    paragraphs = [
        f"Dear {data.patient_name},",
        f"The status of your appointment has been updated to: {status.upper()}.",
    ]
    if note:
        paragraphs.append(note)
    rows = _appointment_rows(data)
    return deliver(build_message(data.patient_email, subject, _text(paragraphs, rows), _html(subject, paragraphs, rows)))


def send_custom_email(
    patient_email: str,
    patient_name: str,
    counselor_name: str,
    subject: str,
    message: str,
    appointment_id: Optional[int] = None,
) -> bool:
    paragraphs = [f"Dear {patient_name},", *message.splitlines(), f"Kind regards,\n{counselor_name}"]
    rows = [("Appointment ID", f"#{appointment_id}")] if appointment_id else None
    return deliver(build_message(patient_email, subject, _text(paragraphs, rows), _html(subject, paragraphs, rows)))
