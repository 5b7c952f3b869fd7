"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from datetime import datetime
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, FRONTEND_URL, RESEND_API_KEY
from .email_templates import consultation_confirmation_template, consultation_reminder_template
from .exceptions import SideEffectError

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY

CONSULTATION_LABELS = {"skin": "Skin Care", "hair": "Hair Care"}


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        # mjml_to_html returns a dict with 'html' and 'errors' keys
        if result.get("errors"):
            logger.warning(f"MJML compilation warnings: {result['errors']}")
        return result["html"]
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise SideEffectError(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise SideEffectError("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to
    sender = from_address or EMAIL_FROM_ADDRESS

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        response = resend.Emails.send(
            {
                "from": sender,
                "to": recipients,
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise SideEffectError(f"Failed to send email: {str(e)}") from e


def format_schedule_date(value: Optional[datetime]) -> str:
    """e.g. 'Wednesday, 21 October 2026'"""
    if not value:
        return "Not scheduled"
    return f"{value.strftime('%A')}, {value.day} {value.strftime('%B %Y')}"


def confirmation_url_for(reference_number: str) -> str:
    return f"{FRONTEND_URL}/consultation/confirmation/{reference_number}"


def _template_args(booking) -> dict:
    return {
        "name": booking.name,
        "reference_number": booking.referenceNumber,
        "consultation_label": CONSULTATION_LABELS.get(booking.consultationType, booking.consultationType),
        "date_label": format_schedule_date(booking.scheduledDate),
        "time_label": booking.scheduledTime or "Not scheduled",
        "confirmation_url": confirmation_url_for(booking.referenceNumber),
    }


async def send_consultation_confirmation(booking) -> dict:
    """Send the booking confirmation for a ConsultationResponse"""
    if not booking.email:
        raise SideEffectError(f"Consultation {booking.referenceNumber} has no email address")

    return await send_email(
        to=booking.email,
        subject=f"Consultation Confirmed - {booking.referenceNumber}",
        mjml_content=consultation_confirmation_template(**_template_args(booking)),
    )


async def send_consultation_reminder(booking) -> dict:
    """Send the pre-consultation reminder for a ConsultationResponse"""
    if not booking.email:
        raise SideEffectError(f"Consultation {booking.referenceNumber} has no email address")

    return await send_email(
        to=booking.email,
        subject=f"Reminder: Your Consultation {booking.referenceNumber}",
        mjml_content=consultation_reminder_template(**_template_args(booking)),
    )
