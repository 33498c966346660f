"""
Outgoing email through Resend.

Messages are written as MJML (see email_templates) and compiled to HTML here.
Callers treat every failure as non-fatal; the booking is already committed
when a confirmation goes out.
"""

import logging

import resend
from mjml import mjml_to_html

from .config import EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import appointment_confirmation_template

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


class EmailDeliveryError(Exception):
    pass


def render_mjml(mjml_content: str) -> str:
    result = mjml_to_html(mjml_content)
    # Result is dict-like with "html" and "errors"
    errors = result.get("errors") if hasattr(result, "get") else None
    if errors:
        logger.warning(f"⚠️ MJML reported {len(errors)} issue(s): {errors}")
    return result.get("html", "") if hasattr(result, "get") else str(result)


async def send_email(to: str, subject: str, html_content: str) -> dict:
    """Send one HTML email from the configured sender address"""
    if not RESEND_API_KEY:
        raise EmailDeliveryError("RESEND_API_KEY is not configured")

    try:
        response = resend.Emails.send(
            {
                "from": EMAIL_FROM_ADDRESS,
                "to": [to],
                "subject": subject,
                "html": html_content,
            }
        )
    except Exception as e:
        raise EmailDeliveryError(f"Resend rejected email to {to}: {e}") from e

    logger.info(f"📧 Sent '{subject}' to {to}")
    return response


async def send_appointment_confirmation(confirmation, to: str) -> dict:
    """Confirmation for a freshly committed booking"""
    html = render_mjml(
        appointment_confirmation_template(
            patient_name=confirmation.requester.name,
            doctor_name=confirmation.provider.name,
            provider_id=confirmation.provider.providerId,
            serial_no=confirmation.serialNo,
            date=confirmation.date,
            slot_time=confirmation.slotTimeWindow,
            location_name=confirmation.location.name,
        )
    )
    return await send_email(
        to=to,
        subject=f"Appointment confirmed: Serial {confirmation.serialNo} on {confirmation.date}",
        html_content=html,
    )
