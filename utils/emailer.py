import logging

import resend
from flask import current_app

from bookings.errors import TransportFailure
from models.email_log import EMAIL_STATUS_SENT, EMAIL_STATUS_SIMULATED

logger = logging.getLogger(__name__)


def send_email(to_email: str, subject: str, html: str):
    """
    Send one HTML email through Resend.

    Returns (status, delivery_id). Without RESEND_API_KEY nothing leaves the
    process and the status is "simulated". Any transport error is raised as
    TransportFailure.
    """
    api_key = current_app.config.get("RESEND_API_KEY")
    from_email = current_app.config.get("MAIL_FROM")

    if not api_key:
        logger.info("RESEND_API_KEY not configured, simulating email to %s (%s)", to_email, subject)
        return EMAIL_STATUS_SIMULATED, None

    resend.api_key = api_key
    resend.default_http_client = resend.RequestsClient(
        timeout=current_app.config.get("MAIL_TIMEOUT_SECONDS", 10)
    )
    params = {
        "from": from_email,
        "to": [to_email],
        "subject": subject,
        "html": html,
    }

    try:
        result = resend.Emails.send(params)
    except Exception as exc:
        raise TransportFailure(f"Failed to send email to {to_email}: {exc}") from exc

    delivery_id = result.get("id") if isinstance(result, dict) else getattr(result, "id", None)
    logger.info("Email sent to %s id=%s", to_email, delivery_id)
    return EMAIL_STATUS_SENT, delivery_id
