import logging
from concurrent.futures import ThreadPoolExecutor

from flask import current_app

from models import db
from models.booking import Booking
from models.email_settings import EmailSettings
from models.email_template import EMAIL_BOOKING_CONFIRMATION
from models.experience import Experience
from models.experience_date import ExperienceDate
from models.profile import Profile
from bookings.delivery_log import record_sent
from bookings.emails import render_booking_email
from bookings.errors import BookingNotFound, DateNotFound, ExperienceNotFound, ProfileNotFound
from utils.emailer import send_email

logger = logging.getLogger(__name__)

EXECUTOR_KEY = "notification_executor"


def init_notifications(app):
    """Attach the background executor used for confirmation emails."""
    workers = app.config.get("NOTIFICATION_WORKERS", 2)
    app.extensions[EXECUTOR_KEY] = ThreadPoolExecutor(
        max_workers=workers,
        thread_name_prefix="notifications",
    )


def _run_confirmation(app, booking_id: int):
    with app.app_context():
        try:
            status = send_booking_confirmation(booking_id)
            logger.info("Confirmation for booking %s: %s", booking_id, status)
        except Exception:
            logger.exception("Confirmation email failed for booking %s", booking_id)
        finally:
            db.session.remove()


def notify_booking_confirmed(booking_id: int):
    """
    Fire-and-forget confirmation email for a freshly created booking.

    Never raises and never blocks on the transport; failures only reach the
    log. With NOTIFICATIONS_ASYNC disabled the email is sent inline, still
    isolated from the caller.
    """
    app = current_app._get_current_object()
    executor = app.extensions.get(EXECUTOR_KEY)

    if not app.config.get("NOTIFICATIONS_ASYNC", True) or executor is None:
        try:
            status = send_booking_confirmation(booking_id)
            logger.info("Confirmation for booking %s: %s", booking_id, status)
        except Exception:
            db.session.rollback()
            logger.exception("Confirmation email failed for booking %s", booking_id)
        return None

    try:
        return executor.submit(_run_confirmation, app, booking_id)
    except RuntimeError:
        # executor already shut down
        logger.exception("Could not schedule confirmation for booking %s", booking_id)
        return None


def send_booking_confirmation(booking_id: int) -> str:
    """
    Build and send the confirmation email for one booking.

    Returns "sent", "simulated", "disabled" (company turned confirmations
    off) or "duplicate" (already in the delivery log).
    """
    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound()

    profile = db.session.get(Profile, booking.user_id)
    if profile is None:
        raise ProfileNotFound(f"Profile not found for user {booking.user_id}")

    date = db.session.get(ExperienceDate, booking.experience_date_id)
    if date is None:
        raise DateNotFound(f"Experience date {booking.experience_date_id} not found")

    experience = db.session.get(Experience, date.experience_id)
    if experience is None:
        raise ExperienceNotFound(f"Experience {date.experience_id} not found")

    if profile.company_id is not None:
        settings = EmailSettings.query.filter_by(company_id=profile.company_id).first()
        if settings is not None and not settings.confirmation_enabled:
            logger.info("Confirmation emails disabled for company %s", profile.company_id)
            return "disabled"

    email = render_booking_email(EMAIL_BOOKING_CONFIRMATION, profile, experience, date)

    status, delivery_id = send_email(profile.email, email["subject"], email["html"])

    if not record_sent(booking.id, EMAIL_BOOKING_CONFIRMATION, status, delivery_id=delivery_id):
        return "duplicate"
    return status


def shutdown_notifications(app, wait=True):
    executor = app.extensions.pop(EXECUTOR_KEY, None)
    if executor is not None:
        executor.shutdown(wait=wait)
