"""
Reminder pass for upcoming experience dates.

A pass is stateless and can run as often as the external trigger likes,
including two passes at once: the delivery log is what keeps a booking
from being reminded twice. Each company picks its lead time through
EmailSettings; companies without a row get DEFAULT_REMINDER_HOURS.

A date is due while the time left before it sits in the window
[lead - REMINDER_WINDOW_HOURS, lead]. The trigger therefore has to run at
least once per window, unless REMINDER_CATCH_UP is on, in which case the
window stretches down to the start of the event.
"""
import logging
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta

from flask import current_app

from models import db
from models.booking import Booking, BOOKING_CONFIRMED
from models.email_settings import EmailSettings
from models.email_template import EMAIL_BOOKING_REMINDER
from models.experience import Experience
from models.experience_date import ExperienceDate
from models.profile import Profile
from bookings.delivery_log import has_been_sent, record_sent
from bookings.emails import render_booking_email
from bookings.errors import BookingError, ExperienceNotFound, ProfileNotFound, TransportFailure
from utils.emailer import send_email

logger = logging.getLogger(__name__)


@dataclass
class ReminderPolicy:
    enabled: bool
    hours_before: int


@dataclass
class ReminderSummary:
    emails_sent: int = 0
    emails_skipped: int = 0

    def to_dict(self):
        return asdict(self)


def load_policies() -> dict:
    """company_id -> ReminderPolicy. An unreadable settings table means defaults for everyone."""
    try:
        rows = EmailSettings.query.all()
    except Exception:
        db.session.rollback()
        logger.exception("Could not load email settings, using default reminder policy")
        return {}
    return {
        row.company_id: ReminderPolicy(enabled=row.reminder_enabled, hours_before=row.reminder_hours_before)
        for row in rows
    }


def policy_for(company_id, policies: dict) -> ReminderPolicy:
    policy = policies.get(company_id) if company_id is not None else None
    if policy is None:
        return ReminderPolicy(
            enabled=True,
            hours_before=current_app.config.get("DEFAULT_REMINDER_HOURS", 24),
        )
    return policy


def lookahead_hours(policies: dict) -> float:
    configured = [p.hours_before for p in policies.values() if p.enabled]
    base = current_app.config.get("REMINDER_LOOKAHEAD_HOURS", 48)
    default = current_app.config.get("DEFAULT_REMINDER_HOURS", 24)
    return max([base, default] + configured)


def is_due(start_datetime, now, hours_before: int) -> bool:
    hours_until_event = (start_datetime - now).total_seconds() / 3600
    if hours_until_event > hours_before:
        return False

    if current_app.config.get("REMINDER_CATCH_UP", False):
        return hours_until_event >= 0

    window = current_app.config.get("REMINDER_WINDOW_HOURS", 1)
    return hours_until_event >= hours_before - window


def upcoming_dates(now, hours: float):
    return (
        ExperienceDate.query
        .filter(
            ExperienceDate.start_datetime >= now,
            ExperienceDate.start_datetime <= now + timedelta(hours=hours),
        )
        .order_by(ExperienceDate.start_datetime.asc())
        .all()
    )


def _remind_booking(booking, date, summary: ReminderSummary) -> None:
    if has_been_sent(booking.id, EMAIL_BOOKING_REMINDER):
        logger.info("Reminder already sent for booking %s", booking.id)
        summary.emails_skipped += 1
        return

    profile = db.session.get(Profile, booking.user_id)
    if profile is None:
        raise ProfileNotFound(f"Profile not found for user {booking.user_id}")

    experience = db.session.get(Experience, date.experience_id)
    if experience is None:
        raise ExperienceNotFound(f"Experience {date.experience_id} not found")

    email = render_booking_email(EMAIL_BOOKING_REMINDER, profile, experience, date)
    status, delivery_id = send_email(profile.email, email["subject"], email["html"])

    if record_sent(booking.id, EMAIL_BOOKING_REMINDER, status, delivery_id=delivery_id):
        logger.info("Reminder %s for booking %s (%s)", status, booking.id, profile.email)
    summary.emails_sent += 1


def _remind_date(date, summary: ReminderSummary) -> None:
    try:
        bookings = (
            Booking.query
            .filter_by(experience_date_id=date.id, status=BOOKING_CONFIRMED)
            .order_by(Booking.id.asc())
            .all()
        )
    except Exception:
        db.session.rollback()
        logger.exception("Could not load bookings for date %s", date.id)
        return

    for booking in bookings:
        try:
            _remind_booking(booking, date, summary)
        except TransportFailure as exc:
            # nothing logged, the next pass retries this booking
            logger.error("Reminder not delivered for booking %s: %s", booking.id, exc)
        except BookingError as exc:
            logger.error("Reminder skipped for booking %s: %s", booking.id, exc)
        except Exception:
            db.session.rollback()
            logger.exception("Unexpected error sending reminder for booking %s", booking.id)


def run_reminder_pass(now=None) -> ReminderSummary:
    """
    Send every reminder that is due right now.

    Only a failure to read the upcoming dates aborts the pass; anything that
    goes wrong for one booking is logged and left for the next pass.
    """
    now = now or datetime.utcnow()
    logger.info("Starting reminder check at %s", now.isoformat())

    policies = load_policies()
    dates = upcoming_dates(now, lookahead_hours(policies))
    logger.info("Found %s upcoming experience dates", len(dates))

    summary = ReminderSummary()
    for date in dates:
        policy = policy_for(date.company_id, policies)
        if not policy.enabled:
            logger.info("Reminders disabled for company %s", date.company_id)
            continue

        if not is_due(date.start_datetime, now, policy.hours_before):
            continue

        hours_left = (date.start_datetime - now).total_seconds() / 3600
        logger.info("Processing reminders for date %s, %.1f hours until event", date.id, hours_left)
        _remind_date(date, summary)

    logger.info(
        "Reminder job complete. Sent: %s, Skipped: %s",
        summary.emails_sent, summary.emails_skipped,
    )
    return summary
