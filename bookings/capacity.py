import logging
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, BOOKING_CONFIRMED, BOOKING_CANCELLED
from models.experience_date import ExperienceDate
from bookings.availability import confirmed_count
from bookings.errors import AlreadyBooked, BookingNotFound, CapacityExceeded, DateInPast, DateNotFound
from bookings.notifications import notify_booking_confirmed

logger = logging.getLogger(__name__)


def _claim_seat(experience_date_id: int) -> bool:
    # Single conditional UPDATE: concurrent callers cannot both take the last seat.
    result = db.session.execute(
        update(ExperienceDate)
        .where(
            ExperienceDate.id == experience_date_id,
            ExperienceDate.confirmed_count < ExperienceDate.max_participants,
        )
        .values(confirmed_count=ExperienceDate.confirmed_count + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _release_seat(experience_date_id: int) -> None:
    db.session.execute(
        update(ExperienceDate)
        .where(ExperienceDate.id == experience_date_id, ExperienceDate.confirmed_count > 0)
        .values(confirmed_count=ExperienceDate.confirmed_count - 1)
        .execution_options(synchronize_session=False)
    )


def create_booking(user_id: int, experience_date_id: int, now=None) -> Booking:
    """
    Book one seat on an experience date for a user.

    Raises DateNotFound, DateInPast, CapacityExceeded or AlreadyBooked.
    The seat claim and the booking insert commit together, so a duplicate
    booking never keeps a seat. The confirmation email is dispatched after
    the commit and cannot fail the booking.
    """
    now = now or datetime.utcnow()

    date = db.session.get(ExperienceDate, experience_date_id)
    if date is None:
        raise DateNotFound()

    if date.start_datetime <= now:
        raise DateInPast()

    if not _claim_seat(experience_date_id):
        db.session.rollback()
        logger.info("Date %s is full, booking refused for user %s", experience_date_id, user_id)
        raise CapacityExceeded()

    booking = Booking(user_id=user_id, experience_date_id=experience_date_id, status=BOOKING_CONFIRMED)
    db.session.add(booking)

    try:
        db.session.commit()
    except IntegrityError:
        # uq_bookings_user_date_confirmed; the rollback also gives the seat back
        db.session.rollback()
        logger.info("User %s already booked date %s", user_id, experience_date_id)
        raise AlreadyBooked()

    logger.info("Booking %s created for user %s on date %s", booking.id, user_id, experience_date_id)
    notify_booking_confirmed(booking.id)
    return booking


def cancel_booking(booking_id: int, now=None) -> Booking:
    """Cancel a booking. Cancelling an already cancelled booking is a no-op."""
    now = now or datetime.utcnow()

    booking = db.session.get(Booking, booking_id)
    if booking is None:
        raise BookingNotFound()

    if booking.status == BOOKING_CANCELLED:
        return booking

    result = db.session.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.status == BOOKING_CONFIRMED)
        .values(status=BOOKING_CANCELLED, cancelled_at=now)
        .execution_options(synchronize_session=False)
    )
    # Only the caller that flipped the row releases the seat
    if result.rowcount == 1:
        _release_seat(booking.experience_date_id)
    db.session.commit()

    logger.info("Booking %s cancelled", booking_id)
    return db.session.get(Booking, booking_id)


def recount_confirmed(experience_date_id: int) -> int:
    """Rebuild the seat counter of a date from its confirmed bookings."""
    date = db.session.get(ExperienceDate, experience_date_id)
    if date is None:
        raise DateNotFound()

    count = confirmed_count(experience_date_id)
    if date.confirmed_count != count:
        logger.warning(
            "Seat counter drift on date %s: stored=%s actual=%s",
            experience_date_id, date.confirmed_count, count,
        )
    date.confirmed_count = count
    db.session.commit()
    return count


def recount_all() -> dict:
    ids = [row[0] for row in db.session.query(ExperienceDate.id).order_by(ExperienceDate.id).all()]
    return {date_id: recount_confirmed(date_id) for date_id in ids}
