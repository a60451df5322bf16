from sqlalchemy import func

from models import db
from models.booking import Booking, BOOKING_CONFIRMED


def confirmed_count(experience_date_id: int) -> int:
    return (
        db.session.query(func.count(Booking.id))
        .filter(
            Booking.experience_date_id == experience_date_id,
            Booking.status == BOOKING_CONFIRMED,
        )
        .scalar()
    ) or 0


def available_spots(date) -> int:
    """
    Seats left on an experience date, read at call time.
    Over-booked dates report 0, never a negative number.
    """
    return max(0, date.max_participants - confirmed_count(date.id))


def available_spots_for(dates) -> dict:
    """Same as available_spots for a listing, with one grouped count."""
    date_ids = [d.id for d in dates]
    if not date_ids:
        return {}

    rows = (
        db.session.query(Booking.experience_date_id, func.count(Booking.id))
        .filter(
            Booking.experience_date_id.in_(date_ids),
            Booking.status == BOOKING_CONFIRMED,
        )
        .group_by(Booking.experience_date_id)
        .all()
    )
    counts = {date_id: count for date_id, count in rows}
    return {d.id: max(0, d.max_participants - counts.get(d.id, 0)) for d in dates}


def availability_label(spots: int) -> str:
    if spots <= 0:
        return "Full"
    if spots == 1:
        return "1 spot left"
    return f"{spots} spots left"
