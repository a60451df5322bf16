from datetime import datetime
from sqlalchemy import text
from models.db import db

BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("profiles.id"), nullable=False, index=True)
    experience_date_id = db.Column(db.Integer, db.ForeignKey("experience_dates.id"), nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default=BOOKING_CONFIRMED)
    # status values: confirmed, cancelled

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    cancelled_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        # One confirmed booking per user and date; cancelled rows do not count,
        # so a user can book again after cancelling.
        db.Index(
            "uq_bookings_user_date_confirmed",
            "user_id",
            "experience_date_id",
            unique=True,
            sqlite_where=text("status = 'confirmed'"),
            postgresql_where=text("status = 'confirmed'"),
        ),
    )
