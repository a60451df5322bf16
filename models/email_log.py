from datetime import datetime
from models.db import db

# status values written by the core; failed sends are never persisted
EMAIL_STATUS_SENT = "sent"
EMAIL_STATUS_SIMULATED = "simulated"


class EmailLog(db.Model):
    __tablename__ = "email_logs"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)
    email_type = db.Column(db.String(40), nullable=False)  # booking_confirmation, booking_reminder

    status = db.Column(db.String(20), nullable=False, default=EMAIL_STATUS_SENT)
    delivery_id = db.Column(db.String(120), nullable=True)  # transport message id

    sent_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        # Existence of a row means "do not send again"
        db.UniqueConstraint("booking_id", "email_type", name="uq_email_logs_booking_type"),
    )
