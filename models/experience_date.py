from datetime import datetime
from models.db import db

class ExperienceDate(db.Model):
    __tablename__ = "experience_dates"

    id = db.Column(db.Integer, primary_key=True)

    experience_id = db.Column(db.Integer, db.ForeignKey("experiences.id"), nullable=False, index=True)
    # when set, only that company's employees see the date
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True, index=True)

    start_datetime = db.Column(db.DateTime, nullable=False, index=True)
    end_datetime = db.Column(db.DateTime, nullable=False)

    max_participants = db.Column(db.Integer, nullable=False, default=10)
    volunteer_hours = db.Column(db.Float, nullable=True)
    beneficiaries_count = db.Column(db.Integer, nullable=True)

    # Seats claimed by confirmed bookings. Only bookings.capacity writes it.
    confirmed_count = db.Column(db.Integer, nullable=False, default=0, server_default="0")

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    experience = db.relationship("Experience", lazy="joined")

    __table_args__ = (
        db.CheckConstraint("max_participants > 0", name="ck_experience_dates_capacity_positive"),
        db.CheckConstraint("end_datetime > start_datetime", name="ck_experience_dates_time_order"),
    )
