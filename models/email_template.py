from datetime import datetime
from models.db import db

EMAIL_BOOKING_CONFIRMATION = "booking_confirmation"
EMAIL_BOOKING_REMINDER = "booking_reminder"
EMAIL_TYPES = (EMAIL_BOOKING_CONFIRMATION, EMAIL_BOOKING_REMINDER)


class EmailTemplate(db.Model):
    __tablename__ = "email_templates"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, index=True)
    template_type = db.Column(db.String(40), nullable=False)

    subject = db.Column(db.String(255), nullable=False)
    intro_text = db.Column(db.Text, nullable=True)
    closing_text = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("company_id", "template_type", name="uq_email_templates_company_type"),
    )
