from datetime import datetime
from models.db import db

class EmailSettings(db.Model):
    __tablename__ = "email_settings"

    id = db.Column(db.Integer, primary_key=True)
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=False, unique=True)

    confirmation_enabled = db.Column(db.Boolean, default=True, nullable=False)
    reminder_enabled = db.Column(db.Boolean, default=True, nullable=False)
    reminder_hours_before = db.Column(db.Integer, default=24, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
