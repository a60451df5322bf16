from datetime import datetime
from models.db import db

class Experience(db.Model):
    __tablename__ = "experiences"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    city = db.Column(db.String(120), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    association_name = db.Column(db.String(160), nullable=True)
    category = db.Column(db.String(80), nullable=True)

    status = db.Column(db.String(20), nullable=False, default="published")
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
