from datetime import datetime
from models.db import db

class Profile(db.Model):
    __tablename__ = "profiles"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    first_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=True)
    role = db.Column(db.String(32), nullable=False, default="employee")
    # role values: employee, hr_admin, association_admin, super_admin

    # null for platform staff that do not belong to a company
    company_id = db.Column(db.Integer, db.ForeignKey("companies.id"), nullable=True, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
