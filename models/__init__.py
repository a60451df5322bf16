from .db import db
from .company import Company
from .profile import Profile
from .experience import Experience
from .experience_date import ExperienceDate
from .booking import Booking
from .email_settings import EmailSettings
from .email_template import EmailTemplate
from .email_log import EmailLog
from .session import Session
from .audit_log import AuditLog
