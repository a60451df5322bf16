from .health import health_bp
from .booking import booking_bp
from .jobs import jobs_bp
from .email_logs import email_logs_bp
from .session import session_bp
