import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite file next to app.py unless DATABASE_URL points at Postgres
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "volunteering.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Sessions are issued by the login flow; we only validate them
    AUTH_COOKIE_NAME = "volunteering_session"
    SESSION_LIFETIME_SECONDS = 8 * 60 * 60
    IDLE_TIMEOUT_SECONDS = 20 * 60

    # Mail transport (Resend). No key means emails are simulated and logged.
    RESEND_API_KEY = os.getenv("RESEND_API_KEY")
    MAIL_FROM = os.getenv("MAIL_FROM", "Bravo! <noreply@notifications.bravoapp.it>")
    DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "Europe/Rome")
    MAIL_TIMEOUT_SECONDS = int(os.getenv("MAIL_TIMEOUT_SECONDS", "10"))

    # Confirmation emails run on a background pool
    NOTIFICATIONS_ASYNC = _env_bool("NOTIFICATIONS_ASYNC", "true")
    NOTIFICATION_WORKERS = int(os.getenv("NOTIFICATION_WORKERS", "2"))

    # Reminder pass
    DEFAULT_REMINDER_HOURS = int(os.getenv("DEFAULT_REMINDER_HOURS", "24"))
    REMINDER_LOOKAHEAD_HOURS = int(os.getenv("REMINDER_LOOKAHEAD_HOURS", "48"))
    REMINDER_WINDOW_HOURS = float(os.getenv("REMINDER_WINDOW_HOURS", "1"))
    REMINDER_CATCH_UP = _env_bool("REMINDER_CATCH_UP", "false")

    # Shared secret for the external cron calling /jobs/booking-reminders
    JOB_TOKEN = os.getenv("JOB_TOKEN")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False
