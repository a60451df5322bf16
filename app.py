import logging

import click
from flask import Flask, request, g
from flask_migrate import Migrate

from config import Config
from routes import health_bp, booking_bp, jobs_bp, email_logs_bp, session_bp
from models import db
from bookings.notifications import init_notifications
from utils.auth_context import load_current_user
from security.csrf import require_csrf
from security.session import uses_bearer_auth


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Register routes
    app.register_blueprint(health_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(jobs_bp)
    app.register_blueprint(email_logs_bp)
    app.register_blueprint(session_bp)

    # Database init
    db.init_app(app)

    # Migrations
    Migrate(app, db)

    # Background pool for confirmation emails
    init_notifications(app)

    @app.before_request
    def _load_user():
        load_current_user()

    @app.before_request
    def _csrf_protect():
        # Only protect state-changing requests
        if request.method in ("POST", "PUT", "PATCH", "DELETE"):
            # Bearer tokens are never sent by the browser on its own
            if uses_bearer_auth():
                return None

            # Only enforce CSRF if user is already authenticated (cookie session)
            if getattr(g, "user", None) is not None:
                failure = require_csrf()
                if failure:
                    return failure

    @app.after_request
    def add_security_headers(resp):
        resp.headers["X-Content-Type-Options"] = "nosniff"
        resp.headers["X-Frame-Options"] = "DENY"
        resp.headers["Referrer-Policy"] = "no-referrer"
        resp.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none';"
        return resp

    register_cli(app)

    return app

#-------------------------
from bookings.capacity import recount_all, recount_confirmed
from bookings.reminders import run_reminder_pass
from utils.audit import log_event

def register_cli(app):
    @app.cli.command("send-booking-reminders")
    def send_booking_reminders():
        """Run one reminder pass (schedule every 15-60 minutes)."""
        summary = run_reminder_pass()
        log_event("REMINDER_PASS", entity="job", entity_id="booking-reminders", metadata=summary.to_dict())
        click.echo(summary.to_dict())

    @app.cli.command("recount-capacity")
    @click.option("--date-id", type=int, default=None, help="Only this experience date.")
    def recount_capacity(date_id):
        """Rebuild seat counters from confirmed bookings."""
        if date_id is not None:
            counts = {date_id: recount_confirmed(date_id)}
        else:
            counts = recount_all()
        for key, count in counts.items():
            click.echo(f"experience_date {key}: {count} confirmed")

#-------------------------


if __name__ == "__main__":
    app = create_app()
    # Run locally
    app.run(host="127.0.0.1", port=5002)
