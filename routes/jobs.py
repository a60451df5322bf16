import hmac
import logging

from flask import Blueprint, jsonify, request, current_app
from bookings.reminders import run_reminder_pass
from security.rbac import has_role
from utils.audit import log_event

logger = logging.getLogger(__name__)

jobs_bp = Blueprint("jobs", __name__, url_prefix="/jobs")


def _authorized() -> bool:
    expected = current_app.config.get("JOB_TOKEN")
    provided = request.headers.get("X-Job-Token")
    if expected and provided and hmac.compare_digest(expected, provided):
        return True
    return has_role("super_admin")


@jobs_bp.post("/booking-reminders")
def booking_reminders():
    """Entry point for the external scheduler (every 15-60 minutes)."""
    if not _authorized():
        return jsonify(error="Forbidden"), 403

    try:
        summary = run_reminder_pass()
    except Exception as exc:
        logger.exception("Reminder pass aborted")
        return jsonify(error=str(exc)), 500

    log_event("REMINDER_PASS", entity="job", entity_id="booking-reminders", metadata=summary.to_dict())
    return jsonify(success=True, **summary.to_dict()), 200
