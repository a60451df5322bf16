from flask import Blueprint, jsonify, request
from bookings.delivery_log import list_entries
from security.rbac import require_roles

email_logs_bp = Blueprint("email_logs", __name__, url_prefix="/super-admin")


@email_logs_bp.get("/email-logs")
@require_roles("super_admin")
def list_email_logs():
    rows = list_entries(
        booking_id=request.args.get("booking_id", type=int),
        email_type=request.args.get("email_type"),
        status=request.args.get("status"),
        limit=request.args.get("limit", type=int),
    )
    return jsonify([
        {
            "id": r.id,
            "booking_id": r.booking_id,
            "email_type": r.email_type,
            "status": r.status,
            "delivery_id": r.delivery_id,
            "sent_at": r.sent_at.isoformat(),
        }
        for r in rows
    ]), 200
