from datetime import datetime

from flask import Blueprint, request, jsonify, g
from models import db
from models.booking import Booking
from models.experience_date import ExperienceDate
from models.profile import Profile
from bookings.availability import available_spots, available_spots_for, availability_label
from bookings.capacity import create_booking, cancel_booking
from bookings.errors import BookingError, BookingNotFound
from security.rbac import require_roles
from utils.auth_context import login_required
from utils.audit import log_event

booking_bp = Blueprint("booking", __name__)


def _error(exc: BookingError):
    return jsonify(error=exc.message), exc.status_code


def _date_json(d: ExperienceDate, spots: int):
    return {
        "id": d.id,
        "experience_id": d.experience_id,
        "company_id": d.company_id,
        "start_datetime": d.start_datetime.isoformat(),
        "end_datetime": d.end_datetime.isoformat(),
        "max_participants": d.max_participants,
        "available_spots": spots,
        "availability": availability_label(spots),
        "is_full": spots == 0,
    }


def _booking_json(b: Booking):
    return {
        "id": b.id,
        "user_id": b.user_id,
        "experience_date_id": b.experience_date_id,
        "status": b.status,
        "created_at": b.created_at.isoformat(),
        "cancelled_at": b.cancelled_at.isoformat() if b.cancelled_at else None,
    }


# ---------- EMPLOYEES: browse upcoming dates ----------
@booking_bp.get("/experience-dates")
@login_required
def list_experience_dates():
    experience_id = request.args.get("experience_id", type=int)

    q = ExperienceDate.query.filter(ExperienceDate.start_datetime > datetime.utcnow())
    if experience_id:
        q = q.filter_by(experience_id=experience_id)

    # company-restricted dates are only listed to that company's employees
    if g.user.role != "super_admin":
        q = q.filter(
            (ExperienceDate.company_id.is_(None)) | (ExperienceDate.company_id == g.user.company_id)
        )

    dates = q.order_by(ExperienceDate.start_datetime.asc()).all()
    spots = available_spots_for(dates)
    return jsonify([_date_json(d, spots[d.id]) for d in dates]), 200


@booking_bp.get("/experience-dates/<int:date_id>/availability")
@login_required
def experience_date_availability(date_id: int):
    date = db.session.get(ExperienceDate, date_id)
    if not date:
        return jsonify(error="Experience date not found"), 404
    return jsonify(_date_json(date, available_spots(date))), 200


# ---------- EMPLOYEES: book a date (capacity + duplicate safe) ----------
@booking_bp.post("/bookings")
@login_required
def create_booking_route():
    data = request.get_json(silent=True) or {}
    date_id = data.get("experience_date_id")
    if not date_id:
        return jsonify(error="experience_date_id required"), 400

    try:
        date_id = int(date_id)
    except (TypeError, ValueError):
        return jsonify(error="experience_date_id must be an integer"), 400

    try:
        booking = create_booking(g.user.id, date_id)
    except BookingError as exc:
        log_event(
            "BOOKING_FAIL",
            user_id=g.user.id,
            entity="experience_date",
            entity_id=date_id,
            metadata={"reason": exc.message},
        )
        return _error(exc)

    log_event(
        "BOOKING_CREATE",
        user_id=g.user.id,
        entity="booking",
        entity_id=booking.id,
        metadata={"experience_date_id": booking.experience_date_id},
    )
    return jsonify(_booking_json(booking)), 201


# ---------- EMPLOYEES: cancel own booking ----------
@booking_bp.post("/bookings/<int:booking_id>/cancel")
@login_required
def cancel_booking_route(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking or booking.user_id != g.user.id:
        return _error(BookingNotFound())

    try:
        booking = cancel_booking(booking_id)
    except BookingError as exc:
        return _error(exc)

    log_event("BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking_id)
    return jsonify(_booking_json(booking)), 200


# ---------- EMPLOYEES: my bookings ----------
@booking_bp.get("/bookings/me")
@login_required
def my_bookings():
    status = request.args.get("status")  # confirmed/cancelled
    q = Booking.query.filter_by(user_id=g.user.id)
    if status:
        q = q.filter_by(status=status)

    rows = q.order_by(Booking.created_at.desc()).all()

    date_ids = [b.experience_date_id for b in rows]
    dates = {d.id: d for d in ExperienceDate.query.filter(ExperienceDate.id.in_(date_ids)).all()}

    out = []
    for b in rows:
        d = dates.get(b.experience_date_id)
        item = _booking_json(b)
        item["experience_date"] = {
            "experience_id": d.experience_id if d else None,
            "start_datetime": d.start_datetime.isoformat() if d else None,
            "end_datetime": d.end_datetime.isoformat() if d else None,
        }
        out.append(item)
    return jsonify(out), 200


# ---------- HR/SUPER ADMIN: cancel any booking ----------
@booking_bp.post("/bookings/<int:booking_id>/admin_cancel")
@require_roles("hr_admin")
def admin_cancel_booking(booking_id: int):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        return _error(BookingNotFound())

    # HR admins only manage their own company's employees
    if g.user.role != "super_admin":
        owner = db.session.get(Profile, booking.user_id)
        if not owner or owner.company_id != g.user.company_id:
            return _error(BookingNotFound())

    booking = cancel_booking(booking_id)
    log_event("ADMIN_BOOKING_CANCEL", user_id=g.user.id, entity="booking", entity_id=booking_id)
    return jsonify(_booking_json(booking)), 200
