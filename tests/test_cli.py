from models import db
from models.audit_log import AuditLog
from models.booking import Booking
from models.experience_date import ExperienceDate
from bookings.capacity import create_booking


def test_send_booking_reminders_command(app, make_profile, make_date):
    date = make_date(hours_ahead=23.5)
    create_booking(make_profile().id, date.id)

    result = app.test_cli_runner().invoke(args=["send-booking-reminders"])

    assert result.exit_code == 0
    assert "'emails_sent': 1" in result.output
    assert AuditLog.query.filter_by(action="REMINDER_PASS").count() == 1


def test_recount_capacity_command(app, make_profile, make_date):
    date = make_date(max_participants=5)
    db.session.add(Booking(user_id=make_profile().id, experience_date_id=date.id))
    db.session.commit()

    result = app.test_cli_runner().invoke(args=["recount-capacity", "--date-id", str(date.id)])

    assert result.exit_code == 0
    assert f"experience_date {date.id}: 1 confirmed" in result.output
    assert db.session.get(ExperienceDate, date.id).confirmed_count == 1
