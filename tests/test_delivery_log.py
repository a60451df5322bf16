from models import db
from models.booking import Booking
from models.email_log import EmailLog
from bookings.delivery_log import has_been_sent, list_entries, record_sent


def _booking(make_profile, make_date):
    booking = Booking(user_id=make_profile().id, experience_date_id=make_date().id)
    db.session.add(booking)
    db.session.commit()
    return booking


def test_record_then_has_been_sent(make_profile, make_date):
    booking = _booking(make_profile, make_date)

    assert not has_been_sent(booking.id, "booking_reminder")
    assert record_sent(booking.id, "booking_reminder", "sent", delivery_id="msg-1")
    assert has_been_sent(booking.id, "booking_reminder")
    assert not has_been_sent(booking.id, "booking_confirmation")


def test_duplicate_record_is_benign(make_profile, make_date):
    booking = _booking(make_profile, make_date)

    assert record_sent(booking.id, "booking_reminder", "sent")
    assert record_sent(booking.id, "booking_reminder", "simulated") is False

    rows = EmailLog.query.filter_by(booking_id=booking.id).all()
    assert len(rows) == 1
    assert rows[0].status == "sent"


def test_list_entries_filters(make_profile, make_date):
    first = _booking(make_profile, make_date)
    second = _booking(make_profile, make_date)
    record_sent(first.id, "booking_confirmation", "simulated")
    record_sent(first.id, "booking_reminder", "sent")
    record_sent(second.id, "booking_reminder", "sent")

    assert len(list_entries()) == 3
    assert {r.booking_id for r in list_entries(email_type="booking_reminder")} == {first.id, second.id}
    assert [r.email_type for r in list_entries(booking_id=first.id, status="simulated")] == ["booking_confirmation"]
    assert len(list_entries(limit=None)) == 3
    assert len(list_entries(limit=1)) == 1


def test_list_entries_limit_is_clamped(make_profile, make_date):
    booking = _booking(make_profile, make_date)
    record_sent(booking.id, "booking_confirmation", "sent")
    record_sent(booking.id, "booking_reminder", "sent")

    assert len(list_entries(limit=0)) == 1
    assert len(list_entries(limit=-3)) == 1
    assert len(list_entries(limit=10_000)) == 2
