import threading
from datetime import datetime, timedelta

import pytest
from sqlalchemy import text

from models import db
from models.booking import Booking, BOOKING_CANCELLED, BOOKING_CONFIRMED
from models.email_log import EmailLog
from models.experience import Experience
from models.experience_date import ExperienceDate
from models.profile import Profile
from bookings.availability import available_spots, confirmed_count
from bookings.capacity import cancel_booking, create_booking, recount_confirmed
from bookings.errors import AlreadyBooked, BookingNotFound, CapacityExceeded, DateInPast, DateNotFound, TransportFailure


def test_full_date_refuses_then_accepts_after_cancellation(make_profile, make_date):
    date = make_date(max_participants=2)
    a, b, c = make_profile(), make_profile(), make_profile()

    booking_a = create_booking(a.id, date.id)
    create_booking(b.id, date.id)

    with pytest.raises(CapacityExceeded):
        create_booking(c.id, date.id)

    cancel_booking(booking_a.id)
    booking_c = create_booking(c.id, date.id)

    assert booking_c.status == BOOKING_CONFIRMED
    assert confirmed_count(date.id) == 2
    assert db.session.get(ExperienceDate, date.id).confirmed_count == 2


def test_second_booking_for_same_pair_is_already_booked(make_profile, make_date):
    date = make_date(max_participants=5)
    user = make_profile()

    create_booking(user.id, date.id)
    with pytest.raises(AlreadyBooked):
        create_booking(user.id, date.id)

    # the failed attempt gave its seat back
    assert db.session.get(ExperienceDate, date.id).confirmed_count == 1
    assert available_spots(db.session.get(ExperienceDate, date.id)) == 4


def test_capacity_is_checked_before_duplicates(make_profile, make_date):
    date = make_date(max_participants=1)
    user = make_profile()

    create_booking(user.id, date.id)
    with pytest.raises(CapacityExceeded):
        create_booking(user.id, date.id)


def test_cancel_is_idempotent(make_profile, make_date):
    date = make_date(max_participants=3)
    user = make_profile()
    booking = create_booking(user.id, date.id)

    first = cancel_booking(booking.id)
    spots_after_first = available_spots(db.session.get(ExperienceDate, date.id))
    second = cancel_booking(booking.id)

    assert first.status == BOOKING_CANCELLED
    assert second.status == BOOKING_CANCELLED
    assert available_spots(db.session.get(ExperienceDate, date.id)) == spots_after_first == 3
    assert db.session.get(ExperienceDate, date.id).confirmed_count == 0


def test_user_can_book_again_after_cancelling(make_profile, make_date):
    date = make_date()
    user = make_profile()

    first = create_booking(user.id, date.id)
    cancel_booking(first.id)
    second = create_booking(user.id, date.id)

    assert second.id != first.id
    assert Booking.query.filter_by(user_id=user.id, experience_date_id=date.id).count() == 2
    assert confirmed_count(date.id) == 1


def test_started_dates_are_not_bookable(make_profile, make_date):
    date = make_date(hours_ahead=-1)
    with pytest.raises(DateInPast):
        create_booking(make_profile().id, date.id)
    assert Booking.query.count() == 0


def test_unknown_date_and_booking(make_profile):
    with pytest.raises(DateNotFound):
        create_booking(make_profile().id, 9999)
    with pytest.raises(BookingNotFound):
        cancel_booking(9999)


def test_sequential_calls_never_overbook(make_profile, make_date):
    date = make_date(max_participants=3)
    users = [make_profile() for _ in range(6)]
    bookings = []

    for user in users:
        try:
            bookings.append(create_booking(user.id, date.id))
        except CapacityExceeded:
            pass
        assert confirmed_count(date.id) <= 3

    cancel_booking(bookings[0].id)
    cancel_booking(bookings[0].id)
    for user in users[3:]:
        try:
            create_booking(user.id, date.id)
        except CapacityExceeded:
            pass
        assert confirmed_count(date.id) <= 3

    assert confirmed_count(date.id) == 3


def test_booking_sends_confirmation(make_profile, make_date):
    date = make_date()
    booking = create_booking(make_profile().id, date.id)

    log = EmailLog.query.filter_by(booking_id=booking.id).one()
    assert log.email_type == "booking_confirmation"
    assert log.status == "simulated"


def test_confirmation_failure_does_not_fail_booking(monkeypatch, make_profile, make_date):
    def broken_transport(to_email, subject, html):
        raise TransportFailure("smtp down")

    monkeypatch.setattr("bookings.notifications.send_email", broken_transport)
    date = make_date()

    booking = create_booking(make_profile().id, date.id)

    assert db.session.get(Booking, booking.id).status == BOOKING_CONFIRMED
    assert EmailLog.query.count() == 0


def test_recount_repairs_counter_drift(make_profile, make_date, now):
    date = make_date(max_participants=4)
    create_booking(make_profile().id, date.id)
    # row written behind the manager's back
    db.session.add(Booking(user_id=make_profile().id, experience_date_id=date.id, created_at=now - timedelta(minutes=1)))
    db.session.commit()

    assert recount_confirmed(date.id) == 2
    assert db.session.get(ExperienceDate, date.id).confirmed_count == 2


def test_concurrent_callers_cannot_overbook_last_seat(file_app):
    callers = 8
    with file_app.app_context():
        experience = Experience(title="Banco alimentare", city="Torino", association_name="Caritas")
        db.session.add(experience)
        db.session.flush()
        start = datetime.utcnow() + timedelta(days=2)
        date = ExperienceDate(
            experience_id=experience.id,
            start_datetime=start,
            end_datetime=start + timedelta(hours=2),
            max_participants=1,
        )
        profiles = [Profile(email=f"racer{i}@example.com", first_name="Luca", role="employee") for i in range(callers)]
        db.session.add(date)
        db.session.add_all(profiles)
        db.session.commit()
        date_id = date.id
        user_ids = [p.id for p in profiles]

    barrier = threading.Barrier(callers)
    results = []

    def attempt(user_id):
        with file_app.app_context():
            barrier.wait()
            try:
                create_booking(user_id, date_id)
                results.append("ok")
            except CapacityExceeded:
                results.append("full")
            finally:
                db.session.remove()

    threads = [threading.Thread(target=attempt, args=(uid,)) for uid in user_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(results) == ["full"] * (callers - 1) + ["ok"]
    with file_app.app_context():
        assert confirmed_count(date_id) == 1
        assert db.session.get(ExperienceDate, date_id).confirmed_count == 1


def _sql_ts(value):
    return value.strftime("%Y-%m-%d %H:%M:%S.%f")


def test_dates_inserted_outside_the_orm_start_with_no_seats_taken(make_date, now):
    experience_id = make_date().experience_id
    db.session.execute(
        text(
            "INSERT INTO experience_dates (experience_id, start_datetime, end_datetime, max_participants, created_at) "
            "VALUES (:experience_id, :start, :end, 4, :now)"
        ),
        {
            "experience_id": experience_id,
            "start": _sql_ts(now + timedelta(days=1)),
            "end": _sql_ts(now + timedelta(days=1, hours=2)),
            "now": _sql_ts(now),
        },
    )
    db.session.commit()

    row = ExperienceDate.query.filter_by(experience_id=experience_id, max_participants=4).one()
    assert row.confirmed_count == 0
    assert available_spots(row) == 4
