from datetime import datetime, timedelta

import pytest

from app import create_app
from config import Config
from models import db
from models.company import Company
from models.email_settings import EmailSettings
from models.experience import Experience
from models.experience_date import ExperienceDate
from models.profile import Profile
from bookings.notifications import shutdown_notifications
from security.session import create_session


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    RESEND_API_KEY = None
    NOTIFICATIONS_ASYNC = False
    JOB_TOKEN = "test-job-token"
    DEFAULT_REMINDER_HOURS = 24
    REMINDER_LOOKAHEAD_HOURS = 48
    REMINDER_WINDOW_HOURS = 1
    REMINDER_CATCH_UP = False


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
    shutdown_notifications(app)


@pytest.fixture
def file_app(tmp_path):
    """App on a file-backed SQLite database, so several threads get real connections."""
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "bookings.db")

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
    shutdown_notifications(app)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def now():
    return datetime.utcnow()


@pytest.fixture
def make_company(app):
    def _make(name="Acme", **settings):
        company = Company(name=name)
        db.session.add(company)
        db.session.flush()
        if settings:
            db.session.add(EmailSettings(company_id=company.id, **settings))
        db.session.commit()
        return company
    return _make


@pytest.fixture
def make_profile(app):
    counter = {"n": 0}

    def _make(company=None, role="employee", first_name="Giulia", email=None):
        counter["n"] += 1
        profile = Profile(
            email=email or f"user{counter['n']}@example.com",
            first_name=first_name,
            last_name="Rossi",
            role=role,
            company_id=company.id if company else None,
        )
        db.session.add(profile)
        db.session.commit()
        return profile
    return _make


@pytest.fixture
def make_date(app, now):
    def _make(hours_ahead=72, max_participants=2, company=None, title="Pulizia del parco", **experience_fields):
        experience = Experience(
            title=title,
            city=experience_fields.pop("city", "Milano"),
            association_name=experience_fields.pop("association_name", "Legambiente"),
            category=experience_fields.pop("category", "Ambiente"),
            **experience_fields,
        )
        db.session.add(experience)
        db.session.flush()

        start = now + timedelta(hours=hours_ahead)
        date = ExperienceDate(
            experience_id=experience.id,
            company_id=company.id if company else None,
            start_datetime=start,
            end_datetime=start + timedelta(hours=3),
            max_participants=max_participants,
        )
        db.session.add(date)
        db.session.commit()
        return date
    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(profile):
        token = create_session(profile.id)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def outbox(monkeypatch):
    """Captures emails instead of simulating them; each one gets a fake delivery id."""
    sent = []

    def fake_send(to_email, subject, html):
        sent.append({"to": to_email, "subject": subject, "html": html})
        return "sent", f"msg-{len(sent)}"

    monkeypatch.setattr("bookings.notifications.send_email", fake_send)
    monkeypatch.setattr("bookings.reminders.send_email", fake_send)
    return sent
