import hashlib
import secrets
from datetime import datetime, timedelta
from flask import request, current_app

from models import db
from models.session import Session

def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def uses_bearer_auth() -> bool:
    return request.headers.get("Authorization", "").lower().startswith("bearer ")


def token_from_request():
    # Browser calls carry the cookie, the cron trigger and mobile clients a bearer token
    if uses_bearer_auth():
        return request.headers["Authorization"][7:].strip() or None
    cookie_name = current_app.config.get("AUTH_COOKIE_NAME", "volunteering_session")
    return request.cookies.get(cookie_name)


def create_session(profile_id: int) -> str:
    """
    Stores a session for a profile signed in by the login flow and returns
    the raw token. Only the hash is kept in the database.

    Sign-in lives outside this service, so here it is called only by the
    test fixtures; the external login flow writes the same rows.
    """
    raw_token = secrets.token_urlsafe(32)

    lifetime = current_app.config.get("SESSION_LIFETIME_SECONDS", 28800)
    row = Session(
        profile_id=profile_id,
        token_hash=_hash_token(raw_token),
        expires_at=datetime.utcnow() + timedelta(seconds=lifetime),
    )
    db.session.add(row)
    db.session.commit()
    return raw_token


def get_session_from_request():
    raw_token = token_from_request()
    if not raw_token:
        return None

    now = datetime.utcnow()
    sess = Session.query.filter_by(token_hash=_hash_token(raw_token), revoked=False).first()
    if not sess or sess.expires_at <= now:
        return None

    idle_seconds = current_app.config.get("IDLE_TIMEOUT_SECONDS", 1200)
    last_seen = sess.last_seen_at or sess.created_at
    if (last_seen + timedelta(seconds=idle_seconds)) <= now:
        return None

    sess.last_seen_at = now
    db.session.commit()
    return sess


def revoke_session(raw_token: str) -> bool:
    """Marks the session revoked. Used by POST /session/logout."""
    if not raw_token:
        return False
    sess = Session.query.filter_by(token_hash=_hash_token(raw_token)).first()
    if not sess:
        return False
    sess.revoked = True
    db.session.commit()
    return True
