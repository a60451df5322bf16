from flask import Blueprint, jsonify, g, current_app

from security.csrf import issue_csrf_token
from security.session import token_from_request, revoke_session
from utils.auth_context import login_required
from utils.audit import log_event

session_bp = Blueprint("session", __name__, url_prefix="/session")


# Browsers call this after the external sign-in to get the CSRF cookie
@session_bp.get("/me")
@login_required
def me():
    resp = jsonify(
        id=g.user.id,
        email=g.user.email,
        first_name=g.user.first_name,
        last_name=g.user.last_name,
        role=g.user.role,
        company_id=g.user.company_id,
    )
    return issue_csrf_token(resp), 200


@session_bp.post("/logout")
@login_required
def logout():
    revoke_session(token_from_request())
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Logged out")
    resp.delete_cookie(current_app.config.get("AUTH_COOKIE_NAME", "volunteering_session"), path="/")
    return resp, 200
