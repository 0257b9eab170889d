# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/stockbook/routes/auth.py
"""
Authentication API routes

- /login checks the operator credential and sets the session cookie
- /logout clears the cookie
- /fetchUser echoes the session identity
"""

from flask import Blueprint, request, current_app, g

from ..responses import ok, fail
from ..services import auth_service
from ..services import session_service
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__)


@auth_bp.post("/login")
def login_route():
    """
    Authenticate the operator and issue a session cookie.

    400 when email or password is missing or not a string, 401 on bad
    credentials.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            return fail("email and password required", 400)
        if not isinstance(email, str) or not isinstance(password, str):
            return fail("email and password must be strings", 400)

        identity = auth_service.authenticate(email, password)
        if not identity:
            current_app.logger.warning("Failed login for %s from %s", email, request.remote_addr)
            return fail("Invalid credentials", 401)

        token = session_service.issue_token(identity)
        response, status = ok({"email": identity, "message": "Login successful"})
        session_service.set_session_cookie(response, token)
        current_app.logger.info("Login for %s", identity)
        return response, status

    except Exception:
        current_app.logger.exception("Failed to login user")
        return fail("Internal server error", 500)


@auth_bp.post("/logout")
def logout_route():
    response, status = ok({"message": "Logged out"})
    session_service.clear_session_cookie(response)
    return response, status


@auth_bp.get("/fetchUser")
@require_auth
def fetch_user_route():
    return ok({"user": g.session_context.to_dict()})
