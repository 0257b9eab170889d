# Overview: Service-layer operations for session; issues and validates signed session tokens.

"""
Session Token Management Service

Sessions are stateless: the cookie carries a JWT (HS256, signed with
SECRET_KEY) whose `sub` is the operator email and whose `exp` bounds its
lifetime. Logout clears the cookie; there is no server-side revocation list.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from flask import current_app
from jose import ExpiredSignatureError, JWTError, jwt

from .auth_service import is_admin_email


class SessionError(Exception):
    """Raised when a session token cannot be accepted."""
    pass


@dataclass
class SessionContext:
    email: str
    issued_at: datetime
    expires_at: datetime

    def to_dict(self) -> dict:
        return {
            "email": self.email,
            "issued_at": self.issued_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "expires_at": self.expires_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        }


def _session_ttl() -> timedelta:
    return timedelta(hours=current_app.config.get("SESSION_TTL_HOURS", 24))


def issue_token(email: str, *, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    claims = {
        "sub": email,
        "iat": int(now.timestamp()),
        "exp": int((now + _session_ttl()).timestamp()),
    }
    return jwt.encode(
        claims,
        current_app.config["SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def validate_token(token: str) -> SessionContext:
    """
    Decode and check a session token.

    Raises SessionError("Token expired") or SessionError("Invalid token").
    """
    try:
        claims = jwt.decode(
            token,
            current_app.config["SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
        )
    except ExpiredSignatureError:
        raise SessionError("Token expired")
    except JWTError:
        raise SessionError("Invalid token")

    email = claims.get("sub")
    if not is_admin_email(email):
        raise SessionError("Invalid token")

    try:
        issued_at = datetime.fromtimestamp(int(claims["iat"]), tz=timezone.utc)
        expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=timezone.utc)
    except (KeyError, TypeError, ValueError):
        raise SessionError("Invalid token")

    return SessionContext(email=email, issued_at=issued_at, expires_at=expires_at)


def set_session_cookie(response, token: str):
    response.set_cookie(
        current_app.config.get("AUTH_COOKIE_NAME", "jwt"),
        token,
        max_age=int(_session_ttl().total_seconds()),
        httponly=True,
        secure=bool(current_app.config.get("SESSION_COOKIE_SECURE")),
        samesite="Strict",
    )
    return response


def clear_session_cookie(response):
    response.delete_cookie(
        current_app.config.get("AUTH_COOKIE_NAME", "jwt"),
        httponly=True,
        secure=bool(current_app.config.get("SESSION_COOKIE_SECURE")),
        samesite="Strict",
    )
    return response
