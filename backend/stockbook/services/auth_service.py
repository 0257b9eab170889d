# Overview: Service-layer operations for auth; checks login credentials against the configured operator.

"""
Authentication Service

Stockbook has a single operator account, configured through ADMIN_EMAIL and
either ADMIN_PASSWORD (hashed once at startup) or a precomputed
ADMIN_PASSWORD_HASH. There is no user table.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor BCRYPT_ROUNDS, default 12)
- The plaintext password is dropped from config once hashed
- Session tokens are issued separately (see session_service.py)
"""

import hmac

import bcrypt
from flask import current_app


class AuthError(Exception):
    """Raised when the credential configuration is unusable."""
    pass


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for a malformed hash instead of raising.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def configure_admin_credential(app) -> None:
    """Resolve the operator password hash once per app."""
    if not app.config.get("ADMIN_EMAIL"):
        raise AuthError("ADMIN_EMAIL must be configured")

    if not app.config.get("ADMIN_PASSWORD_HASH"):
        password = app.config.get("ADMIN_PASSWORD")
        if not password:
            raise AuthError("ADMIN_PASSWORD or ADMIN_PASSWORD_HASH must be configured")
        app.config["ADMIN_PASSWORD_HASH"] = hash_password(password, app.config.get("BCRYPT_ROUNDS", 12))

    app.config["ADMIN_PASSWORD"] = None


def is_admin_email(email: str | None) -> bool:
    expected = current_app.config["ADMIN_EMAIL"]
    if not email:
        return False
    return hmac.compare_digest(email.strip().lower(), expected.strip().lower())


def authenticate(email: str, password: str) -> str | None:
    """
    Check an email/password pair.

    Returns the canonical operator email on success, None otherwise. The
    bcrypt check runs even for an unknown email so both failures cost the same.
    """
    password_hash = current_app.config["ADMIN_PASSWORD_HASH"]
    password_ok = verify_password(password, password_hash)
    if not is_admin_email(email) or not password_ok:
        return None
    return current_app.config["ADMIN_EMAIL"]
