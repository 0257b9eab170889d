# backend/stockbook/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key. Also signs session tokens.
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockbook.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockbook.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Single-tenant credential checked at login
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@stockbook.local")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "Password123!")
    # Precomputed bcrypt hash; takes precedence over ADMIN_PASSWORD when set
    ADMIN_PASSWORD_HASH = os.environ.get("ADMIN_PASSWORD_HASH")
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Session cookie
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "jwt")
    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))
    SESSION_COOKIE_SECURE = _env_bool("SESSION_COOKIE_SECURE", False)
    JWT_ALGORITHM = "HS256"

    # Comma separated list of browser origins allowed to call the API
    FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:5173")

    LOW_STOCK_THRESHOLD = int(os.environ.get("LOW_STOCK_THRESHOLD", "10"))
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Outgoing mail for /report/send-report
    MAIL_SERVER = os.environ.get("MAIL_SERVER")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER")
