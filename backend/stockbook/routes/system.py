# backend/stockbook/routes/system.py
"""
System health endpoint.

Unauthenticated; used by deploy probes.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import InventoryItem, Customer, Sale

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity with a row count per table.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        details = {
            "items": db.session.scalar(select(func.count()).select_from(InventoryItem)),
            "customers": db.session.scalar(select(func.count()).select_from(Customer)),
            "sales": db.session.scalar(select(func.count()).select_from(Sale)),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    healthy = database["status"] == "healthy"
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "checks": {"database": database},
    }
    return body, 200 if healthy else 503
