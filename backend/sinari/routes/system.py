# backend/sinari/routes/system.py
"""
System health endpoint.

Reports database connectivity for deployment checks.
"""

import time
from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
    except Exception:
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start_time) * 1000, 2),
            "error": "Database error",
        }
    return {
        "status": "healthy",
        "latency_ms": round((time.time() - start_time) * 1000, 2),
    }


@system_bp.get("/health")
def health():
    database = check_database_health()
    status_code = 200 if database["status"] == "healthy" else 503
    return {
        "status": database["status"],
        "checked_at": to_utc_z(utcnow()),
        "database": database,
    }, status_code
