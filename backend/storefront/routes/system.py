# Overview: Flask API routes for system health and version; returns JSON responses.

"""
System health and version endpoints.
"""

import sys
import time
from flask import Blueprint, current_app
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import InventoryItem, SessionToken, User
from ..services.storage_service import LocalStorage, get_storage
from storefront.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    start_time = time.time()
    try:
        item_count = db.session.query(InventoryItem).count()
        user_count = db.session.query(User).count()
        active_sessions = db.session.query(SessionToken).filter_by(is_revoked=False).count()
    except SQLAlchemyError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error"
        }

    elapsed_ms = (time.time() - start_time) * 1000
    return {
        "status": "healthy" if user_count else "degraded",
        "latency_ms": round(elapsed_ms, 2),
        "details": {
            "inventory_items": item_count,
            "users": user_count,
            "active_sessions": active_sessions,
        },
        **({} if user_count else {"warning": "No back-office users; run `flask users create`"}),
    }


def check_storage_health() -> dict:
    storage = get_storage()
    details = {
        "backend": current_app.config.get("STORAGE_BACKEND", "local"),
        "bucket": storage.bucket,
    }
    if isinstance(storage, LocalStorage) and not storage.root.exists():
        return {"status": "degraded", "warning": "Upload folder does not exist yet", "details": details}
    return {"status": "healthy", "details": details}


@system_bp.get("/health")
def health():
    """
    Health check.

    Returns:
    - 200: healthy or degraded (still operational)
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    storage_health = check_storage_health()

    all_checks = [database_health, storage_health]
    if any(c["status"] == "unhealthy" for c in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(c["status"] == "degraded" for c in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round((time.time() - start_time) * 1000, 2),
        "checks": {
            "database": database_health,
            "storage": storage_health,
        }
    }, http_status


@system_bp.get("/version")
def version():
    """Non-sensitive deployment info."""
    env = "production" if not current_app.debug else "development"

    return {
        "api_version": "1.0.0",
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
