# Overview: Flask API routes for the admin dashboard, analytics and change polling.

"""
Dashboard Routes

SECURITY: All routes require an authenticated ADMIN_EMAIL session.

Views poll /changes?since=<last fetch> and re-fetch /summary or /analytics
when a topic they care about appears in the response.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_admin, require_auth
from ..services import analytics_service, change_feed
from storefront.time_utils import parse_iso_datetime, to_utc_z, utcnow


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/admin/dashboard")


@dashboard_bp.get("/summary")
@require_auth
@require_admin
def dashboard_summary_route():
    return jsonify({
        **analytics_service.dashboard_summary(),
        "generated_at": to_utc_z(utcnow()),
    })


@dashboard_bp.get("/analytics")
@require_auth
@require_admin
def analytics_route():
    return jsonify({
        **analytics_service.build_analytics(),
        "generated_at": to_utc_z(utcnow()),
    })


@dashboard_bp.get("/changes")
@require_auth
@require_admin
def changes_route():
    """
    Change markers newer than ?since (ISO-8601); all markers when omitted.

    Response: {"changes": [{"key", "changed_at"}], "server_time": ...}
    """
    raw_since = request.args.get("since")
    try:
        since = parse_iso_datetime(raw_since)
    except ValueError:
        return jsonify({"error": "since must be an ISO-8601 datetime"}), 400

    markers = change_feed.changes_since(since)
    return jsonify({
        "changes": [m.to_dict() for m in markers],
        "server_time": to_utc_z(utcnow()),
    })
