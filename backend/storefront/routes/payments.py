# Overview: Flask API routes for pending payments; parses input and returns JSON responses.

"""
Pending Payment Routes

SECURITY: All routes require an authenticated ADMIN_EMAIL session.

Rows carry status (stored: pending|paid), effective_status (pending|overdue|paid,
derived from due_date) and due_label.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_admin, require_auth
from ..services import payment_service
from ..services.payment_service import PaymentNotFoundError
from ..validation import ValidationError
from storefront.time_utils import today


payments_bp = Blueprint("payments", __name__, url_prefix="/api/admin/pending-payments")


@payments_bp.get("")
@require_auth
@require_admin
def list_payments_route():
    """
    Soonest due first.

    Query params:
    - include_paid: include settled payments (default: false)
    """
    include_paid = request.args.get("include_paid", "false").lower() == "true"
    day = today()
    payments = payment_service.list_payments(include_paid=include_paid)
    return jsonify({
        "items": [payment_service.serialize_payment(p, today=day) for p in payments],
        "count": len(payments),
        "summary": payment_service.payments_summary(today=day),
    })


@payments_bp.get("/summary")
@require_auth
@require_admin
def payments_summary_route():
    return jsonify(payment_service.payments_summary())


@payments_bp.post("")
@require_auth
@require_admin
def create_payment_route():
    """
    Request body:
    {
        "name": "Customer",        // required
        "amount": 1200,            // required, > 0
        "due_date": "YYYY-MM-DD",  // required
        "type": "customer",        // customer | supplier
        "related_id", "phone", "address", "notes", "status" (pending|paid)
    }
    """
    payload = request.get_json(silent=True) or {}
    try:
        payment = payment_service.create_payment(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(payment_service.serialize_payment(payment)), 201


@payments_bp.put("/<int:payment_id>")
@require_auth
@require_admin
def update_payment_route(payment_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        payment = payment_service.update_payment(payment_id, payload)
    except PaymentNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(payment_service.serialize_payment(payment))


@payments_bp.post("/<int:payment_id>/mark-paid")
@require_auth
@require_admin
def mark_paid_route(payment_id: int):
    try:
        payment = payment_service.mark_paid(payment_id)
    except PaymentNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(payment_service.serialize_payment(payment))


@payments_bp.delete("/<int:payment_id>")
@require_auth
@require_admin
def delete_payment_route(payment_id: int):
    try:
        payment_service.delete_payment(payment_id)
    except PaymentNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"ok": True})
