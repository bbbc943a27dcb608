# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

"""
Supplier Routes

SECURITY: All routes require an authenticated ADMIN_EMAIL session.
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_admin, require_auth
from ..services import supplier_service
from ..services.supplier_service import SupplierNotFoundError
from ..validation import ValidationError


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/admin/suppliers")


@suppliers_bp.get("")
@require_auth
@require_admin
def list_suppliers_route():
    """Newest first."""
    suppliers = supplier_service.list_suppliers()
    return jsonify({
        "items": [s.to_dict() for s in suppliers],
        "count": len(suppliers),
    })


@suppliers_bp.post("")
@require_auth
@require_admin
def create_supplier_route():
    """
    Create a supplier.

    Request body:
    {
        "name": "Supplier Name",            // required
        "items_supplied": "Sarees, Kurtis", // list or comma-separated string
        "amount_paid": 1000,
        "amount_due": 500,
        "phone": "...",
        "due_date": "YYYY-MM-DD"
    }
    """
    payload = request.get_json(silent=True) or {}
    try:
        supplier = supplier_service.create_supplier(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(supplier.to_dict()), 201


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_admin
def get_supplier_route(supplier_id: int):
    try:
        supplier = supplier_service.get_supplier(supplier_id)
    except SupplierNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(supplier.to_dict())


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_admin
def update_supplier_route(supplier_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        supplier = supplier_service.update_supplier(supplier_id, payload)
    except SupplierNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(supplier.to_dict())


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_admin
def delete_supplier_route(supplier_id: int):
    try:
        supplier_service.delete_supplier(supplier_id)
    except SupplierNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"ok": True})
