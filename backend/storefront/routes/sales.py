# Overview: Flask API routes for sales records; parses input and returns JSON responses.

"""
Sales Routes

SECURITY: All routes require an authenticated ADMIN_EMAIL session.
"""

from flask import Blueprint, Response, jsonify, request

from ..decorators import require_admin, require_auth
from ..services import export_service, sales_service
from ..services.sales_service import SaleNotFoundError
from ..validation import ValidationError


sales_bp = Blueprint("sales", __name__, url_prefix="/api/admin/sales")


@sales_bp.get("")
@require_auth
@require_admin
def list_sales_route():
    """Latest sale date first, with the page's summary cards."""
    sales = sales_service.list_sales()
    return jsonify({
        "items": [s.to_dict() for s in sales],
        "count": len(sales),
        "summary": sales_service.sales_summary(sales),
    })


@sales_bp.get("/summary")
@require_auth
@require_admin
def sales_summary_route():
    return jsonify(sales_service.sales_summary())


@sales_bp.get("/export")
@require_auth
@require_admin
def export_sales_route():
    rows = [s.to_dict() for s in sales_service.list_sales()]
    return Response(
        export_service.sales_csv(rows),
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=sales.csv"},
    )


@sales_bp.post("")
@require_auth
@require_admin
def create_sale_route():
    """
    Record a sale.

    Request body:
    {
        "item_id": 1,              // required
        "quantity_sold": 2,        // required, > 0
        "item_name": "...",        // defaults to the item's name
        "selling_price": 500,      // defaults to the item's selling price
        "sale_date": "YYYY-MM-DD"  // defaults to today
    }

    total_revenue is computed; any value sent for it is ignored.
    """
    payload = request.get_json(silent=True) or {}
    try:
        sale = sales_service.create_sale(payload)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(sale.to_dict()), 201


@sales_bp.put("/<int:sale_id>")
@require_auth
@require_admin
def update_sale_route(sale_id: int):
    payload = request.get_json(silent=True) or {}
    try:
        sale = sales_service.update_sale(sale_id, payload)
    except SaleNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    return jsonify(sale.to_dict())


@sales_bp.delete("/<int:sale_id>")
@require_auth
@require_admin
def delete_sale_route(sale_id: int):
    try:
        sales_service.delete_sale(sale_id)
    except SaleNotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"ok": True})
