# Overview: Flask API routes for inventory and variants; parses input and returns JSON responses.

"""
Admin inventory routes.

SECURITY: All routes require an authenticated ADMIN_EMAIL session.

Create/update accept either JSON (image as a data URL in "image") or
multipart/form-data (image file in "image"; "variants" as a JSON string).
"""

import json

from flask import Blueprint, Response, current_app, request

from ..categories import CATEGORIES, CUSTOM_CATEGORY
from ..decorators import require_admin, require_auth
from ..services import export_service, inventory_service
from ..services.inventory_filters import InventoryFilter
from ..services.inventory_service import InventoryNotFoundError, VariantPolicyError
from ..services.storage_service import StorageError
from ..validation import ConflictError, ValidationError

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/admin")

_STORAGE_STATUS = {"BAD_REQUEST": 400, "CONFLICT": 409, "STORAGE_ERROR": 502}


def storage_error_response(e: StorageError):
    return {"error": f"Image upload failed: {e}"}, _STORAGE_STATUS.get(e.error_code, 502)


def _read_payload() -> tuple[dict, object]:
    """JSON body, or form fields plus the uploaded image file."""
    if request.mimetype == "multipart/form-data":
        payload = request.form.to_dict()
        raw_variants = payload.get("variants")
        if raw_variants:
            try:
                payload["variants"] = json.loads(raw_variants)
            except ValueError:
                raise ValidationError("variants must be a JSON list")
        return payload, request.files.get("image")
    return request.get_json(silent=True) or {}, None


@inventory_bp.get("/categories")
@require_auth
@require_admin
def list_categories_route():
    return {"items": CATEGORIES, "custom": CUSTOM_CATEGORY}


@inventory_bp.get("/inventory")
@require_auth
@require_admin
def list_inventory_route():
    """
    Full inventory, oldest first, narrowed by the admin filters (unpaged).

    Query params: search, category, price_field (selling_price|cost_price),
    min_price, max_price, in_stock_only
    """
    try:
        flt = InventoryFilter.from_args(request.args)
    except ValidationError as e:
        return {"error": str(e)}, 400

    items = flt.apply(inventory_service.list_item_dicts())
    return {"items": items, "count": len(items)}


@inventory_bp.get("/inventory/export")
@require_auth
@require_admin
def export_inventory_route():
    """inventory.csv of the rows the current filters select."""
    try:
        flt = InventoryFilter.from_args(request.args)
    except ValidationError as e:
        return {"error": str(e)}, 400

    body = export_service.inventory_csv(flt.apply(inventory_service.list_item_dicts()))
    return Response(
        body,
        mimetype="text/csv",
        headers={"Content-Disposition": "attachment; filename=inventory.csv"},
    )


@inventory_bp.get("/inventory/<int:item_id>")
@require_auth
@require_admin
def get_inventory_item_route(item_id: int):
    try:
        return inventory_service.get_item_detail(item_id)
    except InventoryNotFoundError:
        return {"error": "Item not found"}, 404


@inventory_bp.post("/inventory")
@require_auth
@require_admin
def create_inventory_item_route():
    """
    Create an item.

    Body: name, category, description (required); custom_category when
    category is "Other (Custom)"; cost_price, selling_price, quantity;
    optional image and optional variants list. Variant failures do not undo
    the item or the other variants; they are listed under variants.failures
    and the response status is 207.
    """
    try:
        payload, image_file = _read_payload()
        created = inventory_service.create_item(payload, image_file=image_file)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except StorageError as e:
        return storage_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create inventory item")
        return {"error": "Internal server error"}, 500

    variants = created.get("variants")
    if variants and variants["failures"]:
        return created, 207
    return created, 201


@inventory_bp.post("/inventory/<int:item_id>/variants")
@require_auth
@require_admin
def create_variants_route(item_id: int):
    """
    Add variants to a parent item.

    Body: {"variants": [{"name", "quantity", "selling_price", "image"?, "description"?}, ...]}
    201 when all succeed, 207 when some fail, 400 when none were created.
    """
    payload = request.get_json(silent=True) or {}

    try:
        result = inventory_service.create_variants(item_id, payload.get("variants"))
    except InventoryNotFoundError:
        return {"error": "Item not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to add variants")
        return {"error": "Internal server error"}, 500

    body = result.to_dict(low_stock_threshold=current_app.config.get("LOW_STOCK_THRESHOLD", 5))
    if result.ok:
        return body, 201
    if result.created:
        return body, 207
    return body, 400


@inventory_bp.put("/inventory/<int:item_id>")
@require_auth
@require_admin
def update_inventory_item_route(item_id: int):
    """Update an item or a variant; last writer wins."""
    try:
        payload, image_file = _read_payload()
        return inventory_service.update_item(item_id, payload, image_file=image_file)
    except InventoryNotFoundError:
        return {"error": "Item not found"}, 404
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except StorageError as e:
        return storage_error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update inventory item")
        return {"error": "Internal server error"}, 500


@inventory_bp.delete("/inventory/<int:item_id>")
@require_auth
@require_admin
def delete_inventory_item_route(item_id: int):
    """Delete by id; variants follow VARIANT_DELETE_POLICY."""
    try:
        result = inventory_service.delete_item(item_id)
    except InventoryNotFoundError:
        return {"error": "Item not found"}, 404
    except VariantPolicyError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to delete inventory item")
        return {"error": "Internal server error"}, 500

    return {"ok": True, **result}, 200
