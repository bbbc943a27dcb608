# Overview: Public Flask routes for the home page, catalog and product detail; returns JSON responses.

"""
Public storefront routes (no authentication).

Cost prices never leave the back office: every row here is built with
InventoryItem.to_public_dict().
"""

from flask import Blueprint, abort, current_app, request, send_from_directory

from ..services import inventory_service
from ..services.inventory_filters import build_catalog_page, build_home
from ..services.inventory_service import InventoryNotFoundError
from ..services.storage_service import LocalStorage, StorageError, get_storage
from ..validation import ValidationError

catalog_bp = Blueprint("catalog", __name__)


@catalog_bp.get("/api/storefront/home")
def home_route():
    """Newest items first; the first HOME_NEW_ARRIVALS are the new arrivals."""
    rows = inventory_service.list_item_dicts(public=True)
    return build_home(rows, new_arrivals=current_app.config.get("HOME_NEW_ARRIVALS", 2))


@catalog_bp.get("/api/catalog")
def catalog_route():
    """
    Paged catalog grouped by category.

    Query params:
    - search: substring of name, description or category
    - category: exact category
    - sort: newest (default) | price-asc | price-desc
    - page: int, clamped to >= 1
    """
    rows = inventory_service.list_item_dicts(public=True)
    try:
        return build_catalog_page(
            rows,
            search=(request.args.get("search") or "").strip(),
            category=(request.args.get("category") or "").strip(),
            sort=request.args.get("sort") or "newest",
            page=request.args.get("page", type=int),
            per_page=current_app.config.get("CATALOG_PAGE_SIZE", 12),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400


@catalog_bp.get("/api/catalog/<int:item_id>")
def catalog_detail_route(item_id: int):
    try:
        return inventory_service.get_item_detail(item_id, public=True)
    except InventoryNotFoundError:
        return {"error": "Item not found"}, 404


@catalog_bp.get("/storage/<bucket>/<path:key>")
def storage_file_route(bucket: str, key: str):
    """Serve images written by the local storage backend."""
    storage = get_storage()
    if not isinstance(storage, LocalStorage) or bucket != storage.bucket:
        abort(404)
    try:
        path = storage.path_for(key)
    except StorageError:
        abort(404)
    return send_from_directory(path.parent.resolve(), path.name, max_age=31536000)
