# backend/storefront/services/inventory_service.py
"""
Inventory Service

One table holds both standalone items and their variants (e.g. the colors
of a saree). A variant is a row with base_item_id set.

VARIANT RULES (checked here on every create/update):
- A variant has has_variants=False; variants never nest.
- Its parent exists and has has_variants=True.
- Variants inherit category and cost_price from the parent.

VARIANT INSERTS:
- Each variant in an "add variants" action is inserted in its own savepoint.
- A failing variant does not undo the ones that already succeeded; failures
  are reported together as "Failed to add variants: <name> (<error>), ...".

PARENT DELETE follows VARIANT_DELETE_POLICY:
- orphan (default): variants stay, base_item_id keeps the old parent id
- cascade: variants are deleted with the parent
- restrict: deletion is refused while variants exist

Every successful mutation publishes inventory-updated and
dashboard-data-updated on the change feed.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..categories import resolve_category
from ..extensions import db
from ..models import InventoryItem
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_inventory,
    validate_payload,
)
from .change_feed import DASHBOARD_DATA_UPDATED, INVENTORY_UPDATED, notify_change
from .storage_service import ImagePayload, StorageError, decode_data_url, image_from_upload, upload_image

DELETE_POLICIES = {"orphan", "cascade", "restrict"}

INVENTORY_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "category",
        "description",
        "cost_price",
        "selling_price",
        "quantity",
        "image_url",
        "has_variants",
        "base_item_id",
    },
    required_on_create={"name", "category", "description"},
    ignored_fields={"id", "created_at", "updated_at", "low_stock", "custom_category", "image", "variants"},
)

VARIANT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description", "selling_price", "quantity", "image_url"},
    required_on_create={"name"},
    ignored_fields={"id", "image", "category", "cost_price", "has_variants", "base_item_id"},
)


class InventoryNotFoundError(Exception):
    """Raised when an inventory row does not exist."""


class VariantPolicyError(ConflictError):
    """Raised when a parent cannot be deleted under the restrict policy."""


@dataclass
class VariantBatchResult:
    created: list[InventoryItem] = field(default_factory=list)
    failures: list[dict] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def error_message(self) -> str | None:
        if not self.failures:
            return None
        parts = ", ".join(f"{f['name']} ({f['error']})" for f in self.failures)
        return f"Failed to add variants: {parts}"

    def to_dict(self, *, low_stock_threshold: int = 5) -> dict:
        return {
            "created": [v.to_dict(low_stock_threshold=low_stock_threshold) for v in self.created],
            "failures": self.failures,
            "error": self.error_message,
        }


def _threshold() -> int:
    return current_app.config.get("LOW_STOCK_THRESHOLD", 5)


def _serialize(item: InventoryItem) -> dict:
    return item.to_dict(low_stock_threshold=_threshold())


def _resolve_image(payload: dict, *, name: str, image_file=None) -> str | None:
    """
    Upload an image supplied as a multipart file or a data URL.

    Returns the public URL, or None when no new image was supplied.
    """
    image: ImagePayload | None = None
    if image_file is not None:
        image = image_from_upload(image_file)
    elif isinstance(payload.get("image"), str) and payload["image"].startswith("data:"):
        image = decode_data_url(payload["image"])

    if image is None:
        return None
    return upload_image(image, name=name)


def _notify(source: str, entity_id: int | None) -> None:
    notify_change(INVENTORY_UPDATED, DASHBOARD_DATA_UPDATED, source=source, entity_id=entity_id)


def list_items() -> list[InventoryItem]:
    return (
        db.session.query(InventoryItem)
        .order_by(InventoryItem.created_at.asc(), InventoryItem.id.asc())
        .all()
    )


def list_item_dicts(*, public: bool = False) -> list[dict]:
    threshold = _threshold()
    if public:
        return [i.to_public_dict(low_stock_threshold=threshold) for i in list_items()]
    return [i.to_dict(low_stock_threshold=threshold) for i in list_items()]


def get_item(item_id: int) -> InventoryItem:
    item = db.session.get(InventoryItem, item_id)
    if item is None:
        raise InventoryNotFoundError(f"Inventory item {item_id} not found")
    return item


def list_variants(parent_id: int) -> list[InventoryItem]:
    return (
        db.session.query(InventoryItem)
        .filter(InventoryItem.base_item_id == parent_id)
        .order_by(InventoryItem.created_at.asc(), InventoryItem.id.asc())
        .all()
    )


def get_item_detail(item_id: int, *, public: bool = False) -> dict:
    """Item, its variants (when it has any) and a summary of its parent (when it is one)."""
    item = get_item(item_id)
    threshold = _threshold()

    def _dump(row: InventoryItem) -> dict:
        if public:
            return row.to_public_dict(low_stock_threshold=threshold)
        return row.to_dict(low_stock_threshold=threshold)

    variants = list_variants(item.id) if item.has_variants else []

    parent = None
    if item.base_item_id is not None:
        parent_row = db.session.get(InventoryItem, item.base_item_id)
        if parent_row is not None:
            parent = {"id": parent_row.id, "name": parent_row.name, "image_url": parent_row.image_url}

    return {
        "item": _dump(item),
        "variants": [_dump(v) for v in variants],
        "parent": parent,
    }


def _check_variant_link(
    *,
    base_item_id: int | None,
    has_variants: bool,
    item_id: int | None = None,
    current_parent_id: int | None = None,
) -> InventoryItem | None:
    if base_item_id is None:
        return None
    if has_variants:
        raise ValidationError("A variant cannot have variants of its own")
    if item_id is not None and base_item_id == item_id:
        raise ValidationError("An item cannot be its own variant")
    # An unchanged link is kept as is, even when the parent was deleted (orphan policy)
    if current_parent_id is not None and base_item_id == current_parent_id:
        return None
    parent = db.session.get(InventoryItem, base_item_id)
    if parent is None:
        raise ValidationError(f"Parent item {base_item_id} not found")
    if not parent.has_variants:
        raise ValidationError(f"Parent item {base_item_id} does not accept variants")
    return parent


def create_item(payload: dict, *, image_file=None) -> dict:
    """
    Create an item, optionally with variants in the same payload.

    Validation runs first, then the image upload, then the insert; a failed
    upload leaves no row behind. When "variants" are supplied the parent is
    flagged has_variants and the variants are added as in create_variants().
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    variants = payload.get("variants") or []
    if not isinstance(variants, list):
        raise ValidationError("variants must be a list")

    category = resolve_category(payload.get("category"), payload.get("custom_category"))
    patch = validate_payload(
        model=InventoryItem,
        payload={**payload, "category": category},
        policy=INVENTORY_POLICY,
        partial=False,
    )
    enforce_rules_inventory(patch)
    if variants:
        patch["has_variants"] = True

    parent = _check_variant_link(base_item_id=patch.get("base_item_id"), has_variants=bool(patch.get("has_variants")))
    if parent is not None:
        patch["category"] = parent.category
        patch["cost_price"] = parent.cost_price

    image_url = _resolve_image(payload, name=patch["name"], image_file=image_file)
    if image_url is not None:
        patch["image_url"] = image_url

    item = InventoryItem(**patch)
    db.session.add(item)
    db.session.commit()

    batch = None
    if variants:
        batch = _insert_variants(item, variants)

    _notify("inventory.create", item.id)

    result = _serialize(item)
    if batch is not None:
        result["variants"] = batch.to_dict(low_stock_threshold=_threshold())
    return result


def _build_variant(parent: InventoryItem, raw: dict) -> InventoryItem:
    if not isinstance(raw, dict):
        raise ValidationError("variant must be an object")
    patch = validate_payload(model=InventoryItem, payload=raw, policy=VARIANT_POLICY, partial=False)
    enforce_rules_inventory(patch)

    image_url = _resolve_image(raw, name=patch["name"])
    if image_url is not None:
        patch["image_url"] = image_url

    if not patch.get("description"):
        patch["description"] = f"{parent.description} - {patch['name']}"

    return InventoryItem(
        category=parent.category,
        cost_price=parent.cost_price,
        has_variants=False,
        base_item_id=parent.id,
        **patch,
    )


def _insert_variants(parent: InventoryItem, variants: list) -> VariantBatchResult:
    result = VariantBatchResult()
    for index, raw in enumerate(variants):
        name = (raw.get("name") if isinstance(raw, dict) else None) or f"variant #{index + 1}"
        try:
            variant = _build_variant(parent, raw)
            with db.session.begin_nested():
                db.session.add(variant)
            result.created.append(variant)
        except (ValueError, StorageError, SQLAlchemyError) as e:
            current_app.logger.warning("Variant insert failed for parent %s: %s (%s)", parent.id, name, e)
            result.failures.append({"index": index, "name": str(name).strip(), "error": str(e)})
    db.session.commit()
    return result


def create_variants(parent_id: int, variants: list) -> VariantBatchResult:
    """
    Insert variants of an existing parent, each independently.

    Raises InventoryNotFoundError / ValidationError before any insert when the
    parent is missing or does not accept variants. Per-variant failures are
    returned in the result, not raised.
    """
    parent = get_item(parent_id)
    if parent.is_variant:
        raise ValidationError("A variant cannot have variants of its own")
    if not parent.has_variants:
        raise ValidationError(f"Item {parent_id} does not accept variants")
    if not isinstance(variants, list) or not variants:
        raise ValidationError("variants must be a non-empty list")

    result = _insert_variants(parent, variants)
    if result.created:
        _notify("inventory.variants", parent.id)
    return result


def update_item(item_id: int, payload: dict, *, image_file=None) -> dict:
    """Partial update by id, last writer wins; variant rules are re-checked."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    item = get_item(item_id)

    candidate = dict(payload)
    if "category" in candidate or "custom_category" in candidate:
        candidate["category"] = resolve_category(
            candidate.get("category", item.category),
            candidate.get("custom_category"),
            current=item.category,
        )

    patch = validate_payload(model=InventoryItem, payload=candidate, policy=INVENTORY_POLICY, partial=True)
    enforce_rules_inventory(patch)

    has_variants = patch.get("has_variants", item.has_variants)
    base_item_id = patch.get("base_item_id", item.base_item_id)
    _check_variant_link(
        base_item_id=base_item_id,
        has_variants=bool(has_variants),
        item_id=item.id,
        current_parent_id=item.base_item_id,
    )
    if item.has_variants and has_variants is False and list_variants(item.id):
        raise ConflictError("Item still has variants; delete or move them first")

    image_url = _resolve_image(payload, name=patch.get("name", item.name), image_file=image_file)
    if image_url is not None:
        patch["image_url"] = image_url

    for key, value in patch.items():
        setattr(item, key, value)

    db.session.commit()
    _notify("inventory.update", item.id)
    return _serialize(item)


def delete_item(item_id: int, *, policy: str | None = None) -> dict:
    """
    Delete by id. Returns {"deleted": [...ids], "orphaned": [...ids]}.
    """
    policy = policy or current_app.config.get("VARIANT_DELETE_POLICY", "orphan")
    if policy not in DELETE_POLICIES:
        raise ValueError(f"Unknown VARIANT_DELETE_POLICY: {policy}")

    item = get_item(item_id)
    variants = list_variants(item.id)

    deleted = [item.id]
    orphaned: list[int] = []
    if variants:
        if policy == "restrict":
            raise VariantPolicyError(
                f"Item {item.id} still has {len(variants)} variant(s); delete them first"
            )
        if policy == "cascade":
            for variant in variants:
                deleted.append(variant.id)
                db.session.delete(variant)
        else:
            orphaned = [v.id for v in variants]

    db.session.delete(item)
    db.session.commit()

    if orphaned:
        current_app.logger.info("Deleted item %s left %d orphaned variant(s)", item_id, len(orphaned))

    _notify("inventory.delete", item_id)
    return {"deleted": deleted, "orphaned": orphaned}
