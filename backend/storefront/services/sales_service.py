# Overview: Service-layer operations for sales records; encapsulates business logic and database work.

"""
Sales Service

A sale is a point-in-time snapshot: item_name and selling_price are copied
from the inventory item when omitted, and total_revenue = quantity_sold *
selling_price is computed and stored on every add/update. Later changes to
the inventory item never touch recorded sales. Recording a sale does not
change the item's stock quantity.
"""

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import InventoryItem, Sale
from ..validation import ModelValidationPolicy, ValidationError, enforce_rules_sale, validate_payload
from .change_feed import DASHBOARD_DATA_UPDATED, notify_change
from storefront.time_utils import today

SALE_POLICY = ModelValidationPolicy(
    writable_fields={"item_id", "item_name", "quantity_sold", "selling_price", "sale_date"},
    required_on_create={"item_id", "quantity_sold"},
    ignored_fields={"id", "created_at", "total_revenue"},
)


class SaleNotFoundError(Exception):
    """Raised when a sale is not found."""
    pass


def _compute_total(sale: Sale) -> None:
    sale.total_revenue = (Decimal(sale.selling_price) * sale.quantity_sold).quantize(Decimal("0.01"))


def list_sales() -> list[Sale]:
    return (
        db.session.query(Sale)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .all()
    )


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise SaleNotFoundError(f"Sale {sale_id} not found")
    return sale


def create_sale(payload: dict) -> Sale:
    """
    Record a sale.

    item_name and selling_price default to the referenced item's current
    values; sale_date defaults to today.
    """
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=False)
    enforce_rules_sale(patch)

    if patch.get("item_name") is None or patch.get("selling_price") is None:
        item = db.session.get(InventoryItem, patch["item_id"])
        if item is None:
            raise ValidationError(f"Inventory item {patch['item_id']} not found")
        if patch.get("item_name") is None:
            patch["item_name"] = item.name
        if patch.get("selling_price") is None:
            patch["selling_price"] = Decimal(item.selling_price)

    if patch.get("sale_date") is None:
        patch["sale_date"] = today()

    sale = Sale(**patch)
    _compute_total(sale)
    db.session.add(sale)
    db.session.commit()

    notify_change(DASHBOARD_DATA_UPDATED, source="sale.create", entity_id=sale.id)
    return sale


def update_sale(sale_id: int, payload: dict) -> Sale:
    sale = get_sale(sale_id)
    patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=True)
    enforce_rules_sale(patch)

    for key, value in patch.items():
        setattr(sale, key, value)
    _compute_total(sale)
    db.session.commit()

    notify_change(DASHBOARD_DATA_UPDATED, source="sale.update", entity_id=sale.id)
    return sale


def delete_sale(sale_id: int) -> None:
    sale = get_sale(sale_id)
    db.session.delete(sale)
    db.session.commit()

    notify_change(DASHBOARD_DATA_UPDATED, source="sale.delete", entity_id=sale_id)


def sales_summary(sales: list[Sale] | None = None) -> dict:
    if sales is None:
        sales = list_sales()
    total_revenue = sum((Decimal(s.total_revenue) for s in sales), Decimal("0"))
    return {
        "total_revenue": float(total_revenue),
        "total_items_sold": sum(s.quantity_sold for s in sales),
        "count": len(sales),
    }
