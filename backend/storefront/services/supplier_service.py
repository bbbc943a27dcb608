# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

"""
Supplier Service

Suppliers carry running paid/due balances for the dashboard. items_supplied
is a free-text list (comma-separated on input) with no link to inventory.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Supplier
from ..validation import ModelValidationPolicy, enforce_rules_supplier, validate_payload
from .change_feed import DASHBOARD_DATA_UPDATED, notify_change

SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "items_supplied", "amount_paid", "amount_due", "phone", "due_date"},
    required_on_create={"name"},
    ignored_fields={"id", "created_at"},
)


class SupplierNotFoundError(Exception):
    """Raised when a supplier is not found."""
    pass


def list_suppliers() -> list[Supplier]:
    """Newest first."""
    return (
        db.session.query(Supplier)
        .order_by(Supplier.created_at.desc(), Supplier.id.desc())
        .all()
    )


def get_supplier(supplier_id: int) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None:
        raise SupplierNotFoundError(f"Supplier {supplier_id} not found")
    return supplier


def create_supplier(payload: dict) -> Supplier:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)
    enforce_rules_supplier(patch)

    supplier = Supplier(**patch)
    db.session.add(supplier)
    db.session.commit()

    notify_change(DASHBOARD_DATA_UPDATED, source="supplier.create", entity_id=supplier.id)
    return supplier


def update_supplier(supplier_id: int, payload: dict) -> Supplier:
    supplier = get_supplier(supplier_id)
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
    enforce_rules_supplier(patch)

    for key, value in patch.items():
        setattr(supplier, key, value)
    db.session.commit()

    notify_change(DASHBOARD_DATA_UPDATED, source="supplier.update", entity_id=supplier.id)
    return supplier


def delete_supplier(supplier_id: int) -> None:
    supplier = get_supplier(supplier_id)
    db.session.delete(supplier)
    db.session.commit()

    notify_change(DASHBOARD_DATA_UPDATED, source="supplier.delete", entity_id=supplier_id)
