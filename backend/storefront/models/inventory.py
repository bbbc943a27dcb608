from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from storefront.time_utils import to_utc_z, utcnow


def money(value) -> float | None:
    """Numeric columns come back as Decimal; the API speaks plain numbers."""
    if value is None:
        return None
    return float(Decimal(value))


class InventoryItem(db.Model):
    """
    A sellable product or a variant of one.

    VARIANTS: a row with base_item_id set is a variant (e.g. one color of a
    saree). Its parent must have has_variants=True and a variant never has
    variants of its own. base_item_id carries no database-level foreign key;
    VARIANT_DELETE_POLICY in inventory_service decides what happens to
    variants when their parent is deleted.

    LOW STOCK: quantity < LOW_STOCK_THRESHOLD is a display rule only. It is
    computed at serialisation time and never stored.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.Index("ix_inventory_items_category", "category"),
        db.Index("ix_inventory_items_base_item_id", "base_item_id"),
        db.Index("ix_inventory_items_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=False)

    cost_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    selling_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    quantity = db.Column(db.Integer, nullable=False, default=0)

    image_url = db.Column(db.String(1024), nullable=True)

    has_variants = db.Column(db.Boolean, nullable=False, default=False)
    base_item_id = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        onupdate=utcnow,
    )

    @property
    def is_variant(self) -> bool:
        return self.base_item_id is not None

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} name={self.name!r} base_item_id={self.base_item_id}>"

    def to_dict(self, *, low_stock_threshold: int = 5) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "description": self.description,
            "cost_price": money(self.cost_price),
            "selling_price": money(self.selling_price),
            "quantity": self.quantity,
            "low_stock": self.quantity < low_stock_threshold,
            "image_url": self.image_url,
            "has_variants": bool(self.has_variants),
            "base_item_id": self.base_item_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

    def to_public_dict(self, *, low_stock_threshold: int = 5) -> dict:
        """Catalog view: cost price stays in the back office."""
        data = self.to_dict(low_stock_threshold=low_stock_threshold)
        data.pop("cost_price")
        return data
