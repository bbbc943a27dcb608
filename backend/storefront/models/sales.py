from __future__ import annotations

from ..extensions import db
from .inventory import money
from storefront.time_utils import to_iso_date, to_utc_z, utcnow


class Sale(db.Model):
    """
    One sale transaction.

    SNAPSHOT: item_name, selling_price and total_revenue are captured when
    the sale is recorded and are not updated if the inventory item is later
    renamed, repriced or deleted. item_id is therefore a plain column, not a
    foreign key.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_sale_date", "sale_date"),
        db.Index("ix_sales_item_id", "item_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.Integer, nullable=False)
    item_name = db.Column(db.String(255), nullable=False)
    quantity_sold = db.Column(db.Integer, nullable=False)
    selling_price = db.Column(db.Numeric(12, 2), nullable=False)
    total_revenue = db.Column(db.Numeric(14, 2), nullable=False)
    sale_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Sale id={self.id} item_id={self.item_id} qty={self.quantity_sold}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "quantity_sold": self.quantity_sold,
            "selling_price": money(self.selling_price),
            "total_revenue": money(self.total_revenue),
            "sale_date": to_iso_date(self.sale_date),
            "created_at": to_utc_z(self.created_at),
        }
