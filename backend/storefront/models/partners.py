from __future__ import annotations

from ..extensions import db
from .inventory import money
from storefront.time_utils import to_iso_date, to_utc_z, utcnow


class Supplier(db.Model):
    """
    Vendor relationship with running paid/due balances.

    items_supplied is a denormalised list of free-text item names; there is
    no link to InventoryItem.
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    items_supplied = db.Column(db.JSON, nullable=False, default=list)
    amount_paid = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    amount_due = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    phone = db.Column(db.String(32), nullable=True)
    due_date = db.Column(db.Date, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "items_supplied": list(self.items_supplied or []),
            "amount_paid": money(self.amount_paid),
            "amount_due": money(self.amount_due),
            "phone": self.phone,
            "due_date": to_iso_date(self.due_date),
            "created_at": to_utc_z(self.created_at),
        }


class PendingPayment(db.Model):
    """
    Money owed to or by the store.

    STATUS: only "pending" and "paid" are ever stored. Overdue-ness is derived
    from due_date at read time (see payment_service.effective_status) so there
    is a single source of truth.
    """
    __tablename__ = "pending_payments"
    __table_args__ = (
        db.Index("ix_pending_payments_due_date", "due_date"),
        db.Index("ix_pending_payments_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(16), nullable=False, default="customer")
    related_id = db.Column(db.String(64), nullable=True)
    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    address = db.Column(db.Text, nullable=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending")
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=db.func.now(),
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<PendingPayment id={self.id} name={self.name!r} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type,
            "related_id": self.related_id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "amount": money(self.amount),
            "due_date": to_iso_date(self.due_date),
            "status": self.status,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
