# Overview: Service-layer operations for pending payments; encapsulates business logic and database work.

"""
Pending Payment Service

STATUS:
- Stored status is "pending" or "paid".
- "overdue" is never stored. It is derived on every read: an unpaid payment
  whose due_date is before today is overdue. Clients cannot set it.

Serialised payments carry the stored status, the effective_status and a
human due_label ("Due today", "Due tomorrow", "Due in N days",
"N days overdue").
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from ..extensions import db
from ..models import PendingPayment
from ..validation import ModelValidationPolicy, enforce_rules_payment, validate_payload
from .change_feed import DASHBOARD_DATA_UPDATED, notify_change
from storefront.time_utils import today as current_day

PAYMENT_POLICY = ModelValidationPolicy(
    writable_fields={"type", "related_id", "name", "phone", "address", "amount", "due_date", "status", "notes"},
    required_on_create={"name", "amount", "due_date"},
    ignored_fields={"id", "created_at", "updated_at", "effective_status", "due_label"},
)


class PaymentNotFoundError(Exception):
    """Raised when a pending payment is not found."""
    pass


def effective_status(payment: PendingPayment, *, today: date | None = None) -> str:
    if payment.status == "paid":
        return "paid"
    today = today or current_day()
    if payment.due_date < today:
        return "overdue"
    return "pending"


def due_label(due_date: date, *, today: date | None = None) -> str:
    today = today or current_day()
    diff_days = (due_date - today).days
    if diff_days < 0:
        return f"{abs(diff_days)} days overdue"
    if diff_days == 0:
        return "Due today"
    if diff_days == 1:
        return "Due tomorrow"
    return f"Due in {diff_days} days"


def serialize_payment(payment: PendingPayment, *, today: date | None = None) -> dict:
    today = today or current_day()
    data = payment.to_dict()
    data["effective_status"] = effective_status(payment, today=today)
    data["due_label"] = due_label(payment.due_date, today=today)
    return data


def list_payments(*, include_paid: bool = False) -> list[PendingPayment]:
    """Soonest due first; paid payments are left out unless asked for."""
    query = db.session.query(PendingPayment)
    if not include_paid:
        query = query.filter(PendingPayment.status != "paid")
    return query.order_by(PendingPayment.due_date.asc(), PendingPayment.id.asc()).all()


def get_payment(payment_id: int) -> PendingPayment:
    payment = db.session.get(PendingPayment, payment_id)
    if payment is None:
        raise PaymentNotFoundError(f"Pending payment {payment_id} not found")
    return payment


def create_payment(payload: dict) -> PendingPayment:
    patch = validate_payload(model=PendingPayment, payload=payload, policy=PAYMENT_POLICY, partial=False)
    enforce_rules_payment(patch)

    payment = PendingPayment(**patch)
    db.session.add(payment)
    db.session.commit()

    notify_change(DASHBOARD_DATA_UPDATED, source="payment.create", entity_id=payment.id)
    return payment


def update_payment(payment_id: int, payload: dict) -> PendingPayment:
    payment = get_payment(payment_id)
    patch = validate_payload(model=PendingPayment, payload=payload, policy=PAYMENT_POLICY, partial=True)
    enforce_rules_payment(patch)

    for key, value in patch.items():
        setattr(payment, key, value)
    db.session.commit()

    notify_change(DASHBOARD_DATA_UPDATED, source="payment.update", entity_id=payment.id)
    return payment


def mark_paid(payment_id: int) -> PendingPayment:
    payment = get_payment(payment_id)
    payment.status = "paid"
    db.session.commit()

    notify_change(DASHBOARD_DATA_UPDATED, source="payment.mark_paid", entity_id=payment.id)
    return payment


def delete_payment(payment_id: int) -> None:
    payment = get_payment(payment_id)
    db.session.delete(payment)
    db.session.commit()

    notify_change(DASHBOARD_DATA_UPDATED, source="payment.delete", entity_id=payment_id)


def payments_summary(*, today: date | None = None) -> dict:
    """Totals over unpaid payments only."""
    today = today or current_day()
    unpaid = list_payments(include_paid=False)
    total = sum((Decimal(p.amount) for p in unpaid), Decimal("0"))
    return {
        "total_pending": float(total),
        "overdue_count": sum(1 for p in unpaid if effective_status(p, today=today) == "overdue"),
        "count": len(unpaid),
    }
