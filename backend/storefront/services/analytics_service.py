# Overview: Dashboard metrics derived from full sales and inventory snapshots.

"""
Analytics Service

Every metric is recomputed from a fresh query on each request; nothing is
cached. The reducers take plain lists so they can be exercised without a
database.

- monthly_sales: last 6 calendar months keyed by "YYYY-MM" (label "Jan"...)
- most_sold_items: this month's sales grouped by item name, top 4 by quantity
- inventory_worth: sum of cost_price * quantity
- todays_sales: revenue of sales dated today
- monthly_growth: percent change this month vs last month, 0 when last month is 0
- average_order_value: mean total_revenue over all sales
- total_profit: sum of (selling_price - item cost) * quantity_sold; a sale
  whose item no longer exists uses a cost of 0
"""

from __future__ import annotations

import calendar
from datetime import date
from decimal import Decimal
from typing import Iterable

from flask import current_app

from ..extensions import db
from ..models import InventoryItem, PendingPayment, Sale, Supplier
from .payment_service import effective_status
from storefront.time_utils import to_iso_date, today as current_day

_ZERO = Decimal("0")


def _dec(value) -> Decimal:
    if value is None:
        return _ZERO
    return Decimal(value) if not isinstance(value, float) else Decimal(str(value))


def _month_start(d: date, months_back: int = 0) -> date:
    month_index = d.year * 12 + (d.month - 1) - months_back
    return date(month_index // 12, month_index % 12 + 1, 1)


def _month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def _revenue_in_month(sales: Iterable[Sale], month: date) -> Decimal:
    key = _month_key(month)
    return sum((_dec(s.total_revenue) for s in sales if _month_key(s.sale_date) == key), _ZERO)


def monthly_sales(sales: list[Sale], *, today: date, months: int = 6) -> list[dict]:
    """Oldest month first, zero-filled."""
    buckets: dict[str, Decimal] = {}
    labels: dict[str, str] = {}
    for back in range(months - 1, -1, -1):
        month = _month_start(today, back)
        key = _month_key(month)
        buckets[key] = _ZERO
        labels[key] = calendar.month_abbr[month.month]

    for sale in sales:
        key = _month_key(sale.sale_date)
        if key in buckets:
            buckets[key] += _dec(sale.total_revenue)

    return [{"month": key, "label": labels[key], "sales": float(total)} for key, total in buckets.items()]


def most_sold_items(sales: list[Sale], *, today: date, limit: int = 4) -> list[dict]:
    key = _month_key(today)
    counts: dict[str, int] = {}
    for sale in sales:
        if _month_key(sale.sale_date) == key:
            counts[sale.item_name] = counts.get(sale.item_name, 0) + (sale.quantity_sold or 0)
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)
    return [{"name": name, "value": qty} for name, qty in ranked[:limit]]


def inventory_worth(items: list[InventoryItem]) -> float:
    return float(sum((_dec(i.cost_price) * (i.quantity or 0) for i in items), _ZERO))


def todays_sales(sales: list[Sale], *, today: date) -> float:
    return float(sum((_dec(s.total_revenue) for s in sales if s.sale_date == today), _ZERO))


def monthly_growth(sales: list[Sale], *, today: date) -> float:
    this_month = _revenue_in_month(sales, _month_start(today))
    last_month = _revenue_in_month(sales, _month_start(today, 1))
    if last_month == 0:
        return 0.0
    return float((this_month - last_month) / last_month * 100)


def average_order_value(sales: list[Sale]) -> float:
    if not sales:
        return 0.0
    total = sum((_dec(s.total_revenue) for s in sales), _ZERO)
    return float(total / len(sales))


def total_profit(sales: list[Sale], items: list[InventoryItem]) -> float:
    cost_by_id = {i.id: _dec(i.cost_price) for i in items}
    profit = _ZERO
    for sale in sales:
        cost = cost_by_id.get(sale.item_id, _ZERO)
        profit += (_dec(sale.selling_price) - cost) * (sale.quantity_sold or 0)
    return float(profit)


def build_analytics(*, today: date | None = None) -> dict:
    today = today or current_day()
    sales = db.session.query(Sale).all()
    items = db.session.query(InventoryItem).all()
    return {
        "monthly_sales": monthly_sales(sales, today=today),
        "most_sold_items": most_sold_items(sales, today=today),
        "inventory_worth": inventory_worth(items),
        "todays_sales": todays_sales(sales, today=today),
        "monthly_growth": monthly_growth(sales, today=today),
        "average_order_value": average_order_value(sales),
        "total_profit": total_profit(sales, items),
    }


def dashboard_summary(*, today: date | None = None) -> dict:
    """Counts, dues and alert lists for the admin landing page."""
    today = today or current_day()
    threshold = current_app.config.get("LOW_STOCK_THRESHOLD", 5)
    recent_limit = current_app.config.get("RECENT_SALES_LIMIT", 5)

    items = db.session.query(InventoryItem).order_by(InventoryItem.id.asc()).all()
    suppliers = db.session.query(Supplier).order_by(Supplier.id.asc()).all()
    unpaid = (
        db.session.query(PendingPayment)
        .filter(PendingPayment.status != "paid")
        .order_by(PendingPayment.due_date.asc(), PendingPayment.id.asc())
        .all()
    )
    recent_sales = (
        db.session.query(Sale)
        .order_by(Sale.created_at.desc(), Sale.id.desc())
        .limit(recent_limit)
        .all()
    )

    low_stock = [i for i in items if (i.quantity or 0) < threshold]
    suppliers_due = [s for s in suppliers if _dec(s.amount_due) > 0]

    return {
        "total_items": len(items),
        "low_stock_items": len(low_stock),
        "total_suppliers": len(suppliers),
        "supplier_dues": float(sum((_dec(s.amount_due) for s in suppliers), _ZERO)),
        "pending_payments": len(unpaid),
        "total_pending_amount": float(sum((_dec(p.amount) for p in unpaid), _ZERO)),
        "recent_sales": [
            {
                "id": s.id,
                "item": s.item_name,
                "amount": float(_dec(s.total_revenue)),
                "date": to_iso_date(s.sale_date),
            }
            for s in recent_sales
        ],
        "low_stock_alerts": [
            {
                "id": i.id,
                "name": i.name,
                "quantity": i.quantity,
                "category": i.category,
                "cost_price": float(_dec(i.cost_price)),
                "selling_price": float(_dec(i.selling_price)),
            }
            for i in low_stock
        ],
        "supplier_alerts": [
            {
                "id": s.id,
                "name": s.name,
                "amount": float(_dec(s.amount_due)),
                "due_date": to_iso_date(s.due_date),
                "phone": s.phone or "",
            }
            for s in suppliers_due
        ],
        "pending_payment_alerts": [
            {
                "id": p.id,
                "customer": p.name,
                "amount": float(_dec(p.amount)),
                "due_date": to_iso_date(p.due_date),
                "phone": p.phone or "",
                "status": effective_status(p, today=today),
            }
            for p in unpaid
        ],
    }
