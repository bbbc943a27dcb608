# Overview: In-memory filtering, sorting, paging and grouping of serialised inventory rows.

"""
Inventory Filters

The admin table and the public catalog both load the full inventory and
narrow it in memory. Every active predicate must hold (logical AND):

- search: case-insensitive substring of name, description or category
- category: exact match
- price range: inclusive bounds on selling_price or cost_price
- in_stock_only: quantity > 0

Rows are the dicts produced by InventoryItem.to_dict(), so the same helpers
work for admin rows and public rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from ..validation import ValidationError, coerce_decimal

PRICE_FIELDS = {"selling_price", "cost_price"}
CATALOG_SORTS = {"newest", "price-asc", "price-desc"}

_TRUE_ARGS = {"true", "1", "yes", "on"}


@dataclass(frozen=True)
class InventoryFilter:
    search: str = ""
    category: str = ""
    price_field: str = "selling_price"
    min_price: float | None = None
    max_price: float | None = None
    in_stock_only: bool = False

    def __post_init__(self) -> None:
        if self.price_field not in PRICE_FIELDS:
            raise ValidationError(f"price_field must be one of: {', '.join(sorted(PRICE_FIELDS))}")
        if self.min_price is not None and self.max_price is not None and self.min_price > self.max_price:
            raise ValidationError("min_price cannot exceed max_price")

    @classmethod
    def from_args(cls, args: Mapping[str, str]) -> "InventoryFilter":
        """Build a filter from query-string arguments; absent bounds are unbounded."""

        def _price(key: str) -> float | None:
            raw = args.get(key)
            if raw is None or not str(raw).strip():
                return None
            return float(coerce_decimal(key, raw))

        return cls(
            search=(args.get("search") or "").strip(),
            category=(args.get("category") or "").strip(),
            price_field=(args.get("price_field") or "selling_price").strip(),
            min_price=_price("min_price"),
            max_price=_price("max_price"),
            in_stock_only=(args.get("in_stock_only") or "").strip().lower() in _TRUE_ARGS,
        )

    def matches(self, row: Mapping) -> bool:
        if self.search:
            needle = self.search.lower()
            haystacks = (row.get("name"), row.get("description"), row.get("category"))
            if not any(needle in (h or "").lower() for h in haystacks):
                return False

        if self.category and row.get("category") != self.category:
            return False

        price = row.get(self.price_field) or 0
        if self.min_price is not None and price < self.min_price:
            return False
        if self.max_price is not None and price > self.max_price:
            return False

        if self.in_stock_only and (row.get("quantity") or 0) <= 0:
            return False

        return True

    def apply(self, rows: Iterable[Mapping]) -> list:
        return [row for row in rows if self.matches(row)]


def sort_rows(rows: Iterable[Mapping], sort: str = "newest") -> list:
    """Catalog ordering; ties keep a stable id order."""
    if sort not in CATALOG_SORTS:
        raise ValidationError(f"sort must be one of: {', '.join(sorted(CATALOG_SORTS))}")

    rows = sorted(rows, key=lambda r: r.get("id") or 0)
    if sort == "price-asc":
        return sorted(rows, key=lambda r: r.get("selling_price") or 0)
    if sort == "price-desc":
        return sorted(rows, key=lambda r: r.get("selling_price") or 0, reverse=True)
    return sorted(rows, key=lambda r: (r.get("created_at") or "", r.get("id") or 0), reverse=True)


def paginate(rows: list, *, page: int | None, per_page: int) -> tuple[list, dict]:
    page = max(page or 1, 1)
    per_page = max(per_page or 1, 1)
    total = len(rows)
    total_pages = max(1, (total + per_page - 1) // per_page)
    start = (page - 1) * per_page
    return rows[start:start + per_page], {
        "page": page,
        "per_page": per_page,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


def group_by_category(rows: Iterable[Mapping]) -> list[dict]:
    """Group rows by category, keeping the order in which categories first appear."""
    groups: dict[str, list] = {}
    for row in rows:
        groups.setdefault(row.get("category"), []).append(row)
    return [{"category": category, "items": items} for category, items in groups.items()]


def category_counts(rows: Iterable[Mapping]) -> list[dict]:
    counts: dict[str, int] = {}
    for row in rows:
        category = row.get("category")
        counts[category] = counts.get(category, 0) + 1
    return [{"category": c, "count": n} for c, n in counts.items()]


def build_catalog_page(
    rows: list,
    *,
    search: str = "",
    category: str = "",
    sort: str = "newest",
    page: int | None = 1,
    per_page: int = 12,
) -> dict:
    """Filter, sort, page, then group the current page by category."""
    flt = InventoryFilter(search=search, category=category)
    filtered = sort_rows(flt.apply(rows), sort)
    page_rows, pagination = paginate(filtered, page=page, per_page=per_page)
    return {
        "groups": group_by_category(page_rows),
        "items": page_rows,
        "count": len(page_rows),
        "categories": category_counts(rows),
        "sort": sort,
        "pagination": pagination,
    }


def attach_variant_names(rows: list) -> list:
    """Annotate each parent row with the names of its variants (its colors)."""
    by_parent: dict[int, list[str]] = {}
    for row in sorted(rows, key=lambda r: (r.get("created_at") or "", r.get("id") or 0)):
        parent_id = row.get("base_item_id")
        if parent_id is not None and row.get("name"):
            by_parent.setdefault(parent_id, []).append(row["name"])

    annotated = []
    for row in rows:
        row = dict(row)
        row["variant_names"] = by_parent.get(row["id"], []) if row.get("has_variants") else []
        annotated.append(row)
    return annotated


def build_home(rows: list, *, new_arrivals: int = 2) -> dict:
    newest_first = attach_variant_names(sort_rows(rows, "newest"))
    return {
        "new_arrivals": newest_first[:new_arrivals],
        "items": newest_first,
        "count": len(newest_first),
    }
