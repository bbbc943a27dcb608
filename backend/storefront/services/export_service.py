# Overview: CSV rendering for the inventory and sales download buttons.

from __future__ import annotations

import csv
import io
from typing import Iterable, Mapping

INVENTORY_COLUMNS = [
    ("Name", "name"),
    ("Category", "category"),
    ("Description", "description"),
    ("Cost Price", "cost_price"),
    ("Selling Price", "selling_price"),
    ("Quantity", "quantity"),
    ("Added Date", "created_at"),
]

SALES_COLUMNS = [
    ("Date", "sale_date"),
    ("Item", "item_name"),
    ("Quantity Sold", "quantity_sold"),
    ("Selling Price", "selling_price"),
    ("Total Revenue", "total_revenue"),
]


def _format_cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def render_csv(columns: list[tuple[str, str]], rows: Iterable[Mapping]) -> str:
    """
    Header line plus one line per row, every field double-quoted.

    Lines are joined with "\\n" and there is no trailing newline, so N rows
    give exactly N+1 lines. Embedded newlines stay inside their quoted field.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([header for header, _ in columns])
    for row in rows:
        writer.writerow([_format_cell(row.get(key)) for _, key in columns])
    return buffer.getvalue().rstrip("\n")


def inventory_csv(rows: Iterable[Mapping]) -> str:
    return render_csv(INVENTORY_COLUMNS, rows)


def sales_csv(rows: Iterable[Mapping]) -> str:
    return render_csv(SALES_COLUMNS, rows)
