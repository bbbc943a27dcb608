"""
CSV export tests.
"""

import csv
import io

from storefront.services.export_service import INVENTORY_COLUMNS, inventory_csv, sales_csv


def _inventory_row(**overrides):
    row = {
        "name": "Cotton Saree",
        "category": "Sarees (Cotton)",
        "description": "Handloom",
        "cost_price": 300.0,
        "selling_price": 499.5,
        "quantity": 4,
        "created_at": "2026-10-19T08:00:00Z",
    }
    row.update(overrides)
    return row


def test_n_rows_give_n_plus_one_lines():
    body = inventory_csv([_inventory_row(), _inventory_row(name="Kurti")])
    lines = body.split("\n")
    assert len(lines) == 3
    assert lines[0] == ",".join(f'"{header}"' for header, _ in INVENTORY_COLUMNS)


def test_every_field_is_quoted_and_whole_numbers_lose_decimals():
    body = inventory_csv([_inventory_row()])
    assert body.split("\n")[1] == (
        '"Cotton Saree","Sarees (Cotton)","Handloom","300","499.5","4","2026-10-19T08:00:00Z"'
    )


def test_embedded_quotes_are_doubled():
    body = inventory_csv([_inventory_row(name='The "Royal" Saree', description="red, gold")])
    line = body.split("\n")[1]
    assert line.startswith('"The ""Royal"" Saree","Sarees (Cotton)","red, gold"')

    parsed = list(csv.reader(io.StringIO(body)))
    assert parsed[1][0] == 'The "Royal" Saree'
    assert parsed[1][2] == "red, gold"


def test_empty_export_is_header_only():
    assert sales_csv([]) == '"Date","Item","Quantity Sold","Selling Price","Total Revenue"'


def test_missing_values_render_empty():
    body = sales_csv([{
        "sale_date": "2026-10-19",
        "item_name": "Kurti",
        "quantity_sold": 2,
        "selling_price": 800.0,
        "total_revenue": None,
    }])
    assert body.split("\n")[1] == '"2026-10-19","Kurti","2","800",""'
