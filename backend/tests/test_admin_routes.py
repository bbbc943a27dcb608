"""
Admin API tests (inventory, suppliers, sales, pending payments, dashboard).

All requests use the ADMIN_EMAIL session from admin_headers.
"""

import base64
import io
from datetime import timedelta

from storefront.time_utils import today

PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


def _item_body(**overrides):
    body = {
        "name": "Ikkat Saree",
        "category": "Sarees (Ikkat)",
        "description": "Double ikkat",
        "cost_price": 900,
        "selling_price": 1400,
        "quantity": 6,
    }
    body.update(overrides)
    return body


class TestInventoryApi:
    def test_create_list_update_delete(self, client, admin_headers):
        created = client.post("/api/admin/inventory", json=_item_body(), headers=admin_headers)
        assert created.status_code == 201
        item_id = created.json["id"]

        listing = client.get("/api/admin/inventory", headers=admin_headers)
        assert listing.json["count"] == 1
        assert listing.json["items"][0]["cost_price"] == 900.0

        updated = client.put(f"/api/admin/inventory/{item_id}", json={"quantity": 2}, headers=admin_headers)
        assert updated.status_code == 200
        assert updated.json["low_stock"] is True

        deleted = client.delete(f"/api/admin/inventory/{item_id}", headers=admin_headers)
        assert deleted.status_code == 200
        assert deleted.json["deleted"] == [item_id]

        assert client.get(f"/api/admin/inventory/{item_id}", headers=admin_headers).status_code == 404

    def test_validation_error_is_400(self, client, admin_headers):
        resp = client.post("/api/admin/inventory", json=_item_body(quantity=-3), headers=admin_headers)
        assert resp.status_code == 400
        assert "quantity" in resp.json["error"]

    def test_partial_variant_failure_is_207(self, client, admin_headers):
        resp = client.post(
            "/api/admin/inventory",
            json=_item_body(variants=[
                {"name": "Red", "quantity": 1},
                {"name": "Green", "quantity": -1},
                {"name": "Blue", "quantity": 2},
            ]),
            headers=admin_headers,
        )

        assert resp.status_code == 207
        assert [v["name"] for v in resp.json["variants"]["created"]] == ["Red", "Blue"]
        assert resp.json["variants"]["error"].startswith("Failed to add variants: Green")

        detail = client.get(f"/api/admin/inventory/{resp.json['id']}", headers=admin_headers)
        assert [v["name"] for v in detail.json["variants"]] == ["Red", "Blue"]

    def test_add_variants_endpoint(self, client, admin_headers):
        parent = client.post(
            "/api/admin/inventory", json=_item_body(has_variants=True), headers=admin_headers
        ).json

        ok = client.post(
            f"/api/admin/inventory/{parent['id']}/variants",
            json={"variants": [{"name": "Maroon", "quantity": 3}]},
            headers=admin_headers,
        )
        assert ok.status_code == 201
        assert ok.json["created"][0]["cost_price"] == 900.0

        none_created = client.post(
            f"/api/admin/inventory/{parent['id']}/variants",
            json={"variants": [{"quantity": 3}]},
            headers=admin_headers,
        )
        assert none_created.status_code == 400
        assert none_created.json["created"] == []

        missing = client.post(
            "/api/admin/inventory/9999/variants",
            json={"variants": [{"name": "X"}]},
            headers=admin_headers,
        )
        assert missing.status_code == 404

    def test_clearing_has_variants_conflicts(self, client, admin_headers):
        parent = client.post(
            "/api/admin/inventory", json=_item_body(variants=[{"name": "Red"}]), headers=admin_headers
        ).json

        resp = client.put(
            f"/api/admin/inventory/{parent['id']}", json={"has_variants": False}, headers=admin_headers
        )
        assert resp.status_code == 409

    def test_restrict_policy_is_409(self, app, client, admin_headers):
        parent = client.post(
            "/api/admin/inventory", json=_item_body(variants=[{"name": "Red"}]), headers=admin_headers
        ).json

        app.config["VARIANT_DELETE_POLICY"] = "restrict"
        try:
            resp = client.delete(f"/api/admin/inventory/{parent['id']}", headers=admin_headers)
        finally:
            app.config["VARIANT_DELETE_POLICY"] = "orphan"
        assert resp.status_code == 409

    def test_multipart_create_with_image(self, client, admin_headers):
        data = {
            "name": "Uppada Saree",
            "category": "Sarees (Uppada)",
            "description": "Jamdani weave",
            "cost_price": "2000",
            "selling_price": "3200",
            "quantity": "2",
            "variants": '[{"name": "Gold"}]',
            "image": (io.BytesIO(PNG_BYTES), "uppada.png", "image/png"),
        }
        resp = client.post(
            "/api/admin/inventory",
            data=data,
            headers=admin_headers,
            content_type="multipart/form-data",
        )

        assert resp.status_code == 201
        assert resp.json["image_url"].startswith("/storage/inventory-images/Uppada_Saree_")
        assert resp.json["variants"]["created"][0]["name"] == "Gold"

        image = client.get(resp.json["image_url"])
        assert image.status_code == 200
        assert image.data == PNG_BYTES

    def test_bad_image_is_400_and_nothing_saved(self, client, admin_headers):
        resp = client.post(
            "/api/admin/inventory",
            json=_item_body(image="data:text/plain;base64," + base64.b64encode(b"hi").decode()),
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["error"].startswith("Image upload failed")
        assert client.get("/api/admin/inventory", headers=admin_headers).json["count"] == 0

    def test_filters_and_export(self, client, admin_headers, make_item):
        make_item(name="Red Saree", quantity=0)
        make_item(name='Blue "Kurti"', category="Kurtis & Tops", quantity=10)

        filtered = client.get(
            "/api/admin/inventory?category=Kurtis%20%26%20Tops&in_stock_only=true",
            headers=admin_headers,
        )
        assert [i["name"] for i in filtered.json["items"]] == ['Blue "Kurti"']

        bad = client.get("/api/admin/inventory?min_price=10&max_price=1", headers=admin_headers)
        assert bad.status_code == 400

        export = client.get("/api/admin/inventory/export?in_stock_only=true", headers=admin_headers)
        assert export.status_code == 200
        assert export.mimetype == "text/csv"
        assert "inventory.csv" in export.headers["Content-Disposition"]
        lines = export.get_data(as_text=True).split("\n")
        assert len(lines) == 2
        assert lines[1].startswith('"Blue ""Kurti""","Kurtis & Tops"')

    def test_categories(self, client, admin_headers):
        resp = client.get("/api/admin/categories", headers=admin_headers)
        assert "Sarees (Cotton)" in resp.json["items"]
        assert resp.json["custom"] == "Other (Custom)"


class TestRecordsApi:
    def test_suppliers_crud(self, client, admin_headers):
        created = client.post(
            "/api/admin/suppliers",
            json={"name": "Weaver Co", "items_supplied": "Sarees, Kurtis", "amount_due": 500},
            headers=admin_headers,
        )
        assert created.status_code == 201
        supplier_id = created.json["id"]

        assert client.put(
            f"/api/admin/suppliers/{supplier_id}", json={"amount_due": -1}, headers=admin_headers
        ).status_code == 400
        assert client.get("/api/admin/suppliers", headers=admin_headers).json["count"] == 1
        assert client.delete(f"/api/admin/suppliers/{supplier_id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/admin/suppliers/{supplier_id}", headers=admin_headers).status_code == 404

    def test_sales_flow_and_export(self, client, admin_headers, make_item):
        item = make_item(name="Kurti", selling_price="800")

        created = client.post(
            "/api/admin/sales",
            json={"item_id": item.id, "quantity_sold": 2, "total_revenue": 1},
            headers=admin_headers,
        )
        assert created.status_code == 201
        assert created.json["total_revenue"] == 1600.0

        listing = client.get("/api/admin/sales", headers=admin_headers)
        assert listing.json["summary"] == {"total_revenue": 1600.0, "total_items_sold": 2, "count": 1}

        export = client.get("/api/admin/sales/export", headers=admin_headers)
        assert "sales.csv" in export.headers["Content-Disposition"]
        assert export.get_data(as_text=True).split("\n")[1].endswith('"Kurti","2","800","1600"')

        assert client.post(
            "/api/admin/sales", json={"item_id": item.id, "quantity_sold": 0}, headers=admin_headers
        ).status_code == 400
        assert client.put("/api/admin/sales/999", json={"quantity_sold": 1}, headers=admin_headers).status_code == 404

    def test_pending_payments_flow(self, client, admin_headers):
        overdue_date = (today() - timedelta(days=3)).isoformat()
        created = client.post(
            "/api/admin/pending-payments",
            json={"name": "Lakshmi", "amount": 1200, "due_date": overdue_date, "phone": "98480"},
            headers=admin_headers,
        )
        assert created.status_code == 201
        assert created.json["status"] == "pending"
        assert created.json["effective_status"] == "overdue"
        assert created.json["due_label"] == "3 days overdue"

        rejected = client.post(
            "/api/admin/pending-payments",
            json={"name": "X", "amount": 10, "due_date": overdue_date, "status": "overdue"},
            headers=admin_headers,
        )
        assert rejected.status_code == 400

        listing = client.get("/api/admin/pending-payments", headers=admin_headers)
        assert listing.json["summary"]["overdue_count"] == 1

        paid = client.post(
            f"/api/admin/pending-payments/{created.json['id']}/mark-paid", headers=admin_headers
        )
        assert paid.json["effective_status"] == "paid"
        assert client.get("/api/admin/pending-payments", headers=admin_headers).json["count"] == 0
        assert client.get(
            "/api/admin/pending-payments?include_paid=true", headers=admin_headers
        ).json["count"] == 1


class TestDashboardApi:
    def test_summary_reflects_mutations(self, client, admin_headers):
        client.post("/api/admin/inventory", json=_item_body(quantity=1), headers=admin_headers)
        client.post("/api/admin/suppliers", json={"name": "Weaver", "amount_due": 250}, headers=admin_headers)

        summary = client.get("/api/admin/dashboard/summary", headers=admin_headers).json
        assert summary["total_items"] == 1
        assert summary["low_stock_items"] == 1
        assert summary["supplier_dues"] == 250.0
        assert "generated_at" in summary

    def test_analytics_shape(self, client, admin_headers):
        analytics = client.get("/api/admin/dashboard/analytics", headers=admin_headers).json
        assert len(analytics["monthly_sales"]) == 6
        assert analytics["monthly_growth"] == 0.0
        assert analytics["total_profit"] == 0.0

    def test_changes_polling(self, client, admin_headers):
        before = client.get("/api/admin/dashboard/changes", headers=admin_headers).json
        assert before["changes"] == []

        client.post("/api/admin/inventory", json=_item_body(), headers=admin_headers)

        after = client.get("/api/admin/dashboard/changes", headers=admin_headers).json
        assert {c["key"] for c in after["changes"]} == {"inventory-updated", "dashboard-data-updated"}

        client.post("/api/admin/suppliers", json={"name": "Weaver"}, headers=admin_headers)
        since_epoch = client.get(
            "/api/admin/dashboard/changes?since=2000-01-01T00:00:00Z", headers=admin_headers
        ).json
        assert len(since_epoch["changes"]) == 2

        future = client.get(
            "/api/admin/dashboard/changes?since=2999-01-01T00:00:00Z", headers=admin_headers
        ).json
        assert future["changes"] == []

    def test_bad_since_is_400(self, client, admin_headers):
        resp = client.get("/api/admin/dashboard/changes?since=yesterday", headers=admin_headers)
        assert resp.status_code == 400
