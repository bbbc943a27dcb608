"""
Public storefront route tests (no authentication required).
"""

import pytest


@pytest.fixture
def catalog(make_item):
    parent = make_item(name="Gadwal Saree", category="Sarees (Gadwal)", selling_price="1500", quantity=0, has_variants=True)
    make_item(name="Red", category="Sarees (Gadwal)", selling_price="1500", quantity=2, base_item_id=parent.id)
    make_item(name="Printed Kurti", category="Kurtis & Tops", description="Block print", selling_price="600")
    return parent


def test_home_hides_cost_and_lists_variant_names(client, catalog):
    resp = client.get("/api/storefront/home")

    assert resp.status_code == 200
    assert resp.json["count"] == 3
    assert len(resp.json["new_arrivals"]) == 2
    for row in resp.json["items"]:
        assert "cost_price" not in row
    parent = next(r for r in resp.json["items"] if r["id"] == catalog.id)
    assert parent["variant_names"] == ["Red"]


def test_catalog_search_sort_and_groups(client, catalog):
    resp = client.get("/api/catalog?search=saree&sort=price-desc")

    assert resp.status_code == 200
    assert {r["name"] for r in resp.json["items"]} == {"Gadwal Saree", "Red"}
    assert resp.json["groups"][0]["category"] == "Sarees (Gadwal)"
    assert resp.json["pagination"]["total"] == 2
    assert all("cost_price" not in r for r in resp.json["items"])


def test_catalog_category_filter(client, catalog):
    resp = client.get("/api/catalog?category=Kurtis%20%26%20Tops")
    assert [r["name"] for r in resp.json["items"]] == ["Printed Kurti"]


def test_catalog_page_is_clamped(client, catalog):
    resp = client.get("/api/catalog?page=-4")
    assert resp.json["pagination"]["page"] == 1


def test_catalog_unknown_sort(client, catalog):
    assert client.get("/api/catalog?sort=popular").status_code == 400


def test_product_detail(client, catalog):
    resp = client.get(f"/api/catalog/{catalog.id}")

    assert resp.status_code == 200
    assert "cost_price" not in resp.json["item"]
    assert [v["name"] for v in resp.json["variants"]] == ["Red"]
    assert all("cost_price" not in v for v in resp.json["variants"])


def test_product_detail_missing(client, db_session):
    assert client.get("/api/catalog/4242").status_code == 404


def test_storage_rejects_other_buckets_and_traversal(client, db_session):
    assert client.get("/storage/private/anything.png").status_code == 404
    assert client.get("/storage/inventory-images/../secret.png").status_code == 404
    assert client.get("/storage/inventory-images/missing_1.png").status_code == 404


def test_health_and_version(client, admin_user):
    health = client.get("/api/health")
    assert health.status_code == 200
    assert health.json["checks"]["database"]["details"]["users"] == 1

    version = client.get("/api/version")
    assert version.json["api_version"] == "1.0.0"
