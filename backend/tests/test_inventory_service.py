"""
Inventory service tests.

Verifies:
- Validation and custom categories on create/update
- Variant inheritance and the variant rules
- Independent variant inserts with a combined failure message
- Parent delete policies (orphan, cascade, restrict)
"""

import base64
from pathlib import Path

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from storefront.models import InventoryItem
from storefront.services import inventory_service
from storefront.services.inventory_service import InventoryNotFoundError, VariantPolicyError
from storefront.validation import ConflictError, ValidationError

PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(b"\x89PNG\r\n\x1a\nfake").decode()


def _payload(**overrides):
    payload = {
        "name": "Gadwal Saree",
        "category": "Sarees (Gadwal)",
        "description": "Silk border",
        "cost_price": 1200,
        "selling_price": 1800,
        "quantity": 3,
    }
    payload.update(overrides)
    return payload


class TestCreateAndUpdate:
    def test_create_item(self, db_session):
        result = inventory_service.create_item(_payload())

        assert result["id"] is not None
        assert result["cost_price"] == 1200.0
        assert result["low_stock"] is True
        assert "variants" not in result

    def test_missing_required_field(self, db_session):
        payload = _payload()
        del payload["description"]
        with pytest.raises(ValidationError, match="description"):
            inventory_service.create_item(payload)

    @pytest.mark.parametrize("field,value", [
        ("selling_price", -1),
        ("quantity", -5),
        ("cost_price", "abc"),
        ("quantity", 1.5),
    ])
    def test_invalid_numbers_rejected(self, db_session, field, value):
        with pytest.raises(ValidationError):
            inventory_service.create_item(_payload(**{field: value}))
        assert db_session.query(InventoryItem).count() == 0

    def test_custom_category_is_stored(self, db_session):
        result = inventory_service.create_item(_payload(category="Other (Custom)", custom_category="Kalamkari"))
        assert result["category"] == "Kalamkari"

    def test_unknown_category_rejected(self, db_session):
        with pytest.raises(ValidationError, match="Unknown category"):
            inventory_service.create_item(_payload(category="Hats"))

    def test_update_keeps_existing_custom_category(self, db_session):
        created = inventory_service.create_item(_payload(category="Other (Custom)", custom_category="Kalamkari"))
        updated = inventory_service.update_item(created["id"], {"category": "Kalamkari", "quantity": 9})
        assert updated["category"] == "Kalamkari"
        assert updated["quantity"] == 9

    def test_update_missing_item(self, db_session):
        with pytest.raises(InventoryNotFoundError):
            inventory_service.update_item(404, {"quantity": 1})

    def test_unknown_field_rejected(self, db_session):
        created = inventory_service.create_item(_payload())
        with pytest.raises(ValidationError, match="Field not allowed"):
            inventory_service.update_item(created["id"], {"sku": "X1"})

    def test_image_data_url_is_uploaded(self, app, db_session):
        result = inventory_service.create_item(_payload(name="Red Saree", image=PNG_DATA_URL))

        assert result["image_url"].startswith("/storage/inventory-images/Red_Saree_")
        assert result["image_url"].endswith(".png")
        key = result["image_url"].rsplit("/", 1)[1]
        stored = Path(app.config["UPLOAD_FOLDER"]) / "inventory-images" / key
        assert stored.read_bytes().startswith(b"\x89PNG")


class TestVariants:
    def test_create_with_variants_inherits_from_parent(self, db_session):
        result = inventory_service.create_item(_payload(variants=[
            {"name": "Red", "quantity": 2, "selling_price": 1800},
            {"name": "Green", "quantity": 1, "description": "Bottle green", "category": "Lehengas"},
        ]))

        assert result["has_variants"] is True
        batch = result["variants"]
        assert batch["error"] is None
        red, green = batch["created"]
        assert red["base_item_id"] == result["id"]
        assert red["category"] == "Sarees (Gadwal)"
        assert red["cost_price"] == 1200.0
        assert red["description"] == "Silk border - Red"
        assert green["description"] == "Bottle green"
        assert green["category"] == "Sarees (Gadwal)"

    def test_failed_variant_does_not_undo_the_others(self, db_session):
        parent = inventory_service.create_item(_payload(has_variants=True))

        result = inventory_service.create_variants(parent["id"], [
            {"name": "Red", "quantity": 2},
            {"name": "Green", "quantity": -1},
            {"name": "Blue", "quantity": 4},
        ])

        assert [v.name for v in result.created] == ["Red", "Blue"]
        assert result.ok is False
        assert result.error_message == "Failed to add variants: Green (quantity must be >= 0)"
        assert [v.name for v in inventory_service.list_variants(parent["id"])] == ["Red", "Blue"]

    def test_insert_failure_rolls_back_only_that_variant(self, db_session):
        parent = inventory_service.create_item(_payload(has_variants=True))

        def reject_green(mapper, connection, target):
            if target.name == "Green":
                raise OperationalError("INSERT INTO inventory_items", {}, Exception("disk I/O error"))

        event.listen(InventoryItem, "before_insert", reject_green)
        try:
            result = inventory_service.create_variants(parent["id"], [
                {"name": "Red"},
                {"name": "Green"},
                {"name": "Blue"},
            ])
        finally:
            event.remove(InventoryItem, "before_insert", reject_green)

        assert [v.name for v in result.created] == ["Red", "Blue"]
        assert [f["name"] for f in result.failures] == ["Green"]
        assert result.error_message.startswith("Failed to add variants: Green (")
        assert [v.name for v in inventory_service.list_variants(parent["id"])] == ["Red", "Blue"]

    def test_variants_need_a_parent_that_accepts_them(self, db_session):
        plain = inventory_service.create_item(_payload())
        with pytest.raises(ValidationError, match="does not accept variants"):
            inventory_service.create_variants(plain["id"], [{"name": "Red"}])

    def test_variants_never_nest(self, db_session):
        parent = inventory_service.create_item(_payload(variants=[{"name": "Red"}]))
        variant_id = parent["variants"]["created"][0]["id"]

        with pytest.raises(ValidationError, match="cannot have variants"):
            inventory_service.create_variants(variant_id, [{"name": "Dark red"}])
        with pytest.raises(ValidationError, match="cannot have variants"):
            inventory_service.update_item(variant_id, {"has_variants": True})

    def test_base_item_must_exist(self, db_session):
        with pytest.raises(ValidationError, match="not found"):
            inventory_service.create_item(_payload(base_item_id=999))

    def test_cannot_clear_has_variants_while_variants_exist(self, db_session):
        parent = inventory_service.create_item(_payload(variants=[{"name": "Red"}]))
        with pytest.raises(ConflictError):
            inventory_service.update_item(parent["id"], {"has_variants": False})

    def test_detail_includes_variants_and_parent(self, db_session):
        parent = inventory_service.create_item(_payload(variants=[{"name": "Red"}, {"name": "Green"}]))
        detail = inventory_service.get_item_detail(parent["id"])
        assert [v["name"] for v in detail["variants"]] == ["Red", "Green"]
        assert detail["parent"] is None

        variant_detail = inventory_service.get_item_detail(detail["variants"][0]["id"], public=True)
        assert variant_detail["parent"]["id"] == parent["id"]
        assert "cost_price" not in variant_detail["item"]


class TestDeletePolicies:
    def _parent_with_variants(self):
        return inventory_service.create_item(_payload(variants=[{"name": "Red"}, {"name": "Green"}]))

    def test_orphan_policy_leaves_variants_pointing_at_deleted_parent(self, db_session):
        parent = self._parent_with_variants()

        result = inventory_service.delete_item(parent["id"], policy="orphan")

        assert result["deleted"] == [parent["id"]]
        assert len(result["orphaned"]) == 2
        remaining = db_session.query(InventoryItem).all()
        assert len(remaining) == 2
        assert all(v.base_item_id == parent["id"] for v in remaining)

    def test_orphaned_variant_can_still_be_updated(self, db_session):
        parent = self._parent_with_variants()
        inventory_service.delete_item(parent["id"], policy="orphan")
        orphan = db_session.query(InventoryItem).filter_by(name="Red").one()

        result = inventory_service.update_item(orphan.id, {"quantity": 7, "selling_price": 1500})

        assert result["quantity"] == 7
        assert result["selling_price"] == 1500.0
        assert result["base_item_id"] == parent["id"]

    def test_orphaned_variant_cannot_move_to_missing_parent(self, db_session):
        parent = self._parent_with_variants()
        inventory_service.delete_item(parent["id"], policy="orphan")
        orphan = db_session.query(InventoryItem).filter_by(name="Red").one()

        with pytest.raises(ValidationError, match="not found"):
            inventory_service.update_item(orphan.id, {"base_item_id": 9999})

    def test_cascade_policy_deletes_variants(self, db_session):
        parent = self._parent_with_variants()

        result = inventory_service.delete_item(parent["id"], policy="cascade")

        assert len(result["deleted"]) == 3
        assert db_session.query(InventoryItem).count() == 0

    def test_restrict_policy_refuses(self, db_session):
        parent = self._parent_with_variants()

        with pytest.raises(VariantPolicyError):
            inventory_service.delete_item(parent["id"], policy="restrict")
        assert db_session.query(InventoryItem).count() == 3

    def test_configured_policy_is_default(self, app, db_session):
        parent = self._parent_with_variants()
        assert app.config["VARIANT_DELETE_POLICY"] == "orphan"
        result = inventory_service.delete_item(parent["id"])
        assert len(result["orphaned"]) == 2

    def test_delete_missing(self, db_session):
        with pytest.raises(InventoryNotFoundError):
            inventory_service.delete_item(12345)
