"""
Tests para el módulo de Inventario

Cubre:
- CRUD de artículos y ocultamiento del costo para staff
- Movimientos de stock y alertas de stock bajo
- Recepción de envíos con costo prorrateado
"""

import pytest
from decimal import Decimal

from app.modules.inventory.service import landed_unit_cost, suggested_selling_price


@pytest.fixture
def item_payload():
    return {
        "name": "Samsung A15",
        "category": "Phones",
        "brand": "Samsung",
        "price": "45000.00",
        "cost_price": "38000.00",
        "reorder_point": 5,
        "warranty_period": "1 Year",
        "quantity": 6
    }


@pytest.fixture
def item(client, owner, item_payload):
    return client.post("/inventory/", json=item_payload, headers=owner.headers).json()


class TestInventoryItems:

    def test_create_item_records_initial_stock(self, client, owner, item):
        assert item["quantity"] == 6
        assert Decimal(item["cost_price"]) == Decimal("38000.00")

        movements = client.get(f"/inventory/{item['id']}/movements", headers=owner.headers).json()
        assert len(movements) == 1
        assert movements[0]["type"] == "addition"
        assert movements[0]["quantity"] == 6
        assert movements[0]["reference_id"] == "Initial Stock"
        assert movements[0]["created_by_name"] == "Nimal"

    def test_staff_sees_zero_cost(self, client, staff, item):
        listed = client.get("/inventory/", headers=staff.headers).json()
        assert Decimal(listed["items"][0]["cost_price"]) == Decimal("0")

        single = client.get(f"/inventory/{item['id']}", headers=staff.headers).json()
        assert Decimal(single["cost_price"]) == Decimal("0")
        assert Decimal(single["price"]) == Decimal("45000.00")

    def test_staff_cannot_modify(self, client, staff, item, item_payload):
        assert client.post("/inventory/", json=item_payload, headers=staff.headers).status_code == 403
        assert client.put(f"/inventory/{item['id']}", json={"price": "1"}, headers=staff.headers).status_code == 403
        assert client.delete(f"/inventory/{item['id']}", headers=staff.headers).status_code == 403

    def test_unknown_supplier_rejected(self, client, owner, item_payload):
        item_payload["supplier_id"] = "00000000-0000-0000-0000-000000000001"
        response = client.post("/inventory/", json=item_payload, headers=owner.headers)
        assert response.status_code == 400

    def test_supplier_name_denormalized(self, client, owner, item_payload):
        supplier = client.post("/suppliers/", json={"name": "Lanka Imports"}, headers=owner.headers).json()
        item_payload["supplier_id"] = supplier["id"]
        created = client.post("/inventory/", json=item_payload, headers=owner.headers).json()
        assert created["supplier_name"] == "Lanka Imports"

    def test_search(self, client, owner, item, item_payload):
        item_payload["name"] = "Nokia 105"
        client.post("/inventory/", json=item_payload, headers=owner.headers)
        data = client.get("/inventory/", params={"search": "nokia"}, headers=owner.headers).json()
        assert [i["name"] for i in data["items"]] == ["Nokia 105"]

    def test_delete_item(self, client, owner, item):
        assert client.delete(f"/inventory/{item['id']}", headers=owner.headers).status_code == 204
        assert client.get(f"/inventory/{item['id']}", headers=owner.headers).status_code == 404


class TestStockChanges:

    def test_add_stock(self, client, owner, item):
        response = client.put(f"/inventory/{item['id']}", json={"add_stock": 4}, headers=owner.headers)
        assert response.json()["quantity"] == 10

        movements = client.get(f"/inventory/{item['id']}/movements", headers=owner.headers).json()
        assert movements[0]["type"] == "addition"
        assert movements[0]["reference_id"] == "Manual Stock Update"

    def test_remove_stock_is_adjustment(self, client, owner, item):
        client.put(f"/inventory/{item['id']}", json={"add_stock": -2}, headers=owner.headers)
        movements = client.get(f"/inventory/{item['id']}/movements", headers=owner.headers).json()
        assert movements[0]["type"] == "adjustment"
        assert movements[0]["quantity"] == -2

    def test_cannot_go_negative(self, client, owner, item):
        response = client.put(f"/inventory/{item['id']}", json={"add_stock": -7}, headers=owner.headers)
        assert response.status_code == 400
        assert client.get(f"/inventory/{item['id']}", headers=owner.headers).json()["quantity"] == 6

    def test_low_stock_notification_when_crossing_reorder_point(self, client, owner, admin, item):
        client.put(f"/inventory/{item['id']}", json={"add_stock": -2}, headers=owner.headers)

        feed = client.get("/notifications/", headers=admin.headers).json()
        low_stock = [n for n in feed["items"] if n["type"] == "low-stock"]
        assert len(low_stock) == 1
        assert low_stock[0]["message_key"] == "notifications.inventory.low_stock"
        assert low_stock[0]["message_params"] == {"item": "Samsung A15", "count": 4}
        assert low_stock[0]["sender_name"] == "System"

        # ya por debajo del punto de reorden: no se repite
        client.put(f"/inventory/{item['id']}", json={"add_stock": -1}, headers=owner.headers)
        feed = client.get("/notifications/", headers=admin.headers).json()
        assert len([n for n in feed["items"] if n["type"] == "low-stock"]) == 1

    def test_item_changes_notify_other_managers(self, client, owner, admin, staff, item):
        admin_feed = client.get("/notifications/", headers=admin.headers).json()
        assert [n["message_key"] for n in admin_feed["items"]] == ["notifications.inventory.item_added"]

        owner_feed = client.get("/notifications/", headers=owner.headers).json()
        assert owner_feed["total"] == 0
        assert client.get("/notifications/", headers=staff.headers).json()["total"] == 0


class TestShipments:

    def test_landed_cost_allocation(self):
        landed = landed_unit_cost(10, Decimal("100"), Decimal("2000"), Decimal("200"))
        assert landed == Decimal("110")

    def test_suggested_price_rounded_to_tens(self):
        price = suggested_selling_price(Decimal("110"), Decimal("2200"), Decimal("440"))
        assert price == Decimal("130")

    def test_without_target_profit_price_is_landed_cost(self):
        assert suggested_selling_price(Decimal("110"), Decimal("2200"), Decimal("0")) == Decimal("110")

    def test_receive_shipment(self, client, owner):
        response = client.post("/inventory/shipments", json={
            "line_items": [
                {"name": "Charger", "quantity": 10, "unit_cost_price": "100"},
                {"name": "Cable", "quantity": 5, "unit_cost_price": "200"}
            ],
            "transport_cost": "150",
            "other_expenses": "50",
            "target_profit": "440"
        }, headers=owner.headers)
        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["total_purchase_value"]) == Decimal("2000.00")
        assert Decimal(data["total_landed_cost"]) == Decimal("2200.00")

        charger, cable = data["lines"]
        assert charger["created"] is True
        assert Decimal(charger["landed_cost"]) == Decimal("110.00")
        assert Decimal(charger["suggested_price"]) == Decimal("130.00")
        assert Decimal(cable["landed_cost"]) == Decimal("220.00")
        assert Decimal(cable["suggested_price"]) == Decimal("260.00")

        items = client.get("/inventory/", headers=owner.headers).json()["items"]
        created = {i["name"]: i for i in items}
        assert created["Charger"]["quantity"] == 10
        assert created["Charger"]["category"] == "Uncategorized"
        assert Decimal(created["Cable"]["price"]) == Decimal("260.00")

    def test_shipment_averages_existing_cost(self, client, owner):
        client.post("/inventory/", json={
            "name": "Charger",
            "category": "Accessories",
            "price": "150",
            "cost_price": "100",
            "reorder_point": 2,
            "warranty_period": "N/A",
            "quantity": 10
        }, headers=owner.headers)

        response = client.post("/inventory/shipments", json={
            "line_items": [{"name": "Charger", "quantity": 10, "unit_cost_price": "100"}],
            "transport_cost": "100"
        }, headers=owner.headers)
        assert response.json()["lines"][0]["created"] is False

        item = client.get("/inventory/", headers=owner.headers).json()["items"][0]
        assert item["quantity"] == 20
        assert Decimal(item["cost_price"]) == Decimal("105.00")
        assert Decimal(item["price"]) == Decimal("150.00")

    def test_staff_cannot_receive_shipments(self, client, staff):
        response = client.post("/inventory/shipments", json={
            "line_items": [{"name": "Charger", "quantity": 1, "unit_cost_price": "1"}]
        }, headers=staff.headers)
        assert response.status_code == 403
