"""
Tests para el módulo de Devoluciones
"""

import pytest

from app.common.mixins import utc_now


@pytest.fixture
def laptop(client, owner):
    return client.post("/inventory/", json={
        "name": "Lenovo IdeaPad",
        "category": "Laptops",
        "price": "250000",
        "cost_price": "210000",
        "reorder_point": 1,
        "warranty_period": "2 Years",
        "quantity": 3
    }, headers=owner.headers).json()


def return_payload(item, **overrides):
    payload = {
        "type": "Customer Return",
        "inventory_item_id": item["id"],
        "quantity": 1,
        "reason": "Keyboard not working",
        "original_invoice_id": "INV-2024-0001",
        "customer_name": "  Kasun  ",
        "customer_phone": "0771234567"
    }
    payload.update(overrides)
    return payload


class TestCreateReturn:

    def test_create_customer_return(self, client, staff, laptop):
        response = client.post("/returns/", json=return_payload(laptop), headers=staff.headers)
        assert response.status_code == 201
        data = response.json()
        assert data["return_number"] == f"RTN-{utc_now().year}-0001"
        assert data["status"] == "Awaiting Inspection"
        assert data["customer_name"] == "Kasun"
        assert data["inventory_item_name"] == "Lenovo IdeaPad"
        assert data["created_by_name"] == "Sunil"
        assert data["resolution_date"] is None

    def test_return_numbers_independent_from_invoices(self, client, owner, laptop):
        client.post("/invoices/", json={
            "customer_name": "Kasun",
            "line_items": [{"type": "service", "description": "Repair", "quantity": 1, "price": "100"}]
        }, headers=owner.headers)

        first = client.post("/returns/", json=return_payload(laptop), headers=owner.headers).json()
        second = client.post("/returns/", json=return_payload(laptop), headers=owner.headers).json()
        year = utc_now().year
        assert [first["return_number"], second["return_number"]] == [f"RTN-{year}-0001", f"RTN-{year}-0002"]

    def test_returns_do_not_change_stock(self, client, owner, laptop):
        client.post("/returns/", json=return_payload(laptop, quantity=2), headers=owner.headers)
        assert client.get(f"/inventory/{laptop['id']}", headers=owner.headers).json()["quantity"] == 3

    def test_supplier_return_without_customer(self, client, owner, laptop):
        payload = return_payload(laptop, type="Supplier Return", customer_name="")
        response = client.post("/returns/", json=payload, headers=owner.headers)
        assert response.status_code == 201

    @pytest.mark.parametrize("overrides", [
        {"customer_name": "   "},
        {"reason": "bad"},
        {"quantity": 0},
    ])
    def test_invalid_return(self, client, owner, laptop, overrides):
        response = client.post("/returns/", json=return_payload(laptop, **overrides), headers=owner.headers)
        assert response.status_code == 422

    def test_unknown_inventory_item(self, client, owner, laptop):
        payload = return_payload(laptop, inventory_item_id="00000000-0000-0000-0000-000000000001")
        assert client.post("/returns/", json=payload, headers=owner.headers).status_code == 400

    def test_all_other_members_notified(self, client, owner, admin, staff, laptop):
        created = client.post("/returns/", json=return_payload(laptop), headers=staff.headers).json()

        for account in (owner, admin):
            feed = client.get("/notifications/", headers=account.headers).json()["items"]
            returns = [n for n in feed if n["type"] == "return"]
            assert len(returns) == 1
            assert returns[0]["message_key"] == "notifications.returns.created"
            assert returns[0]["message_params"] == {"user": "Sunil", "returnId": created["return_number"]}
            assert returns[0]["link"] == f"/returns/{created['id']}"

        assert client.get("/notifications/", headers=staff.headers).json()["total"] == 0


class TestUpdateReturn:

    def test_admin_completes_return(self, client, owner, admin, laptop):
        created = client.post("/returns/", json=return_payload(laptop), headers=owner.headers).json()

        response = client.patch(f"/returns/{created['id']}", json={"status": "Completed / Closed"}, headers=admin.headers)
        assert response.status_code == 200
        resolved_at = response.json()["resolution_date"]
        assert resolved_at is not None

        # la fecha de resolución no se sobrescribe
        client.patch(f"/returns/{created['id']}", json={"status": "Under Repair"}, headers=admin.headers)
        again = client.patch(f"/returns/{created['id']}", json={"status": "Completed / Closed"}, headers=admin.headers)
        assert again.json()["resolution_date"] == resolved_at

    def test_staff_can_add_notes_but_not_change_status(self, client, owner, staff, laptop):
        created = client.post("/returns/", json=return_payload(laptop), headers=owner.headers).json()

        notes = client.patch(f"/returns/{created['id']}", json={"notes": "Customer called"}, headers=staff.headers)
        assert notes.status_code == 200
        assert notes.json()["notes"] == "Customer called"

        status_change = client.patch(f"/returns/{created['id']}", json={"status": "Under Repair"}, headers=staff.headers)
        assert status_change.status_code == 403

        # enviar el mismo estado no es un cambio
        same = client.patch(f"/returns/{created['id']}", json={"status": "Awaiting Inspection"}, headers=staff.headers)
        assert same.status_code == 200

    def test_filter_by_status(self, client, owner, laptop):
        first = client.post("/returns/", json=return_payload(laptop), headers=owner.headers).json()
        client.post("/returns/", json=return_payload(laptop), headers=owner.headers)
        client.patch(f"/returns/{first['id']}", json={"status": "Under Repair"}, headers=owner.headers)

        data = client.get("/returns/", params={"status": "Under Repair"}, headers=owner.headers).json()
        assert [r["id"] for r in data["items"]] == [first["id"]]
        assert client.get("/returns/", headers=owner.headers).json()["total"] == 2

    def test_tenant_isolation(self, client, owner, other_owner, laptop):
        created = client.post("/returns/", json=return_payload(laptop), headers=owner.headers).json()
        assert client.get(f"/returns/{created['id']}", headers=other_owner.headers).status_code == 404
