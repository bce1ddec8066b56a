"""
Tests para el módulo de Gastos
"""

import pytest
from decimal import Decimal
from uuid import uuid4


@pytest.fixture
def expense_payload():
    return {
        "category": "Rent",
        "amount": "50000.00",
        "date": "2024-03-01T00:00:00Z",
        "description": "Shop rent for March",
        "vendor": "Landlord"
    }


class TestExpenses:

    def test_staff_can_record_expense(self, client, staff, expense_payload):
        response = client.post("/expenses/", json=expense_payload, headers=staff.headers)
        assert response.status_code == 201
        data = response.json()
        assert data["category"] == "Rent"
        assert Decimal(data["amount"]) == Decimal("50000.00")
        assert data["date"].startswith("2024-03-01T00:00:00")
        assert data["created_by"] == str(staff.user_id)

    def test_staff_cannot_read_or_modify(self, client, owner, staff, expense_payload):
        created = client.post("/expenses/", json=expense_payload, headers=owner.headers).json()

        assert client.get("/expenses/", headers=staff.headers).status_code == 403
        assert client.get(f"/expenses/{created['id']}", headers=staff.headers).status_code == 403
        assert client.put(f"/expenses/{created['id']}", json={"amount": "1"}, headers=staff.headers).status_code == 403
        assert client.delete(f"/expenses/{created['id']}", headers=staff.headers).status_code == 403

    @pytest.mark.parametrize("overrides", [
        {"amount": "0"},
        {"amount": "-5"},
        {"category": "Travel"},
        {"description": "   "},
    ])
    def test_invalid_expense(self, client, owner, expense_payload, overrides):
        expense_payload.update(overrides)
        assert client.post("/expenses/", json=expense_payload, headers=owner.headers).status_code == 422

    def test_update_expense(self, client, admin, expense_payload):
        created = client.post("/expenses/", json=expense_payload, headers=admin.headers).json()
        response = client.put(f"/expenses/{created['id']}", json={"amount": "52000", "vendor": None}, headers=admin.headers)
        assert response.status_code == 200
        assert Decimal(response.json()["amount"]) == Decimal("52000")
        assert response.json()["vendor"] is None
        assert response.json()["description"] == "Shop rent for March"

    def test_delete_expense(self, client, owner, expense_payload):
        created = client.post("/expenses/", json=expense_payload, headers=owner.headers).json()
        assert client.delete(f"/expenses/{created['id']}", headers=owner.headers).status_code == 204
        assert client.get(f"/expenses/{created['id']}", headers=owner.headers).status_code == 404

    def test_unknown_expense(self, client, owner):
        assert client.get(f"/expenses/{uuid4()}", headers=owner.headers).status_code == 404


class TestExpenseListing:

    def test_filters(self, client, owner, expense_payload):
        client.post("/expenses/", json=expense_payload, headers=owner.headers)
        client.post("/expenses/", json={
            "category": "Utilities",
            "amount": "4500",
            "date": "2024-04-10T00:00:00Z",
            "description": "Electricity bill"
        }, headers=owner.headers)

        everything = client.get("/expenses/", headers=owner.headers).json()
        assert [e["category"] for e in everything["items"]] == ["Utilities", "Rent"]

        utilities = client.get("/expenses/", params={"category": "Utilities"}, headers=owner.headers).json()
        assert utilities["total"] == 1

        april = client.get("/expenses/", params={
            "start_date": "2024-04-01T00:00:00",
            "end_date": "2024-04-30T23:59:59"
        }, headers=owner.headers).json()
        assert [e["description"] for e in april["items"]] == ["Electricity bill"]

    def test_tenant_isolation(self, client, owner, other_owner, expense_payload):
        client.post("/expenses/", json=expense_payload, headers=owner.headers)
        assert client.get("/expenses/", headers=other_owner.headers).json()["total"] == 0
