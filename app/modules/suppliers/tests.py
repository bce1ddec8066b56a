"""
Tests para el módulo de Proveedores
"""

import pytest


@pytest.fixture
def supplier_payload():
    return {
        "name": "Lanka Imports",
        "contact_person": "Saman",
        "phone": "0112345678",
        "email": "sales@lankaimports.lk"
    }


class TestSuppliers:

    def test_admin_creates_supplier(self, client, admin, supplier_payload):
        response = client.post("/suppliers/", json=supplier_payload, headers=admin.headers)
        assert response.status_code == 201
        assert response.json()["contact_person"] == "Saman"

    def test_staff_has_no_access(self, client, owner, staff, supplier_payload):
        created = client.post("/suppliers/", json=supplier_payload, headers=owner.headers).json()

        assert client.get("/suppliers/", headers=staff.headers).status_code == 403
        assert client.post("/suppliers/", json=supplier_payload, headers=staff.headers).status_code == 403
        assert client.get(f"/suppliers/{created['id']}", headers=staff.headers).status_code == 403

    def test_update_and_delete(self, client, owner, supplier_payload):
        created = client.post("/suppliers/", json=supplier_payload, headers=owner.headers).json()

        updated = client.put(f"/suppliers/{created['id']}", json={"address": "Galle"}, headers=owner.headers)
        assert updated.json()["address"] == "Galle"
        assert updated.json()["name"] == "Lanka Imports"

        assert client.delete(f"/suppliers/{created['id']}", headers=owner.headers).status_code == 204
        assert client.get("/suppliers/", headers=owner.headers).json()["total"] == 0

    def test_search(self, client, owner, supplier_payload):
        client.post("/suppliers/", json=supplier_payload, headers=owner.headers)
        client.post("/suppliers/", json={"name": "Colombo Traders"}, headers=owner.headers)

        data = client.get("/suppliers/", params={"search": "colombo"}, headers=owner.headers).json()
        assert [s["name"] for s in data["items"]] == ["Colombo Traders"]

    def test_invalid_email(self, client, owner):
        response = client.post("/suppliers/", json={"name": "Acme", "email": "nope"}, headers=owner.headers)
        assert response.status_code == 422
