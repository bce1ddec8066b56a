"""
Tests para el módulo de Facturación

Cubre:
- Totales, descuentos y validaciones
- Numeración secuencial por organización
- Descuento y reposición de stock con sus movimientos
- Pagos y recálculo de estado
- Notificaciones y permisos por rol
"""

import pytest
from decimal import Decimal

from app.common.mixins import utc_now
from app.modules.invoices.models import calculate_totals, status_for_payments
from app.modules.invoices.service import format_document_number


@pytest.fixture
def phone(client, owner):
    return client.post("/inventory/", json={
        "name": "Redmi Note 13",
        "category": "Phones",
        "price": "1000.00",
        "cost_price": "700.00",
        "reorder_point": 2,
        "warranty_period": "1 Year",
        "quantity": 10
    }, headers=owner.headers).json()


def invoice_payload(phone, quantity=2, **overrides):
    payload = {
        "customer_name": "Kasun Perera",
        "customer_phone": "0771234567",
        "line_items": [
            {
                "type": "product",
                "inventory_item_id": phone["id"],
                "description": "Redmi Note 13",
                "quantity": quantity,
                "price": "1000.00",
                "warranty_period": "1 Year"
            },
            {
                "type": "service",
                "description": "Screen protector fitting",
                "quantity": 1,
                "price": "500.00"
            }
        ],
        "discount_type": "percentage",
        "discount_value": "10"
    }
    payload.update(overrides)
    return payload


def stock_of(client, account, item):
    return client.get(f"/inventory/{item['id']}", headers=account.headers).json()["quantity"]


class TestTotals:

    def test_percentage_discount(self):
        subtotal, discount, total = calculate_totals([(2, "1000"), (1, "500")], "percentage", "10")
        assert subtotal == Decimal("2500")
        assert discount == Decimal("250")
        assert total == Decimal("2250")

    def test_fixed_discount(self):
        assert calculate_totals([(1, "500")], "fixed", "100")[2] == Decimal("400")

    def test_discount_rounded_to_cents(self):
        subtotal, discount, total = calculate_totals([(1, "10.00")], "percentage", "14.87")
        assert discount == Decimal("1.49")
        assert total == Decimal("8.51")
        assert str(total) == "8.51"

    @pytest.mark.parametrize("paid,total,expected", [
        (Decimal("0"), Decimal("100"), "Unpaid"),
        (Decimal("40"), Decimal("100"), "Partially Paid"),
        (Decimal("100"), Decimal("100"), "Paid"),
        (Decimal("120"), Decimal("100"), "Paid"),
    ])
    def test_status_for_payments(self, paid, total, expected):
        assert status_for_payments(paid, total) == expected

    def test_document_number_format(self):
        assert format_document_number("INV", 2024, 7) == "INV-2024-0007"
        assert format_document_number("RTN", 2025, 12345) == "RTN-2025-12345"


class TestCreateInvoice:

    def test_create_unpaid_invoice(self, client, staff, phone):
        response = client.post("/invoices/", json=invoice_payload(phone), headers=staff.headers)
        assert response.status_code == 201
        data = response.json()

        assert data["number"] == f"INV-{utc_now().year}-0001"
        assert data["status"] == "Unpaid"
        assert Decimal(data["subtotal"]) == Decimal("2500")
        assert Decimal(data["discount_amount"]) == Decimal("250")
        assert Decimal(data["total"]) == Decimal("2250")
        assert Decimal(data["balance_due"]) == Decimal("2250")
        assert data["created_by_name"] == "Sunil"
        assert data["payments"] == []

        product_line = data["line_items"][0]
        assert Decimal(product_line["cost_price_at_sale"]) == Decimal("700.00")
        assert Decimal(product_line["line_total"]) == Decimal("2000")
        assert data["line_items"][1]["cost_price_at_sale"] is None

    def test_stock_is_reduced_with_sale_movement(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone, quantity=3), headers=owner.headers).json()
        assert stock_of(client, owner, phone) == 7

        movements = client.get(f"/inventory/{phone['id']}/movements", headers=owner.headers).json()
        assert movements[0]["type"] == "sale"
        assert movements[0]["quantity"] == 3
        assert movements[0]["reference_id"] == invoice["number"]

    def test_numbers_are_sequential(self, client, owner, phone):
        numbers = [
            client.post("/invoices/", json=invoice_payload(phone, quantity=1), headers=owner.headers).json()["number"]
            for _ in range(3)
        ]
        year = utc_now().year
        assert numbers == [f"INV-{year}-0001", f"INV-{year}-0002", f"INV-{year}-0003"]

    def test_numbers_are_per_organization(self, client, owner, other_owner, phone):
        client.post("/invoices/", json=invoice_payload(phone, quantity=1), headers=owner.headers)
        payload = invoice_payload(phone)
        payload["line_items"] = payload["line_items"][1:]
        other = client.post("/invoices/", json=payload, headers=other_owner.headers).json()
        assert other["number"] == f"INV-{utc_now().year}-0001"

    def test_next_number_preview_does_not_reserve(self, client, owner, phone):
        year = utc_now().year
        assert client.get("/invoices/next-number", headers=owner.headers).json() == {"number": f"INV-{year}-0001"}
        assert client.get("/invoices/next-number", headers=owner.headers).json() == {"number": f"INV-{year}-0001"}

        client.post("/invoices/", json=invoice_payload(phone, quantity=1), headers=owner.headers)
        assert client.get("/invoices/next-number", headers=owner.headers).json() == {"number": f"INV-{year}-0002"}

    def test_insufficient_stock(self, client, owner, phone):
        response = client.post("/invoices/", json=invoice_payload(phone, quantity=11), headers=owner.headers)
        assert response.status_code == 400
        assert "Stock insuficiente" in response.json()["detail"]
        assert stock_of(client, owner, phone) == 10

        # el número no se consume
        year = utc_now().year
        assert client.get("/invoices/next-number", headers=owner.headers).json()["number"] == f"INV-{year}-0001"

    def test_paid_invoice_gets_full_cash_payment(self, client, owner, phone):
        data = client.post("/invoices/", json=invoice_payload(phone, status="Paid"), headers=owner.headers).json()
        assert data["status"] == "Paid"
        assert len(data["payments"]) == 1
        assert Decimal(data["payments"][0]["amount"]) == Decimal("2250")
        assert data["payments"][0]["method"] == "Cash"
        assert data["payments"][0]["notes"] == "Initial full payment on creation."
        assert Decimal(data["balance_due"]) == Decimal("0")

    def test_partially_paid_invoice(self, client, owner, phone):
        payload = invoice_payload(phone, status="Partially Paid", initial_payment="1000")
        data = client.post("/invoices/", json=payload, headers=owner.headers).json()
        assert data["status"] == "Partially Paid"
        assert Decimal(data["paid_amount"]) == Decimal("1000")
        assert Decimal(data["balance_due"]) == Decimal("1250")

    @pytest.mark.parametrize("initial_payment", [None, "2250", "3000"])
    def test_partially_paid_requires_valid_initial_payment(self, client, owner, phone, initial_payment):
        payload = invoice_payload(phone, status="Partially Paid")
        if initial_payment:
            payload["initial_payment"] = initial_payment
        response = client.post("/invoices/", json=payload, headers=owner.headers)
        assert response.status_code == 400

    @pytest.mark.parametrize("overrides", [
        {"status": "Cancelled"},
        {"customer_name": "   "},
        {"line_items": []},
        {"discount_value": "150"},
        {"discount_type": "fixed", "discount_value": "3000"},
    ])
    def test_invalid_payload(self, client, owner, phone, overrides):
        response = client.post("/invoices/", json=invoice_payload(phone, **overrides), headers=owner.headers)
        assert response.status_code == 422

    def test_unknown_inventory_item(self, client, owner, phone):
        payload = invoice_payload(phone)
        payload["line_items"][0]["inventory_item_id"] = "00000000-0000-0000-0000-000000000001"
        assert client.post("/invoices/", json=payload, headers=owner.headers).status_code == 400

    def test_managers_notified_except_creator(self, client, owner, admin, staff, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=staff.headers).json()

        feed = client.get("/notifications/", headers=admin.headers).json()["items"]
        created = [n for n in feed if n["message_key"] == "notifications.invoices.created"]
        assert len(created) == 1
        assert created[0]["message_params"] == {
            "user": "Sunil", "invoiceId": invoice["number"], "customer": "Kasun Perera"
        }
        assert created[0]["link"] == f"/invoice/{invoice['id']}"
        assert created[0]["type"] == "invoice"

        assert client.get("/notifications/", headers=staff.headers).json()["total"] == 0


class TestListInvoices:

    def test_filters(self, client, owner, phone):
        client.post("/invoices/", json=invoice_payload(phone, quantity=1), headers=owner.headers)
        client.post("/invoices/", json=invoice_payload(phone, quantity=1, status="Paid", customer_name="Amal"), headers=owner.headers)

        paid = client.get("/invoices/", params={"status": "Paid"}, headers=owner.headers).json()
        assert [i["customer_name"] for i in paid["items"]] == ["Amal"]

        found = client.get("/invoices/", params={"search": "kasun"}, headers=owner.headers).json()
        assert found["total"] == 1

        everything = client.get("/invoices/", headers=owner.headers).json()
        assert [i["customer_name"] for i in everything["items"]] == ["Amal", "Kasun Perera"]

    def test_filter_by_customer(self, client, owner, phone):
        customer = client.post("/customers/", json={"name": "Kasun Perera"}, headers=owner.headers).json()
        client.post("/invoices/", json=invoice_payload(phone, quantity=1, customer_id=customer["id"]), headers=owner.headers)
        client.post("/invoices/", json=invoice_payload(phone, quantity=1), headers=owner.headers)

        data = client.get("/invoices/", params={"customer_id": customer["id"]}, headers=owner.headers).json()
        assert data["total"] == 1

    def test_tenant_isolation(self, client, owner, other_owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=owner.headers).json()
        assert client.get(f"/invoices/{invoice['id']}", headers=other_owner.headers).status_code == 404
        assert client.get("/invoices/", headers=other_owner.headers).json()["total"] == 0


class TestUpdateInvoice:

    def test_more_units_sold(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone, quantity=2), headers=owner.headers).json()
        response = client.put(f"/invoices/{invoice['id']}", json=invoice_payload(phone, quantity=5), headers=owner.headers)
        assert response.status_code == 200
        assert stock_of(client, owner, phone) == 5

        movements = client.get(f"/inventory/{phone['id']}/movements", headers=owner.headers).json()
        assert movements[0]["type"] == "sale"
        assert movements[0]["quantity"] == 3

    def test_fewer_units_restock(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone, quantity=4), headers=owner.headers).json()
        client.put(f"/invoices/{invoice['id']}", json=invoice_payload(phone, quantity=1), headers=owner.headers)
        assert stock_of(client, owner, phone) == 9

        movements = client.get(f"/inventory/{phone['id']}/movements", headers=owner.headers).json()
        assert movements[0]["type"] == "cancellation"
        assert movements[0]["quantity"] == 3

    def test_status_recomputed_against_new_total(self, client, owner, phone):
        payload = invoice_payload(phone, quantity=1, status="Partially Paid", initial_payment="1000")
        invoice = client.post("/invoices/", json=payload, headers=owner.headers).json()
        assert invoice["status"] == "Partially Paid"

        cheaper = invoice_payload(phone, quantity=1, discount_type="fixed", discount_value="500")
        updated = client.put(f"/invoices/{invoice['id']}", json=cheaper, headers=owner.headers).json()
        assert Decimal(updated["total"]) == Decimal("1000")
        assert updated["status"] == "Paid"

    def test_update_insufficient_stock(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone, quantity=2), headers=owner.headers).json()
        response = client.put(f"/invoices/{invoice['id']}", json=invoice_payload(phone, quantity=13), headers=owner.headers)
        assert response.status_code == 400
        assert stock_of(client, owner, phone) == 8

    def test_paid_invoice_with_fractional_discount_stays_paid(self, client, owner, phone):
        payload = invoice_payload(phone, status="Paid", discount_value="14.87", line_items=[
            {"type": "service", "description": "Battery check", "quantity": 1, "price": "10.00"}
        ])
        invoice = client.post("/invoices/", json=payload, headers=owner.headers).json()
        assert Decimal(invoice["total"]) == Decimal("8.51")
        assert Decimal(invoice["paid_amount"]) == Decimal("8.51")
        assert Decimal(invoice["balance_due"]) == Decimal("0")
        assert invoice["status"] == "Paid"

        response = client.put(f"/invoices/{invoice['id']}", json=payload, headers=owner.headers)
        assert response.status_code == 200
        assert response.json()["status"] == "Paid"
        assert Decimal(response.json()["balance_due"]) == Decimal("0")

    def test_remove_line_of_deleted_item(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=owner.headers).json()
        client.delete(f"/inventory/{phone['id']}", headers=owner.headers)

        services_only = invoice_payload(phone, line_items=[invoice_payload(phone)["line_items"][1]])
        response = client.put(f"/invoices/{invoice['id']}", json=services_only, headers=owner.headers)
        assert response.status_code == 200
        assert len(response.json()["line_items"]) == 1
        assert Decimal(response.json()["total"]) == Decimal("450")

    def test_fewer_units_of_deleted_item(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone, quantity=3), headers=owner.headers).json()
        client.delete(f"/inventory/{phone['id']}", headers=owner.headers)

        response = client.put(f"/invoices/{invoice['id']}", json=invoice_payload(phone, quantity=1), headers=owner.headers)
        assert response.status_code == 200
        assert response.json()["line_items"][0]["quantity"] == 1
        assert response.json()["line_items"][0]["inventory_item_id"] is None

    def test_staff_cannot_edit(self, client, owner, staff, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=owner.headers).json()
        response = client.put(f"/invoices/{invoice['id']}", json=invoice_payload(phone), headers=staff.headers)
        assert response.status_code == 403

    def test_cannot_edit_cancelled(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=owner.headers).json()
        client.post(f"/invoices/{invoice['id']}/cancel", headers=owner.headers)
        response = client.put(f"/invoices/{invoice['id']}", json=invoice_payload(phone), headers=owner.headers)
        assert response.status_code == 400


class TestCancelInvoice:

    def test_cancel_restocks(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone, quantity=3), headers=owner.headers).json()
        response = client.post(f"/invoices/{invoice['id']}/cancel", headers=owner.headers)
        assert response.status_code == 200
        assert response.json()["status"] == "Cancelled"
        assert stock_of(client, owner, phone) == 10

        movements = client.get(f"/inventory/{phone['id']}/movements", headers=owner.headers).json()
        assert movements[0]["type"] == "cancellation"
        assert movements[0]["quantity"] == 3
        assert movements[0]["reference_id"] == invoice["number"]

    def test_cancel_twice_is_noop(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone, quantity=3), headers=owner.headers).json()
        client.post(f"/invoices/{invoice['id']}/cancel", headers=owner.headers)
        client.post(f"/invoices/{invoice['id']}/cancel", headers=owner.headers)
        assert stock_of(client, owner, phone) == 10

    def test_cancel_with_deleted_item(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=owner.headers).json()
        client.delete(f"/inventory/{phone['id']}", headers=owner.headers)
        response = client.post(f"/invoices/{invoice['id']}/cancel", headers=owner.headers)
        assert response.status_code == 200
        assert response.json()["status"] == "Cancelled"

    def test_staff_cannot_cancel(self, client, owner, staff, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=owner.headers).json()
        assert client.post(f"/invoices/{invoice['id']}/cancel", headers=staff.headers).status_code == 403


class TestPayments:

    def test_payments_update_status(self, client, owner, staff, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=owner.headers).json()

        partial = client.post(f"/invoices/{invoice['id']}/payments", json={"amount": "1000", "method": "Card"}, headers=staff.headers)
        assert partial.status_code == 201
        assert partial.json()["status"] == "Partially Paid"
        assert partial.json()["payments"][0]["created_by_name"] == "Sunil"

        paid = client.post(f"/invoices/{invoice['id']}/payments", json={"amount": "1250"}, headers=staff.headers).json()
        assert paid["status"] == "Paid"
        assert Decimal(paid["balance_due"]) == Decimal("0")

    def test_payment_notifies_all_roles(self, client, owner, admin, staff, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=owner.headers).json()
        client.post(f"/invoices/{invoice['id']}/payments", json={"amount": "99.5"}, headers=admin.headers)

        feed = client.get("/notifications/", headers=staff.headers).json()["items"]
        assert [n["message_key"] for n in feed] == ["notifications.invoices.payment_added"]
        assert feed[0]["message_params"]["amount"] == "99.50"

    def test_payment_must_be_positive(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=owner.headers).json()
        response = client.post(f"/invoices/{invoice['id']}/payments", json={"amount": "0"}, headers=owner.headers)
        assert response.status_code == 422

    def test_no_payments_on_cancelled(self, client, owner, phone):
        invoice = client.post("/invoices/", json=invoice_payload(phone), headers=owner.headers).json()
        client.post(f"/invoices/{invoice['id']}/cancel", headers=owner.headers)
        response = client.post(f"/invoices/{invoice['id']}/payments", json={"amount": "10"}, headers=owner.headers)
        assert response.status_code == 400
