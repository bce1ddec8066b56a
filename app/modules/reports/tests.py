"""
Tests para el módulo de Reportes

- Antigüedad de cuentas por cobrar
- Pérdidas y ganancias, desglose de gastos y análisis de ventas
- Antigüedad del inventario y rentabilidad por producto
- Exportaciones CSV
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from uuid import UUID

from app.common.mixins import utc_now
from app.modules.inventory.models import InventoryItem
from app.modules.invoices.models import Invoice
from app.modules.reports.services.financial import aging_bucket
from app.modules.reports.utils import build_csv, month_bounds, format_csv_value


def create_invoice(client, account, customer="Kasun", lines=None, **extra):
    payload = {
        "customer_name": customer,
        "line_items": lines or [{"type": "service", "description": "Repair", "quantity": 1, "price": "1000"}]
    }
    payload.update(extra)
    response = client.post("/invoices/", json=payload, headers=account.headers)
    assert response.status_code == 201
    return response.json()


def pay(client, account, invoice, amount, when):
    response = client.post(
        f"/invoices/{invoice['id']}/payments",
        json={"amount": amount, "date": when},
        headers=account.headers
    )
    assert response.status_code == 201
    return response.json()


def backdate(db_session, invoice, days):
    row = db_session.get(Invoice, UUID(invoice["id"]))
    row.created_at = utc_now() - timedelta(days=days)
    db_session.commit()


class TestHelpers:

    @pytest.mark.parametrize("days,bucket", [
        (-3, "current"),
        (0, "current"),
        (1, "days_1_30"),
        (30, "days_1_30"),
        (31, "days_31_60"),
        (60, "days_31_60"),
        (61, "days_61_90"),
        (90, "days_61_90"),
        (91, "days_90_plus"),
    ])
    def test_aging_bucket(self, days, bucket):
        assert aging_bucket(days) == bucket

    def test_month_bounds(self):
        assert month_bounds(date(2024, 2, 14)) == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_bounds(date(2023, 12, 31)) == (date(2023, 12, 1), date(2023, 12, 31))

    def test_format_csv_value(self):
        assert format_csv_value(None) == ""
        assert format_csv_value(Decimal("12.5")) == "12.50"
        assert format_csv_value(date(2024, 5, 1)) == "2024-05-01"

    def test_build_csv_quotes_special_values(self):
        content = build_csv(
            [{"name": 'Perera, "Kamal"', "phone": None}, {"name": "Silva", "phone": "0771"}],
            {"name": "Name", "phone": "Phone"}
        )
        assert content == 'Name,Phone\n"Perera, ""Kamal""",\nSilva,0771\n'


class TestAgingReport:

    def test_buckets_and_order(self, client, db_session, owner):
        recent = create_invoice(client, owner, customer="Recent")
        old = create_invoice(client, owner, customer="Old")
        partial = create_invoice(client, owner, customer="Partial", lines=[
            {"type": "service", "description": "Screen repair", "quantity": 1, "price": "3000"}
        ], status="Partially Paid", initial_payment="1000")
        paid = create_invoice(client, owner, customer="Paid", status="Paid")
        backdate(db_session, old, 100)

        as_of = (utc_now() + timedelta(days=45)).date()
        response = client.get("/reports/aging", params={"as_of_date": as_of.isoformat()}, headers=owner.headers)
        assert response.status_code == 200
        data = response.json()

        assert {key: Decimal(value) for key, value in data["buckets"].items()} == {
            "current": Decimal("0"),
            "1-30": Decimal("0"),
            "31-60": Decimal("3000"),
            "61-90": Decimal("0"),
            "90+": Decimal("1000"),
        }
        assert Decimal(data["total_due"]) == Decimal("4000")

        numbers = [row["number"] for row in data["invoices"]]
        assert numbers[0] == old["number"]
        assert set(numbers) == {old["number"], recent["number"], partial["number"]}
        assert paid["number"] not in numbers
        assert data["invoices"][0]["days_overdue"] == 145

    def test_cancelled_invoices_excluded(self, client, owner):
        invoice = create_invoice(client, owner)
        client.post(f"/invoices/{invoice['id']}/cancel", headers=owner.headers)
        data = client.get("/reports/aging", headers=owner.headers).json()
        assert data["invoices"] == []
        assert Decimal(data["total_due"]) == 0

    def test_staff_denied(self, client, staff):
        assert client.get("/reports/aging", headers=staff.headers).status_code == 403


class TestProfitAndLoss:

    def test_daily_series_and_totals(self, client, owner):
        invoice = create_invoice(client, owner, lines=[
            {"type": "service", "description": "Repair", "quantity": 1, "price": "5000"}
        ])
        pay(client, owner, invoice, "2000", "2024-05-02T09:00:00Z")
        pay(client, owner, invoice, "1500", "2024-05-03T15:30:00Z")
        pay(client, owner, invoice, "500", "2024-06-01T10:00:00Z")
        client.post("/expenses/", json={
            "category": "Rent", "amount": "1200", "date": "2024-05-03T00:00:00Z", "description": "Rent"
        }, headers=owner.headers)

        response = client.get("/reports/profit-loss", params={
            "start_date": "2024-05-01", "end_date": "2024-05-03"
        }, headers=owner.headers)
        assert response.status_code == 200
        data = response.json()

        assert Decimal(data["total_revenue"]) == Decimal("3500")
        assert Decimal(data["total_expenses"]) == Decimal("1200")
        assert Decimal(data["net_profit"]) == Decimal("2300")
        assert [
            (day["date"], Decimal(day["revenue"]), Decimal(day["expenses"])) for day in data["daily"]
        ] == [
            ("2024-05-01", Decimal("0"), Decimal("0")),
            ("2024-05-02", Decimal("2000"), Decimal("0")),
            ("2024-05-03", Decimal("1500"), Decimal("1200")),
        ]

    def test_defaults_to_current_month(self, client, owner):
        start, end = month_bounds()
        data = client.get("/reports/profit-loss", headers=owner.headers).json()
        assert data["start_date"] == start.isoformat()
        assert data["end_date"] == end.isoformat()
        assert len(data["daily"]) == end.day

    def test_inverted_range(self, client, owner):
        response = client.get("/reports/profit-loss", params={
            "start_date": "2024-05-10", "end_date": "2024-05-01"
        }, headers=owner.headers)
        assert response.status_code == 422


class TestExpenseBreakdown:

    def test_percentages_sorted_by_total(self, client, admin):
        for category, amount in [("Rent", "600"), ("Utilities", "100"), ("Rent", "150"), ("Salaries", "150")]:
            client.post("/expenses/", json={
                "category": category, "amount": amount, "date": "2024-05-10T00:00:00Z", "description": category
            }, headers=admin.headers)

        data = client.get("/reports/expenses", params={
            "start_date": "2024-05-01", "end_date": "2024-05-31"
        }, headers=admin.headers).json()

        assert Decimal(data["total_expenses"]) == Decimal("1000")
        rent = data["categories"][0]
        assert rent["category"] == "Rent"
        assert rent["count"] == 2
        assert Decimal(rent["percentage"]) == Decimal("75.00")
        assert [c["category"] for c in data["categories"]] == ["Rent", "Salaries", "Utilities"]
        assert sum(Decimal(c["percentage"]) for c in data["categories"]) == Decimal("100.00")


class TestSalesAnalysis:

    def test_top_products_exclude_cancelled(self, client, owner):
        chargers = create_invoice(client, owner, lines=[
            {"type": "product", "description": "Charger", "quantity": 2, "price": "1500"},
            {"type": "service", "description": "Installation", "quantity": 1, "price": "500"},
        ])
        cables = create_invoice(client, owner, lines=[
            {"type": "product", "description": "USB Cable", "quantity": 3, "price": "400"}
        ])
        phone = create_invoice(client, owner, lines=[
            {"type": "product", "description": "Phone", "quantity": 1, "price": "50000"}
        ])
        pay(client, owner, chargers, "3500", "2024-05-10T10:00:00Z")
        pay(client, owner, cables, "1200", "2024-05-11T10:00:00Z")
        pay(client, owner, phone, "50000", "2024-05-11T11:00:00Z")
        client.post(f"/invoices/{phone['id']}/cancel", headers=owner.headers)

        response = client.get("/reports/sales-analysis", params={
            "start_date": "2024-05-10", "end_date": "2024-05-11"
        }, headers=owner.headers)
        assert response.status_code == 200
        data = response.json()

        assert Decimal(data["total_revenue"]) == Decimal("4700")
        assert data["invoices_with_payments"] == 2
        assert Decimal(data["average_daily_revenue"]) == Decimal("2350.00")
        assert [(d["date"], Decimal(d["total"])) for d in data["daily"]] == [
            ("2024-05-10", Decimal("3500")),
            ("2024-05-11", Decimal("1200")),
        ]
        assert [(p["description"], p["quantity"], Decimal(p["revenue"])) for p in data["top_products"]] == [
            ("Charger", 2, Decimal("3000")),
            ("USB Cable", 3, Decimal("1200")),
        ]

    def test_staff_denied(self, client, staff):
        assert client.get("/reports/sales-analysis", headers=staff.headers).status_code == 403


class TestExports:

    def test_export_customers(self, client, owner):
        client.post("/customers/", json={"name": "Perera, Kamal", "phone": "0771234567"}, headers=owner.headers)

        response = client.get("/reports/export/customers", headers=owner.headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment; filename=customers-" in response.headers["content-disposition"]
        lines = response.text.strip().split("\n")
        assert lines[0] == "Name,Phone,Email,Address,Created At"
        assert lines[1].startswith('"Perera, Kamal",0771234567,,,')

    def test_export_invoices(self, client, owner):
        invoice = create_invoice(client, owner, status="Paid")
        lines = client.get("/reports/export/invoices", headers=owner.headers).text.strip().split("\n")
        assert lines[0] == "Invoice #,Customer Name,Customer Phone,Status,Date,Total Amount,Amount Paid,Amount Due"
        assert lines[1].startswith(f"{invoice['number']},Kasun,,Paid,")
        assert lines[1].endswith(",1000.00,1000.00,0.00")

    def test_empty_export(self, client, owner):
        response = client.get("/reports/export/expenses", headers=owner.headers)
        assert response.status_code == 404
        assert response.json()["detail"] == "No hay datos para exportar"

    def test_unknown_dataset(self, client, owner):
        assert client.get("/reports/export/payroll", headers=owner.headers).status_code == 422

    def test_staff_denied(self, client, staff):
        assert client.get("/reports/export/inventory", headers=staff.headers).status_code == 403


def add_item(client, account, name, category, cost_price, price, quantity=10, supplier_id=None):
    response = client.post("/inventory/", json={
        "name": name,
        "category": category,
        "price": price,
        "cost_price": cost_price,
        "quantity": quantity,
        "supplier_id": supplier_id
    }, headers=account.headers)
    assert response.status_code == 201
    return response.json()


def sale_line(item, quantity, price):
    return {
        "type": "product",
        "inventory_item_id": item["id"],
        "description": item["name"],
        "quantity": quantity,
        "price": price
    }


class TestInventoryAging:

    def test_brackets(self, client, db_session, owner):
        fresh = add_item(client, owner, "Phone Case", "Accessories", "100", "300", quantity=5)
        older = add_item(client, owner, "Charger", "Accessories", "400", "900", quantity=2)
        stale = add_item(client, owner, "Old Tablet", "Tablets", "20000", "30000", quantity=1)
        for item, days in ((older, 45), (stale, 200)):
            row = db_session.get(InventoryItem, UUID(item["id"]))
            row.created_at = utc_now() - timedelta(days=days)
        db_session.commit()

        response = client.get("/reports/inventory-aging", headers=owner.headers)
        assert response.status_code == 200
        data = response.json()

        brackets = {b["bracket"]: b for b in data["brackets"]}
        assert [b["bracket"] for b in data["brackets"]] == ["0-30", "31-90", "91-180", "180+"]
        assert [i["name"] for i in brackets["0-30"]["items"]] == [fresh["name"]]
        assert [i["name"] for i in brackets["31-90"]["items"]] == ["Charger"]
        assert brackets["91-180"]["item_count"] == 0
        assert brackets["180+"]["items"][0]["age_in_days"] >= 199
        assert Decimal(brackets["0-30"]["stock_value"]) == Decimal("500")
        assert Decimal(data["total_stock_value"]) == Decimal("21300")

    def test_staff_denied(self, client, staff):
        assert client.get("/reports/inventory-aging", headers=staff.headers).status_code == 403


class TestProductPerformance:

    def test_ranked_by_revenue_with_cost_at_sale(self, client, owner):
        phone = add_item(client, owner, "Redmi Note 13", "Phones", "700", "1000")
        add_item(client, owner, "Screen Guard", "Accessories", "50", "200")

        create_invoice(client, owner, lines=[sale_line(phone, 2, "1000")])
        cancelled = create_invoice(client, owner, lines=[sale_line(phone, 1, "1000")])
        client.post(f"/invoices/{cancelled['id']}/cancel", headers=owner.headers)
        # un cambio de costo posterior no altera la ganancia registrada
        client.put(f"/inventory/{phone['id']}", json={"cost_price": "900"}, headers=owner.headers)

        response = client.get("/reports/product-performance", headers=owner.headers)
        assert response.status_code == 200
        data = response.json()

        top, unsold = data["products"]
        assert top["name"] == "Redmi Note 13"
        assert top["units_sold"] == 2
        assert Decimal(top["revenue"]) == Decimal("2000")
        assert Decimal(top["cost"]) == Decimal("1400")
        assert Decimal(top["profit"]) == Decimal("600")
        assert Decimal(top["profit_margin"]) == Decimal("30.0")
        assert unsold["units_sold"] == 0
        assert Decimal(unsold["profit_margin"]) == Decimal("0")
        assert Decimal(data["total_profit"]) == Decimal("600")


class TestProfitPerformance:

    def test_product_category_and_supplier_breakdown(self, client, db_session, owner):
        supplier = client.post("/suppliers/", json={"name": "Colombo Mobiles"}, headers=owner.headers).json()
        phone = add_item(client, owner, "Redmi Note 13", "Phones", "700", "1000", supplier_id=supplier["id"])
        case = add_item(client, owner, "Phone Case", "Accessories", "100", "250")

        create_invoice(client, owner, lines=[sale_line(phone, 2, "1000"), sale_line(case, 3, "250")])
        old = create_invoice(client, owner, lines=[sale_line(phone, 1, "1000")])
        backdate(db_session, old, 60)

        today = date.today()
        response = client.get("/reports/profit-performance", params={
            "start_date": (today - timedelta(days=7)).isoformat(),
            "end_date": (today + timedelta(days=1)).isoformat()
        }, headers=owner.headers)
        assert response.status_code == 200
        data = response.json()

        assert [(p["name"], Decimal(p["profit"]), Decimal(p["profit_margin"])) for p in data["products"]] == [
            ("Redmi Note 13", Decimal("600"), Decimal("30.0")),
            ("Phone Case", Decimal("450"), Decimal("60.0")),
        ]
        assert [(c["name"], Decimal(c["revenue"]), Decimal(c["profit"])) for c in data["categories"]] == [
            ("Phones", Decimal("2000"), Decimal("600")),
            ("Accessories", Decimal("750"), Decimal("450")),
        ]
        assert [(s["name"], Decimal(s["revenue"]), Decimal(s["profit"])) for s in data["suppliers"]] == [
            ("Colombo Mobiles", Decimal("2000"), Decimal("600")),
        ]

    def test_inverted_range(self, client, owner):
        response = client.get("/reports/profit-performance", params={
            "start_date": "2024-05-10", "end_date": "2024-05-01"
        }, headers=owner.headers)
        assert response.status_code == 422

    def test_staff_denied(self, client, staff):
        assert client.get("/reports/profit-performance", headers=staff.headers).status_code == 403
