"""
Tests para el módulo de IA

El cliente de OpenAI se reemplaza por el doble `fake_openai` de conftest.
"""

import json

import pytest
from openai import OpenAIError

from app.core.config import settings
from app.modules.ai.service import NOT_ENOUGH_DATA_MESSAGE


def sales_points(days):
    return [{"date": f"2024-05-{day:02d}", "total": 1000 + day * 10} for day in range(1, days + 1)]


class TestBusinessQuestions:

    def test_analyst_answers_with_tenant_data(self, client, owner, other_owner, fake_openai):
        client.post("/customers/", json={"name": "Amal"}, headers=owner.headers)
        client.post("/customers/", json={"name": "Stranger"}, headers=other_owner.headers)
        fake_openai.completions.responses.append(json.dumps({"answer": "You have one customer."}))

        response = client.post("/ai/business-analyst", json={"question": "How many customers?"}, headers=owner.headers)
        assert response.status_code == 200
        assert response.json() == {"answer": "You have one customer."}

        call = fake_openai.completions.calls[0]
        assert call["model"] == settings.OPENAI_MODEL
        assert call["temperature"] == 0.2
        assert call["response_format"] == {"type": "json_object"}
        system, user = call["messages"]
        assert "Respond in English" in system["content"]
        assert "How many customers?" in user["content"]
        assert "Amal" in user["content"]
        assert "Stranger" not in user["content"]

    def test_assistant_uses_locale(self, client, admin, fake_openai):
        client.post("/inventory/", json={
            "name": "Charger",
            "category": "Accessories",
            "price": "1500",
            "cost_price": "900",
            "reorder_point": 1,
            "warranty_period": "N/A",
            "quantity": 4
        }, headers=admin.headers)
        fake_openai.completions.responses.append(json.dumps({"answer": "ok"}))

        response = client.post("/ai/business-assistant", json={"question": "Stock?"}, headers=admin.headers)
        assert response.json() == {"answer": "ok"}

        system, user = fake_openai.completions.calls[0]["messages"]
        assert "Respond in Sinhala" in system["content"]
        assert "- Charger | qty: 4 | price: 1500.00 | cost: 900.00" in user["content"]

    def test_model_failure_is_502(self, client, owner, fake_openai):
        fake_openai.completions.error = OpenAIError("timeout")
        response = client.post("/ai/business-analyst", json={"question": "Revenue?"}, headers=owner.headers)
        assert response.status_code == 502
        assert response.json()["detail"] == "El servicio de IA no está disponible en este momento"

    @pytest.mark.parametrize("content", ["not json", json.dumps({"reply": "wrong key"})])
    def test_invalid_output_is_502(self, client, owner, fake_openai, content):
        fake_openai.completions.responses.append(content)
        response = client.post("/ai/business-assistant", json={"question": "Revenue?"}, headers=owner.headers)
        assert response.status_code == 502

    def test_unsupported_locale(self, client, owner, fake_openai):
        response = client.post("/ai/business-analyst", json={"question": "Hi", "locale": "fr"}, headers=owner.headers)
        assert response.status_code == 422
        assert fake_openai.completions.calls == []

    def test_staff_denied(self, client, staff, fake_openai):
        assert client.post("/ai/business-analyst", json={"question": "Hi"}, headers=staff.headers).status_code == 403
        assert client.post("/ai/business-assistant", json={"question": "Hi"}, headers=staff.headers).status_code == 403
        assert client.post("/ai/forecast-sales", json={}, headers=staff.headers).status_code == 403


class TestForecast:

    def test_not_enough_points_skips_model(self, client, owner, fake_openai):
        response = client.post("/ai/forecast-sales", json={"sales_data": sales_points(6)}, headers=owner.headers)
        assert response.json() == {"forecast": NOT_ENOUGH_DATA_MESSAGE}
        assert fake_openai.completions.calls == []

    def test_forecast_from_given_data(self, client, owner, fake_openai):
        fake_openai.completions.responses.append(json.dumps({"forecast": "Sales are trending up."}))
        response = client.post("/ai/forecast-sales", json={"sales_data": sales_points(7)}, headers=owner.headers)
        assert response.json() == {"forecast": "Sales are trending up."}

        user_content = fake_openai.completions.calls[0]["messages"][1]["content"]
        assert "- Date: 2024-05-01, Sales: 1010.00" in user_content
        assert "- Date: 2024-05-07, Sales: 1070.00" in user_content

    def test_forecast_from_recorded_payments(self, client, owner, fake_openai):
        invoice = client.post("/invoices/", json={
            "customer_name": "Kasun",
            "line_items": [{"type": "service", "description": "Repair", "quantity": 1, "price": "100"}]
        }, headers=owner.headers).json()
        client.post(f"/invoices/{invoice['id']}/payments", json={"amount": "40", "date": "2024-05-01T10:00:00Z"}, headers=owner.headers)

        response = client.post("/ai/forecast-sales", json={}, headers=owner.headers)
        assert response.json() == {"forecast": NOT_ENOUGH_DATA_MESSAGE}
        assert fake_openai.completions.calls == []


class TestSuggestLineItem:

    def test_suggestion_for_staff(self, client, staff, fake_openai):
        fake_openai.completions.responses.append(json.dumps({"suggestion": "Screen Replacement Service"}))
        response = client.post("/ai/suggest-line-item", json={"partial_description": "screen rep"}, headers=staff.headers)
        assert response.status_code == 200
        assert response.json() == {"suggestion": "Screen Replacement Service"}
        assert "Partial Description: screen rep" in fake_openai.completions.calls[0]["messages"][1]["content"]

    def test_failure_returns_empty_suggestion(self, client, staff, fake_openai):
        fake_openai.completions.error = OpenAIError("rate limited")
        response = client.post("/ai/suggest-line-item", json={"partial_description": "batt"}, headers=staff.headers)
        assert response.status_code == 200
        assert response.json() == {"suggestion": ""}

    def test_invalid_output_returns_empty_suggestion(self, client, owner, fake_openai):
        fake_openai.completions.responses.append("{}")
        response = client.post("/ai/suggest-line-item", json={"partial_description": "batt"}, headers=owner.headers)
        assert response.json() == {"suggestion": ""}
