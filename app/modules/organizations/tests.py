"""
Tests para el módulo de Organizaciones
"""

from app.modules.organizations.models import Organization


class TestOrganizationSettings:

    def test_get_my_organization(self, client, owner):
        response = client.get("/organizations/me", headers=owner.headers)
        assert response.status_code == 200
        data = response.json()
        assert data["id"] == str(owner.tenant_id)
        assert data["owner_id"] == str(owner.user_id)
        assert data["selected_theme"] == "system"
        assert data["invoice_template"] == "classic"
        assert data["recent_invoice_colors"] == []

    def test_update_settings_partial(self, client, owner):
        response = client.patch("/organizations/me", json={
            "address": " 12 Main St, Colombo ",
            "phone": "0771234567",
            "email": ""
        }, headers=owner.headers)
        assert response.status_code == 200
        data = response.json()
        assert data["address"] == "12 Main St, Colombo"
        assert data["email"] == ""
        assert data["name"] == "Kade Electronics"

    def test_update_settings_invalid_email(self, client, owner):
        response = client.patch("/organizations/me", json={"email": "not-an-email"}, headers=owner.headers)
        assert response.status_code == 422

    def test_staff_cannot_update_settings(self, client, staff):
        response = client.patch("/organizations/me", json={"phone": "1"}, headers=staff.headers)
        assert response.status_code == 403

    def test_staff_can_change_theme(self, client, staff):
        response = client.patch("/organizations/me/theme", json={"selected_theme": "dark"}, headers=staff.headers)
        assert response.status_code == 200
        assert response.json()["selected_theme"] == "dark"

    def test_complete_onboarding(self, client, admin):
        response = client.post("/organizations/me/complete-onboarding", headers=admin.headers)
        assert response.json()["onboarding_completed"] is True


class TestInvoiceSettings:

    def test_recent_colors_most_recent_first(self, client, owner):
        for color in ["#111111", "#222222", "#111111"]:
            client.patch("/organizations/me/invoice-settings", json={
                "invoice_template": "modern",
                "invoice_color": color
            }, headers=owner.headers)

        data = client.get("/organizations/me", headers=owner.headers).json()
        assert data["invoice_template"] == "modern"
        assert data["invoice_color"] == "#111111"
        assert data["recent_invoice_colors"] == ["#111111", "#222222"]

    def test_recent_colors_capped_at_five(self, client, owner):
        colors = ["#000001", "#000002", "#000003", "#000004", "#000005", "#000006"]
        for color in colors:
            client.patch("/organizations/me/invoice-settings", json={
                "invoice_template": "classic",
                "invoice_color": color
            }, headers=owner.headers)

        data = client.get("/organizations/me", headers=owner.headers).json()
        assert data["recent_invoice_colors"] == list(reversed(colors))[:5]

    def test_invalid_color(self, client, owner):
        response = client.patch("/organizations/me/invoice-settings", json={
            "invoice_template": "classic",
            "invoice_color": "blue"
        }, headers=owner.headers)
        assert response.status_code == 422

    def test_push_recent_color_normalizes_duplicates(self):
        organization = Organization(recent_invoice_colors=["#aaaaaa", "#bbbbbb"])
        organization.push_recent_color("#bbbbbb")
        assert organization.recent_invoice_colors == ["#bbbbbb", "#aaaaaa"]
