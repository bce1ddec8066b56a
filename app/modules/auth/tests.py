"""
Tests para el módulo de Autenticación

Cubre:
- Registro, login, refresh y selección de organización
- Contexto multi-tenant y control de acceso por rol
- Gestión de miembros e invitaciones
- Restablecimiento de contraseña
- Política de acceso a rutas del frontend
"""

import pytest
from uuid import uuid4

from app.modules.auth.access import check_route_access
from app.modules.auth.models import PasswordResetToken, Invitation, Membership


# ===== REGISTRO Y LOGIN =====

class TestSignupAndLogin:

    def test_signup_creates_owner_membership(self, client):
        response = client.post("/auth/signup", json={
            "email": "Shop@Kade.lk",
            "password": "password123",
            "username": "Nimal",
            "organization_name": "Kade"
        })
        assert response.status_code == 201
        data = response.json()
        assert data["user"]["email"] == "shop@kade.lk"
        assert data["refresh_token"]
        assert len(data["memberships"]) == 1
        assert data["memberships"][0]["role"] == "owner"
        assert data["memberships"][0]["organization_name"] == "Kade"
        assert data["active_tenant_id"] == data["memberships"][0]["tenant_id"]

    def test_signup_duplicate_email(self, client, owner):
        response = client.post("/auth/signup", json={
            "email": owner.email,
            "password": "password123",
            "username": "Other",
            "organization_name": "Other"
        })
        assert response.status_code == 409

    def test_signup_short_password(self, client):
        response = client.post("/auth/signup", json={
            "email": "a@kade.lk",
            "password": "short",
            "username": "Nimal",
            "organization_name": "Kade"
        })
        assert response.status_code == 422

    def test_login_success(self, client, owner):
        response = client.post("/auth/login", json={"email": owner.email, "password": "password123"})
        assert response.status_code == 200
        assert response.json()["active_tenant_id"] == str(owner.tenant_id)

    def test_login_wrong_password(self, client, owner):
        response = client.post("/auth/login", json={"email": owner.email, "password": "wrong-pass"})
        assert response.status_code == 401

    def test_refresh_token(self, client):
        signup = client.post("/auth/signup", json={
            "email": "r@kade.lk",
            "password": "password123",
            "username": "Ravi",
            "organization_name": "Kade"
        }).json()

        response = client.post("/auth/refresh", json={"refresh_token": signup["refresh_token"]})
        assert response.status_code == 200
        assert response.json()["user"]["email"] == "r@kade.lk"

    def test_refresh_rejects_access_token(self, client, owner):
        response = client.post("/auth/refresh", json={"refresh_token": owner.token})
        assert response.status_code == 401


# ===== CONTEXTO Y ROLES =====

class TestAuthContext:

    def test_context_defaults_to_first_membership(self, client, owner):
        response = client.get("/auth/context", headers={"Authorization": f"Bearer {owner.token}"})
        assert response.status_code == 200
        data = response.json()
        assert data["tenant_id"] == str(owner.tenant_id)
        assert data["user_role"] == "owner"

    def test_context_with_foreign_tenant_forbidden(self, client, owner, other_owner):
        headers = {"Authorization": f"Bearer {owner.token}", "X-Tenant-ID": str(other_owner.tenant_id)}
        response = client.get("/auth/context", headers=headers)
        assert response.status_code == 403

    def test_invalid_tenant_header(self, client, owner):
        headers = {"Authorization": f"Bearer {owner.token}", "X-Tenant-ID": "not-a-uuid"}
        response = client.get("/auth/context", headers=headers)
        assert response.status_code == 400

    def test_missing_token(self, client):
        response = client.get("/auth/context")
        assert response.status_code in (401, 403)

    def test_select_organization_issues_context_token(self, client, owner):
        response = client.post(
            "/auth/select-organization",
            json={"tenant_id": str(owner.tenant_id)},
            headers={"Authorization": f"Bearer {owner.token}"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["user_role"] == "owner"
        assert data["organization_name"] == "Kade Electronics"

        context = client.get("/auth/context", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert context.json()["tenant_id"] == str(owner.tenant_id)

    def test_select_foreign_organization(self, client, owner, other_owner):
        response = client.post(
            "/auth/select-organization",
            json={"tenant_id": str(other_owner.tenant_id)},
            headers={"Authorization": f"Bearer {owner.token}"}
        )
        assert response.status_code == 403

    def test_role_is_read_from_database(self, client, owner, staff):
        # el token del staff no lleva rol; el cambio aplica de inmediato
        assert client.get("/auth/users", headers=staff.headers).status_code == 403

        client.patch(f"/auth/users/{staff.user_id}/role", json={"role": "admin"}, headers=owner.headers)
        assert client.get("/auth/users", headers=staff.headers).status_code == 200


# ===== PERFIL =====

class TestProfile:

    def test_me(self, client, owner):
        response = client.get("/auth/me", headers=owner.headers)
        assert response.status_code == 200
        assert response.json()["onboarding_completed"] is False

    def test_update_profile(self, client, owner):
        response = client.patch("/auth/me", json={"username": "  Nimal P  "}, headers=owner.headers)
        assert response.status_code == 200
        assert response.json()["username"] == "Nimal P"

    def test_complete_onboarding(self, client, owner):
        response = client.post("/auth/me/complete-onboarding", headers=owner.headers)
        assert response.json()["onboarding_completed"] is True


# ===== MIEMBROS =====

class TestMembers:

    def test_list_users(self, client, owner, admin, staff):
        response = client.get("/auth/users", headers=admin.headers)
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 3
        assert [u["role"] for u in data["items"]] == ["owner", "admin", "staff"]

    def test_only_owner_changes_roles(self, client, admin, staff):
        response = client.patch(f"/auth/users/{staff.user_id}/role", json={"role": "admin"}, headers=admin.headers)
        assert response.status_code == 403

    def test_owner_cannot_change_own_role(self, client, owner):
        response = client.patch(f"/auth/users/{owner.user_id}/role", json={"role": "staff"}, headers=owner.headers)
        assert response.status_code == 400

    def test_change_role_unknown_user(self, client, owner):
        response = client.patch(f"/auth/users/{uuid4()}/role", json={"role": "staff"}, headers=owner.headers)
        assert response.status_code == 404

    def test_remove_user(self, client, owner, staff):
        response = client.delete(f"/auth/users/{staff.user_id}", headers=owner.headers)
        assert response.status_code == 204

        # sin membresía el usuario ya no tiene organización
        assert client.get("/customers/", headers=staff.headers).status_code == 403


# ===== INVITACIONES =====

class TestInvitations:

    def test_invite_and_accept(self, client, owner, sent_emails):
        response = client.post("/auth/invitations", json={"email": "new@kade.lk", "role": "admin"}, headers=owner.headers)
        assert response.status_code == 201
        data = response.json()
        assert "/accept-invitation?token=" in data["link"]

        assert sent_emails[0]["kind"] == "invitation"
        assert sent_emails[0]["organization_name"] == "Kade Electronics"
        token = sent_emails[0]["invitation_token"]

        details = client.get(f"/auth/invitations/{token}")
        assert details.status_code == 200
        assert details.json() == {"email": "new@kade.lk", "role": "admin", "organization_name": "Kade Electronics"}

        accepted = client.post("/auth/accept-invitation", json={
            "token": token,
            "username": "Newbie",
            "password": "password123"
        })
        assert accepted.status_code == 200
        memberships = accepted.json()["memberships"]
        assert memberships[0]["tenant_id"] == str(owner.tenant_id)
        assert memberships[0]["role"] == "admin"

        # la invitación no se puede reutilizar
        assert client.get(f"/auth/invitations/{token}").status_code == 404

    def test_staff_cannot_invite(self, client, staff):
        response = client.post("/auth/invitations", json={"email": "x@kade.lk"}, headers=staff.headers)
        assert response.status_code == 403

    def test_cannot_invite_as_owner(self, client, owner):
        response = client.post("/auth/invitations", json={"email": "x@kade.lk", "role": "owner"}, headers=owner.headers)
        assert response.status_code == 422

    def test_duplicate_pending_invitation(self, client, owner):
        client.post("/auth/invitations", json={"email": "dup@kade.lk"}, headers=owner.headers)
        response = client.post("/auth/invitations", json={"email": "dup@kade.lk"}, headers=owner.headers)
        assert response.status_code == 409

    def test_invite_existing_member(self, client, owner, staff):
        response = client.post("/auth/invitations", json={"email": staff.email}, headers=owner.headers)
        assert response.status_code == 409

    def test_list_pending_invitations(self, client, owner):
        client.post("/auth/invitations", json={"email": "a@kade.lk"}, headers=owner.headers)
        client.post("/auth/invitations", json={"email": "b@kade.lk"}, headers=owner.headers)
        response = client.get("/auth/invitations", headers=owner.headers)
        assert {i["email"] for i in response.json()} == {"a@kade.lk", "b@kade.lk"}

    def test_existing_user_joins_second_organization(self, client, owner, other_owner, sent_emails):
        client.post("/auth/invitations", json={"email": other_owner.email}, headers=owner.headers)
        token = sent_emails[0]["invitation_token"]

        response = client.post("/auth/accept-invitation", json={
            "token": token,
            "username": "Ruwan",
            "password": "password123"
        })
        assert response.status_code == 200
        tenants = {m["tenant_id"] for m in response.json()["memberships"]}
        assert tenants == {str(owner.tenant_id), str(other_owner.tenant_id)}

    def test_existing_user_wrong_password_rejected(self, client, owner, other_owner, sent_emails, db_session):
        client.post("/auth/invitations", json={"email": other_owner.email}, headers=owner.headers)
        token = sent_emails[0]["invitation_token"]

        response = client.post("/auth/accept-invitation", json={
            "token": token,
            "username": "Intruder",
            "password": "wrongpassword1"
        })
        assert response.status_code == 401

        memberships = db_session.query(Membership).filter(Membership.user_id == other_owner.user_id).all()
        assert [m.tenant_id for m in memberships] == [other_owner.tenant_id]
        assert client.get(f"/auth/invitations/{token}").status_code == 200

    def test_unknown_invitation(self, client):
        assert client.get("/auth/invitations/unknown-token").status_code == 404

    def test_invitation_stored_with_role(self, client, owner, db_session):
        client.post("/auth/invitations", json={"email": "s@kade.lk"}, headers=owner.headers)
        invitation = db_session.query(Invitation).filter(Invitation.email == "s@kade.lk").one()
        assert invitation.role == "staff"
        assert invitation.status == "pending"


# ===== CONTRASEÑA =====

class TestPasswordReset:

    def test_reset_flow(self, client, owner, sent_emails):
        response = client.post("/auth/request-password-reset", json={"email": owner.email})
        assert response.status_code == 200
        token = sent_emails[0]["reset_token"]

        reset = client.post("/auth/reset-password", json={"token": token, "new_password": "newpassword1"})
        assert reset.status_code == 200
        assert reset.json()["user_id"] == str(owner.user_id)

        login = client.post("/auth/login", json={"email": owner.email, "password": "newpassword1"})
        assert login.status_code == 200

        # el token es de un solo uso
        again = client.post("/auth/reset-password", json={"token": token, "new_password": "another123"})
        assert again.status_code == 400

    def test_unknown_email_does_not_leak(self, client, sent_emails):
        response = client.post("/auth/request-password-reset", json={"email": "nobody@kade.lk"})
        assert response.status_code == 200
        assert sent_emails == []

    def test_new_request_invalidates_previous_tokens(self, client, owner, db_session):
        client.post("/auth/request-password-reset", json={"email": owner.email})
        client.post("/auth/request-password-reset", json={"email": owner.email})
        active = db_session.query(PasswordResetToken).filter(PasswordResetToken.is_used.is_(False)).count()
        assert active == 1


# ===== POLÍTICA DE RUTAS =====

class TestRouteAccess:

    @pytest.mark.parametrize("path,expected", [
        ("/login", None),
        ("/setup/welcome", None),
        ("/invoice", "/login"),
    ])
    def test_anonymous(self, path, expected):
        assert check_route_access(path, authenticated=False) == expected

    def test_authenticated_user_leaves_login(self):
        assert check_route_access("/login", authenticated=True, role="owner") == "/"

    def test_user_onboarding_pending(self):
        assert check_route_access("/invoice", True, "owner", user_onboarded=False) == "/setup/welcome"

    def test_organization_onboarding_pending(self):
        result = check_route_access("/invoice", True, "admin", user_onboarded=True, organization_onboarded=False)
        assert result == "/setup/details"

    def test_staff_skips_organization_onboarding(self):
        assert check_route_access("/invoice", True, "staff", organization_onboarded=False) is None
        assert check_route_access("/setup/details", True, "staff", organization_onboarded=False) == "/"

    @pytest.mark.parametrize("path,role,expected", [
        ("/users", "admin", "/"),
        ("/users", "owner", None),
        ("/reports", "staff", "/"),
        ("/suppliers", "staff", "/"),
        ("/inventory/abc/edit", "staff", "/inventory"),
        ("/inventory/abc/edit", "admin", None),
        ("/expenses", "staff", "/expenses/new"),
        ("/expenses/new", "staff", None),
        ("/returns", "staff", None),
    ])
    def test_role_restrictions(self, path, role, expected):
        assert check_route_access(path, True, role) == expected

    def test_route_access_endpoint(self, client, owner):
        response = client.get("/auth/route-access", params={"path": "/reports"}, headers=owner.headers)
        assert response.status_code == 200
        assert response.json() == {"path": "/reports", "allowed": False, "redirect_to": "/setup/welcome"}
