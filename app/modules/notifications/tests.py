"""
Tests para el módulo de Notificaciones
"""

from uuid import uuid4

from app.modules.notifications.models import NotificationType
from app.modules.notifications.service import NotificationService


def _notify_managers(db, tenant_id, key="notifications.test"):
    NotificationService(db).notify_roles(
        tenant_id, ["owner", "admin"],
        sender_name="Tester",
        message_key=key,
        message_params={"user": "Tester"},
        link="/dashboard",
        type=NotificationType.GENERAL
    )
    db.commit()


class TestNotifyRoles:

    def test_only_matching_roles_receive(self, db_session, owner, admin, staff):
        _notify_managers(db_session, owner.tenant_id)

        service = NotificationService(db_session)
        assert service.unread_count(owner.user_id) == 1
        assert service.unread_count(admin.user_id) == 1
        assert service.unread_count(staff.user_id) == 0

    def test_exclude_actor(self, db_session, owner, admin):
        NotificationService(db_session).notify_roles(
            owner.tenant_id, ["owner", "admin"],
            sender_name="Nimal",
            message_key="notifications.test",
            exclude_user_id=owner.user_id
        )
        db_session.commit()

        service = NotificationService(db_session)
        assert service.unread_count(owner.user_id) == 0
        assert service.unread_count(admin.user_id) == 1

    def test_other_tenants_not_notified(self, db_session, owner, other_owner):
        _notify_managers(db_session, owner.tenant_id)
        assert NotificationService(db_session).unread_count(other_owner.user_id) == 0


class TestNotificationFeed:

    def test_feed_newest_first(self, client, db_session, owner):
        _notify_managers(db_session, owner.tenant_id, "notifications.first")
        _notify_managers(db_session, owner.tenant_id, "notifications.second")

        data = client.get("/notifications/", headers=owner.headers).json()
        assert data["total"] == 2
        assert data["unread"] == 2
        assert [n["message_key"] for n in data["items"]] == ["notifications.second", "notifications.first"]
        assert data["items"][0]["message_params"] == {"user": "Tester"}
        assert data["items"][0]["read"] is False

    def test_mark_read(self, client, db_session, owner):
        _notify_managers(db_session, owner.tenant_id)
        notification_id = client.get("/notifications/", headers=owner.headers).json()["items"][0]["id"]

        response = client.post(f"/notifications/{notification_id}/read", headers=owner.headers)
        assert response.status_code == 200
        assert response.json()["read"] is True
        assert client.get("/notifications/unread-count", headers=owner.headers).json() == {"unread": 0}

    def test_cannot_mark_someone_elses_notification(self, client, db_session, owner, staff):
        _notify_managers(db_session, owner.tenant_id)
        notification_id = client.get("/notifications/", headers=owner.headers).json()["items"][0]["id"]

        response = client.post(f"/notifications/{notification_id}/read", headers=staff.headers)
        assert response.status_code == 404

    def test_mark_unknown(self, client, owner):
        assert client.post(f"/notifications/{uuid4()}/read", headers=owner.headers).status_code == 404

    def test_mark_all_read(self, client, db_session, owner):
        for _ in range(3):
            _notify_managers(db_session, owner.tenant_id)

        response = client.post("/notifications/read-all", headers=owner.headers)
        assert response.json() == {"updated": 3}
        assert client.get("/notifications/unread-count", headers=owner.headers).json() == {"unread": 0}

        # una segunda vez no hay nada que marcar
        assert client.post("/notifications/read-all", headers=owner.headers).json() == {"updated": 0}
