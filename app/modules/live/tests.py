"""
Tests para las consultas en vivo

- Hub: suscripción, publicación y baja de suscriptores
- Eventos de sesión: solo los commits publican
- WebSockets: snapshot inicial, refresco tras cambios y permisos
"""

import asyncio

import pytest
from starlette.websockets import WebSocketDisconnect

from app.modules.customers.models import Customer
from app.modules.live.hub import LiveQueryHub, hub
from app.modules.live.snapshots import LIVE_COLLECTIONS


def live_url(path, account):
    return f"/live/{path}?token={account.token}&tenant_id={account.tenant_id}"


class TestLiveQueryHub:

    def test_publish_reaches_only_matching_topic(self):
        async def scenario():
            live_hub = LiveQueryHub()
            invoices = live_hub.subscribe(("tenant-a", "invoices"))
            customers = live_hub.subscribe(("tenant-a", "customers"))

            live_hub.publish([("tenant-a", "invoices"), ("tenant-b", "invoices")])
            topic = await asyncio.wait_for(invoices.queue.get(), timeout=1)
            await asyncio.sleep(0)
            return topic, customers.queue.empty()

        topic, customers_idle = asyncio.run(scenario())
        assert topic == ("tenant-a", "invoices")
        assert customers_idle

    def test_unsubscribe(self):
        async def scenario():
            live_hub = LiveQueryHub()
            subscription = live_hub.subscribe(("t", "returns"))
            assert live_hub.subscriber_count(("t", "returns")) == 1
            live_hub.unsubscribe(subscription)
            live_hub.unsubscribe(subscription)
            return live_hub.subscriber_count(("t", "returns"))

        assert asyncio.run(scenario()) == 0

    def test_closed_loop_subscriber_is_dropped(self):
        live_hub = LiveQueryHub()

        async def subscribe():
            return live_hub.subscribe(("t", "expenses"))

        subscription = asyncio.run(subscribe())
        live_hub.publish([subscription.topic])
        assert live_hub.subscriber_count(("t", "expenses")) == 0

    def test_drain(self):
        async def scenario():
            subscription = LiveQueryHub().subscribe(("t", "inventory"))
            subscription.queue.put_nowait(("t", "inventory"))
            subscription.queue.put_nowait(("t", "inventory"))
            subscription.drain()
            return subscription.queue.empty()

        assert asyncio.run(scenario())


class TestSessionEvents:

    def test_commit_publishes_tenant_topic(self, db_session, owner):
        topic = (str(owner.tenant_id), "customers")

        async def scenario():
            subscription = hub.subscribe(topic)
            try:
                db_session.add(Customer(tenant_id=owner.tenant_id, name="Amal", created_by=owner.user_id))
                db_session.commit()
                return await asyncio.wait_for(subscription.queue.get(), timeout=1)
            finally:
                hub.unsubscribe(subscription)

        assert asyncio.run(scenario()) == topic

    def test_rollback_discards_topics(self, db_session, owner):
        topic = (str(owner.tenant_id), "customers")

        async def scenario():
            subscription = hub.subscribe(topic)
            try:
                db_session.add(Customer(tenant_id=owner.tenant_id, name="Amal", created_by=owner.user_id))
                db_session.flush()
                db_session.rollback()
                await asyncio.sleep(0.05)
                return subscription.queue.empty()
            finally:
                hub.unsubscribe(subscription)

        assert asyncio.run(scenario())


class TestLiveCollections:

    def test_registered_collections(self):
        assert set(LIVE_COLLECTIONS) == {
            "customers", "suppliers", "inventory", "stock_movements", "invoices",
            "expenses", "returns", "users", "organization"
        }
        assert LIVE_COLLECTIONS["expenses"].roles == ["owner", "admin"]
        assert "staff" in LIVE_COLLECTIONS["returns"].roles

    def test_snapshot_then_refresh_after_change(self, client, owner):
        with client.websocket_connect(live_url("customers", owner)) as websocket:
            assert websocket.receive_json() == {"collection": "customers", "items": []}

            client.post("/customers/", json={"name": "Amal"}, headers=owner.headers)
            frame = websocket.receive_json()
            assert frame["collection"] == "customers"
            assert [c["name"] for c in frame["items"]] == ["Amal"]

    def test_inventory_snapshot_masks_cost_for_staff(self, client, owner, staff):
        client.post("/inventory/", json={
            "name": "Charger",
            "category": "Accessories",
            "price": "1500",
            "cost_price": "900",
            "reorder_point": 1,
            "warranty_period": "N/A",
            "quantity": 4
        }, headers=owner.headers)

        with client.websocket_connect(live_url("inventory", staff)) as websocket:
            item = websocket.receive_json()["items"][0]
            assert float(item["cost_price"]) == 0

    def test_staff_denied_manager_collection(self, client, staff):
        with client.websocket_connect(live_url("expenses", staff)) as websocket:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()
        assert exc_info.value.code == 1008

    def test_unknown_collection(self, client, owner):
        with client.websocket_connect(live_url("secrets", owner)) as websocket:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()
        assert exc_info.value.code == 1008

    def test_invalid_token(self, client):
        with client.websocket_connect("/live/customers?token=garbage") as websocket:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()
        assert exc_info.value.code == 1008

    def test_foreign_tenant(self, client, owner, other_owner):
        url = f"/live/customers?token={owner.token}&tenant_id={other_owner.tenant_id}"
        with client.websocket_connect(url) as websocket:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()
        assert exc_info.value.code == 1008


class TestLiveUserFeeds:

    def test_notifications_feed(self, client, owner, staff):
        item = client.post("/inventory/", json={
            "name": "Charger",
            "category": "Accessories",
            "price": "1500",
            "cost_price": "900",
            "reorder_point": 1,
            "warranty_period": "N/A",
            "quantity": 4
        }, headers=owner.headers).json()

        with client.websocket_connect(live_url("notifications", owner)) as websocket:
            assert websocket.receive_json() == {"collection": "notifications", "items": []}

            client.post("/returns/", json={
                "type": "Supplier Return",
                "inventory_item_id": item["id"],
                "quantity": 1,
                "reason": "Faulty unit"
            }, headers=staff.headers)

            frame = websocket.receive_json()
            assert frame["collection"] == "notifications"
            assert [n["message_key"] for n in frame["items"]] == ["notifications.returns.created"]

    def test_messages_feed_marks_read(self, client, owner, staff):
        conversation = client.post(
            "/chat/conversations", json={"other_user_id": str(staff.user_id)}, headers=owner.headers
        ).json()
        url = f"/chat/conversations/{conversation['id']}/messages"
        client.post(url, json={"text": "first"}, headers=owner.headers)

        with client.websocket_connect(live_url(f"conversations/{conversation['id']}/messages", staff)) as websocket:
            frame = websocket.receive_json()
            assert frame["collection"] == "messages"
            assert [m["text"] for m in frame["items"]] == ["first"]
            assert str(staff.user_id) in frame["items"][0]["read_by"]

            client.post(url, json={"text": "second"}, headers=owner.headers)
            # marcar como leído también es un cambio: puede llegar un snapshot repetido antes
            texts = []
            for _ in range(3):
                texts = [m["text"] for m in websocket.receive_json()["items"]]
                if len(texts) == 2:
                    break
            assert texts == ["first", "second"]

        assert client.get("/chat/unread-count", headers=staff.headers).json() == {"unread": 0}

    def test_messages_feed_requires_participant(self, client, owner, staff, admin):
        conversation = client.post(
            "/chat/conversations", json={"other_user_id": str(staff.user_id)}, headers=owner.headers
        ).json()
        path = f"conversations/{conversation['id']}/messages"
        with client.websocket_connect(live_url(path, admin)) as websocket:
            with pytest.raises(WebSocketDisconnect) as exc_info:
                websocket.receive_json()
        assert exc_info.value.code == 1008

    def test_conversations_feed(self, client, owner, staff):
        with client.websocket_connect(live_url("conversations", staff)) as websocket:
            assert websocket.receive_json() == {"collection": "conversations", "items": []}

            client.post("/chat/conversations", json={"other_user_id": str(staff.user_id)}, headers=owner.headers)
            frame = websocket.receive_json()
            assert len(frame["items"]) == 1
