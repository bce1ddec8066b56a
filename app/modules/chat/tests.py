"""
Tests para el módulo de Chat
"""

import pytest

from app.modules.chat.service import message_preview


@pytest.fixture
def conversation(client, owner, staff):
    return client.post("/chat/conversations", json={"other_user_id": str(staff.user_id)}, headers=owner.headers).json()


class TestMessagePreview:

    def test_short_text_untouched(self):
        assert message_preview("  hello  ") == "hello"

    def test_forty_chars_untouched(self):
        assert message_preview("x" * 40) == "x" * 40

    def test_long_text_truncated(self):
        preview = message_preview("y" * 41)
        assert preview == "y" * 37 + "..."
        assert len(preview) == 40


class TestConversations:

    def test_create_conversation(self, owner, staff, conversation):
        assert sorted(conversation["participants"]) == sorted([str(owner.user_id), str(staff.user_id)])
        assert conversation["participant_usernames"] == {str(owner.user_id): "Nimal", str(staff.user_id): "Sunil"}
        assert conversation["unread_counts"] == {str(owner.user_id): 0, str(staff.user_id): 0}
        assert conversation["last_message"] is None

    def test_create_is_idempotent_for_both_sides(self, client, owner, staff, conversation):
        again = client.post("/chat/conversations", json={"other_user_id": str(owner.user_id)}, headers=staff.headers)
        assert again.json()["id"] == conversation["id"]
        assert len(client.get("/chat/conversations", headers=owner.headers).json()) == 1

    def test_cannot_chat_with_self(self, client, owner):
        response = client.post("/chat/conversations", json={"other_user_id": str(owner.user_id)}, headers=owner.headers)
        assert response.status_code == 400

    def test_cannot_chat_with_other_organization(self, client, owner, other_owner):
        response = client.post("/chat/conversations", json={"other_user_id": str(other_owner.user_id)}, headers=owner.headers)
        assert response.status_code == 404

    def test_non_participant_cannot_read(self, client, admin, conversation):
        response = client.get(f"/chat/conversations/{conversation['id']}/messages", headers=admin.headers)
        assert response.status_code == 404
        assert client.get("/chat/conversations", headers=admin.headers).json() == []

    def test_ordered_by_latest_activity(self, client, owner, staff, admin, conversation):
        second = client.post("/chat/conversations", json={"other_user_id": str(admin.user_id)}, headers=owner.headers).json()
        client.post(f"/chat/conversations/{conversation['id']}/messages", json={"text": "ping"}, headers=staff.headers)

        ids = [c["id"] for c in client.get("/chat/conversations", headers=owner.headers).json()]
        assert ids == [conversation["id"], second["id"]]


class TestMessages:

    def test_send_updates_conversation(self, client, owner, staff, conversation):
        long_text = "Please check the stock of Samsung chargers today"
        response = client.post(f"/chat/conversations/{conversation['id']}/messages", json={"text": long_text}, headers=owner.headers)
        assert response.status_code == 201
        message = response.json()
        assert message["sender_name"] == "Nimal"
        assert message["read_by"] == [str(owner.user_id)]

        listed = client.get("/chat/conversations", headers=staff.headers).json()[0]
        assert listed["last_message"] == message_preview(long_text)
        assert listed["last_message_sender_id"] == str(owner.user_id)
        assert listed["unread_counts"][str(staff.user_id)] == 1
        assert listed["unread_counts"][str(owner.user_id)] == 0

    def test_unread_counter_and_read_receipts(self, client, owner, staff, conversation):
        url = f"/chat/conversations/{conversation['id']}/messages"
        client.post(url, json={"text": "one"}, headers=owner.headers)
        client.post(url, json={"text": "two"}, headers=owner.headers)
        assert client.get("/chat/unread-count", headers=staff.headers).json() == {"unread": 2}

        messages = client.get(url, headers=staff.headers).json()
        assert [m["text"] for m in messages] == ["one", "two"]
        assert all(str(staff.user_id) in m["read_by"] for m in messages)
        assert client.get("/chat/unread-count", headers=staff.headers).json() == {"unread": 0}

    def test_sender_reading_does_not_duplicate_receipts(self, client, owner, conversation):
        url = f"/chat/conversations/{conversation['id']}/messages"
        client.post(url, json={"text": "hello"}, headers=owner.headers)
        messages = client.get(url, headers=owner.headers).json()
        assert messages[0]["read_by"] == [str(owner.user_id)]

    def test_blank_message_rejected(self, client, owner, conversation):
        response = client.post(f"/chat/conversations/{conversation['id']}/messages", json={"text": "   "}, headers=owner.headers)
        assert response.status_code == 400

    def test_non_participant_cannot_send(self, client, admin, conversation):
        response = client.post(f"/chat/conversations/{conversation['id']}/messages", json={"text": "hi"}, headers=admin.headers)
        assert response.status_code == 404
