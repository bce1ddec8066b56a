"""
Tests para el módulo de Email
"""

import smtplib

import pytest

from app.modules.email import service as email_module
from app.modules.email.service import EmailDeliveryError, email_service
from app.modules.email.tasks import send_invitation_email_task, send_password_reset_email_task


class FakeSMTP:
    sent = []
    fail = False

    def __init__(self, host, port, timeout=None):
        self.host = host

    def starttls(self, context=None):
        pass

    def login(self, username, password):
        pass

    def send_message(self, message):
        if FakeSMTP.fail:
            raise smtplib.SMTPServerDisconnected("connection lost")
        FakeSMTP.sent.append(message)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


@pytest.fixture
def smtp(monkeypatch):
    FakeSMTP.sent = []
    FakeSMTP.fail = False
    monkeypatch.setattr(email_module.smtplib, "SMTP", FakeSMTP)
    monkeypatch.setattr(email_module.smtplib, "SMTP_SSL", FakeSMTP)
    return FakeSMTP


class TestMessages:

    def test_invitation_render(self):
        email = email_service.invitation("new@kade.lk", "Nimal", "Kade Electronics", "tok123", "admin")
        assert email.to == "new@kade.lk"
        assert "Kade Electronics" in email.subject
        assert email.context["invitation_url"].endswith("/accept-invitation?token=tok123")

        html = email_service.render(email).get_body(preferencelist=("html",)).get_content()
        assert "Nimal invited <strong>new@kade.lk</strong>" in html
        assert "<strong>Administrator</strong>" in html
        assert "expires in 24 hours" in html

    def test_password_reset_render(self):
        email = email_service.password_reset("owner@kade.lk", "Nimal", "reset-tok")
        html = email_service.render(email).get_body(preferencelist=("html",)).get_content()
        assert "Hi Nimal," in html
        assert "/reset-password?token=reset-tok" in html
        assert "expires in 1 hour." in html

    def test_user_values_are_escaped(self):
        email = email_service.invitation("x@kade.lk", "<b>Eve</b>", "Shop", "t", "staff")
        html = email_service.render(email).get_body(preferencelist=("html",)).get_content()
        assert "&lt;b&gt;Eve&lt;/b&gt;" in html


class TestTasks:

    def test_password_reset_task_sends(self, smtp):
        result = send_password_reset_email_task(user_email="owner@kade.lk", user_name="Nimal", reset_token="abc")
        assert result == {"status": "sent", "email": "owner@kade.lk"}
        assert smtp.sent[0]["To"] == "owner@kade.lk"

    def test_delivery_failure_is_retried(self, smtp):
        smtp.fail = True
        with pytest.raises(EmailDeliveryError):
            send_invitation_email_task(
                invitee_email="new@kade.lk",
                inviter_name="Nimal",
                organization_name="Kade Electronics",
                invitation_token="tok",
                role="staff"
            )
        assert smtp.sent == []
