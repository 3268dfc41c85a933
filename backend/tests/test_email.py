from __future__ import annotations

import pytest

from vidhub.models.user import User
from vidhub.services import email as email_service
from vidhub.services import verification
from vidhub.services.email import EmailDeliveryError, EmailNotConfiguredError, send_email


def test_disabled_email_sends_nothing(settings, monkeypatch):
    settings.EMAIL_ENABLED = False

    def explode(*args, **kwargs):
        raise AssertionError("provider must not be called")

    monkeypatch.setattr(email_service, "_send_email_resend", explode)
    assert send_email(settings, "a@example.com", "s", "b") is None


def test_unknown_provider_is_a_config_error(settings):
    settings.EMAIL_PROVIDER = "pigeon"
    with pytest.raises(EmailNotConfiguredError):
        send_email(settings, "a@example.com", "s", "b")


def test_resend_requires_api_key(settings):
    settings.RESEND_API_KEY = ""
    with pytest.raises(EmailNotConfiguredError):
        send_email(settings, "a@example.com", "s", "b")


def test_resend_returns_message_id(settings, monkeypatch):
    settings.RESEND_API_KEY = "re_test"
    sent: list[dict] = []

    def fake_send(payload):
        sent.append(payload)
        return {"id": "msg_1"}

    monkeypatch.setattr(email_service.resend.Emails, "send", fake_send)
    assert send_email(settings, "a@example.com", "Hello", "1 < 2") == "msg_1"
    assert sent[0]["to"] == ["a@example.com"]
    assert sent[0]["html"] == "<pre>1 &lt; 2</pre>"


def test_resend_failure_becomes_delivery_error(settings, monkeypatch):
    settings.RESEND_API_KEY = "re_test"

    def fake_send(payload):
        raise ValueError("upstream down")

    monkeypatch.setattr(email_service.resend.Emails, "send", fake_send)
    with pytest.raises(EmailDeliveryError):
        send_email(settings, "a@example.com", "s", "b")


class FakeSMTP:
    instances: list["FakeSMTP"] = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls: list[str] = []
        self.sent: list[tuple] = []
        FakeSMTP.instances.append(self)

    def ehlo(self):
        self.calls.append("ehlo")

    def starttls(self):
        self.calls.append("starttls")

    def login(self, username, password):
        self.calls.append(f"login:{username}")

    def sendmail(self, from_addr, to_addrs, msg):
        self.sent.append((from_addr, to_addrs, msg))

    def quit(self):
        self.calls.append("quit")


def test_smtp_provider_uses_tls_and_login(settings, monkeypatch):
    FakeSMTP.instances = []
    settings.EMAIL_PROVIDER = "smtp"
    settings.SMTP_HOST = "smtp.example.test"
    settings.SMTP_USERNAME = "mailer"
    settings.SMTP_PASSWORD = "secret"
    settings.SMTP_USE_TLS = True
    monkeypatch.setattr(email_service.smtplib, "SMTP", FakeSMTP)

    assert send_email(settings, "a@example.com", "Subject", "Body") is None

    server = FakeSMTP.instances[0]
    assert server.host == "smtp.example.test"
    assert server.calls == ["ehlo", "starttls", "ehlo", "login:mailer", "quit"]
    assert server.sent[0][1] == ["a@example.com"]


def test_verification_code_email_contains_code_and_expiry(settings, outbox):
    verification.send_verification_email(settings, email="a@example.com", name="Ann", code="123456")
    msg = outbox[-1]
    assert msg["to"] == "a@example.com"
    assert "123456" in msg["body"]
    assert "15 minutes" in msg["body"]


def test_failed_code_email_aborts_registration(anon_client, db_session, monkeypatch):
    def broken(settings, to_email, subject, body):
        raise EmailDeliveryError("provider down")

    monkeypatch.setattr(verification, "send_email", broken)
    res = anon_client.post(
        "/auth/register",
        json={"name": "A", "email": "a@example.com", "username": "ann", "password": "Abcdef1"},
    )
    assert res.status_code == 500
    assert res.json()["message"] == "Failed to send verification email"
    assert db_session.query(User).count() == 0


def test_failed_reset_email_is_reported(anon_client, users, monkeypatch):
    def broken(settings, to_email, subject, body):
        raise EmailNotConfiguredError("no provider")

    monkeypatch.setattr(verification, "send_email", broken)
    res = anon_client.post("/auth/forgot-password", json={"email": "alice@example.com"})
    assert res.status_code == 500
    assert res.json()["message"] == "Failed to send password reset email"
