"""Tests for the invitation notifiers with a mocked HTTP transport."""

import json
import os

import httpx
import pytest

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-unit-tests")

from diary_bridge.enums import FamilyRole
from diary_bridge.services.notification_service import (
    LoggingNotifier,
    ResendEmailNotifier,
    build_invitation_message,
    get_notifier,
)


def _transport(status_code: int, captured: list):
    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(status_code, json={"id": "email-1"})

    return httpx.MockTransport(handler)


class TestResendEmailNotifier:
    async def test_send_posts_message(self):
        captured: list[httpx.Request] = []
        notifier = ResendEmailNotifier(
            "re_test_key",
            api_url="https://mail.test/emails",
            sender="Diary <noreply@test>",
            transport=_transport(200, captured),
        )

        ok = await notifier.send("kid@example.com", "Alice", FamilyRole.PARENT, "K7QH2MXP")

        assert ok is True
        request = captured[0]
        assert str(request.url) == "https://mail.test/emails"
        assert request.headers["Authorization"] == "Bearer re_test_key"
        body = json.loads(request.content)
        assert body["to"] == ["kid@example.com"]
        assert body["from"] == "Diary <noreply@test>"
        assert "K7QH2MXP" in body["text"]
        assert "Alice" in body["subject"]

    async def test_error_status_raises(self):
        notifier = ResendEmailNotifier(
            "re_test_key",
            api_url="https://mail.test/emails",
            transport=_transport(500, []),
        )
        with pytest.raises(httpx.HTTPStatusError):
            await notifier.send("kid@example.com", "Alice", FamilyRole.CHILD, "K7QH2MXP")


class TestLoggingNotifier:
    async def test_reports_not_delivered(self):
        assert await LoggingNotifier().send(
            "kid@example.com", "Alice", FamilyRole.PARENT, "K7QH2MXP",
        ) is False


class TestGetNotifier:
    def test_without_api_key(self, monkeypatch):
        from diary_bridge.config import settings

        monkeypatch.setattr(settings, "RESEND_API_KEY", None)
        assert isinstance(get_notifier(), LoggingNotifier)

    def test_with_api_key(self, monkeypatch):
        from diary_bridge.config import settings

        monkeypatch.setattr(settings, "RESEND_API_KEY", "re_live")
        notifier = get_notifier()
        assert isinstance(notifier, ResendEmailNotifier)
        assert notifier.api_key == "re_live"


def test_message_mentions_role_and_code():
    subject, text = build_invitation_message("Bob", FamilyRole.CHILD, "ABCD2345")
    assert "Bob" in subject
    assert "your child" in text
    assert "ABCD2345" in text
