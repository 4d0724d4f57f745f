"""Unit tests for TelegramService using httpx.MockTransport."""

import json

import httpx
import pytest

from donation_shared.config import Settings
from donation_shared.services.telegram_service import NotificationError, TelegramService


def _service(settings: Settings, handler) -> TelegramService:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return TelegramService(settings, client=client)


class TestSendMessage:
    """sendMessage requests and failures."""

    def test_posts_markdown_v2_payload(self, settings: Settings):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"ok": True, "result": {"message_id": 7}})

        result = _service(settings, handler).send_message("*Hi*")

        assert result["ok"] is True
        request = captured[0]
        assert request.method == "POST"
        assert str(request.url) == (
            f"https://api.telegram.org/bot{settings.telegram_bot_token}/sendMessage"
        )
        assert json.loads(request.content) == {
            "chat_id": settings.telegram_chat_id,
            "text": "*Hi*",
            "parse_mode": "MarkdownV2",
        }

    def test_custom_api_base(self, settings: Settings):
        urls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            urls.append(str(request.url))
            return httpx.Response(200, json={"ok": True})

        custom = settings.model_copy(update={"telegram_api_base": "http://telegram.local/"})
        _service(custom, handler).send_message("x")

        assert urls == [f"http://telegram.local/bot{settings.telegram_bot_token}/sendMessage"]

    def test_non_success_status_raises(self, settings: Settings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                400,
                json={"ok": False, "description": "Bad Request: can't parse entities"},
            )

        with pytest.raises(NotificationError) as exc_info:
            _service(settings, handler).send_message("*broken")

        assert exc_info.value.status_code == 400

    def test_transport_error_raises(self, settings: Settings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(NotificationError) as exc_info:
            _service(settings, handler).send_message("x")

        assert exc_info.value.status_code is None

    def test_is_configured_follows_settings(self, settings: Settings):
        unconfigured = settings.model_copy(update={"telegram_chat_id": None})

        assert TelegramService(settings).is_configured is True
        assert TelegramService(unconfigured).is_configured is False
