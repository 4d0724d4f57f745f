"""Telegram Bot API client for chat notifications."""

import logging

import httpx

from donation_shared.config import Settings

logger = logging.getLogger(__name__)

PARSE_MODE = "MarkdownV2"


class NotificationError(Exception):
    """Raised when a chat notification cannot be delivered."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TelegramService:
    """Sends messages through the Telegram Bot API ``sendMessage`` method.

    Usage:
        telegram = TelegramService(settings)
        if telegram.is_configured:
            telegram.send_message("*Hello*")
    """

    def __init__(self, settings: Settings, client: httpx.Client | None = None) -> None:
        """Initialize the Telegram client.

        Args:
            settings: Settings with bot token, chat id and API base URL.
            client: Optional httpx client (tests pass one with a mock transport).
        """
        self._settings = settings
        self._client = client or httpx.Client(timeout=settings.telegram_timeout_seconds)

    @property
    def is_configured(self) -> bool:
        return self._settings.telegram_configured

    def _send_message_url(self) -> str:
        base = self._settings.telegram_api_base.rstrip("/")
        return f"{base}/bot{self._settings.telegram_bot_token}/sendMessage"

    def send_message(self, text: str) -> dict:
        """Send a MarkdownV2 message to the configured chat.

        Args:
            text: Message text, already escaped for MarkdownV2.

        Returns:
            Decoded Telegram API response.

        Raises:
            NotificationError: If Telegram is unreachable or answers with a non-2xx status.
        """
        payload = {
            "chat_id": self._settings.telegram_chat_id,
            "text": text,
            "parse_mode": PARSE_MODE,
        }

        try:
            response = self._client.post(self._send_message_url(), json=payload)
        except httpx.HTTPError as e:
            # Exception text contains the URL, which carries the bot token
            logger.error("Telegram API request failed: %s", type(e).__name__)
            raise NotificationError("Failed to send Telegram message") from e

        if not response.is_success:
            logger.error(
                "Telegram API Error (%s): %s",
                response.status_code,
                response.text,
            )
            raise NotificationError(
                "Failed to send Telegram message",
                status_code=response.status_code,
            )

        return response.json()
