"""Backend services for the donation checkout backend."""

from .kv_store import KeyValueStore, KeyValueStoreError, ProcessedSessionTracker
from .notification_service import NotificationService, escape_markdown, format_donation_message
from .stripe_service import StripeService, StripeServiceError, WebhookSignatureError
from .telegram_service import NotificationError, TelegramService
from .webhook_handler import WebhookHandler, WebhookResult

__all__ = [
    "KeyValueStore",
    "KeyValueStoreError",
    "ProcessedSessionTracker",
    "NotificationService",
    "escape_markdown",
    "format_donation_message",
    "StripeService",
    "StripeServiceError",
    "WebhookSignatureError",
    "NotificationError",
    "TelegramService",
    "WebhookHandler",
    "WebhookResult",
]
