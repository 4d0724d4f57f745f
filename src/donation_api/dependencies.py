"""FastAPI dependency injection providers for shared services.

Providers read the Settings the app was built with (``app.state.settings``)
and hand them to cached builders, so each distinct Settings instance gets
one set of services. Every service receives its configuration in its
constructor.

Service Dependency Graph:
    Settings (app.state.settings)
        ├── StripeService
        ├── KeyValueStore (DynamoDB)
        │       └── ProcessedSessionTracker
        ├── TelegramService
        └── NotificationService (StripeService, TelegramService)
                └── WebhookHandler (StripeService, ProcessedSessionTracker)

Testing:
    Override providers with app.dependency_overrides, and call
    reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from fastapi import Depends, Request

from donation_shared.config import Settings, get_settings
from donation_shared.services.kv_store import KeyValueStore, ProcessedSessionTracker
from donation_shared.services.notification_service import NotificationService
from donation_shared.services.stripe_service import StripeService
from donation_shared.services.telegram_service import TelegramService
from donation_shared.services.webhook_handler import WebhookHandler


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with."""
    return request.app.state.settings


@lru_cache
def build_stripe_service(settings: Settings) -> StripeService:
    return StripeService(settings)


@lru_cache
def build_processed_session_tracker(settings: Settings) -> ProcessedSessionTracker:
    return ProcessedSessionTracker(KeyValueStore(settings))


@lru_cache
def build_notification_service(settings: Settings) -> NotificationService:
    return NotificationService(
        stripe_service=build_stripe_service(settings),
        telegram=TelegramService(settings),
    )


@lru_cache
def build_webhook_handler(settings: Settings) -> WebhookHandler:
    """Wire a WebhookHandler to the services for these settings.

    Returns:
        WebhookHandler configured with Stripe, marker tracker and notifier.
    """
    return WebhookHandler(
        stripe_service=build_stripe_service(settings),
        tracker=build_processed_session_tracker(settings),
        notifier=build_notification_service(settings),
    )


def get_stripe_service(settings: Settings = Depends(get_app_settings)) -> StripeService:
    """Get the cached StripeService for the app's settings."""
    return build_stripe_service(settings)


def get_webhook_handler(settings: Settings = Depends(get_app_settings)) -> WebhookHandler:
    """Get the cached WebhookHandler for the app's settings."""
    return build_webhook_handler(settings)


def reset_services() -> None:
    """Clear all cached service instances and settings.

    Example:
        @pytest.fixture(autouse=True)
        def reset_state():
            yield
            reset_services()
    """
    build_stripe_service.cache_clear()
    build_processed_session_tracker.cache_clear()
    build_notification_service.cache_clear()
    build_webhook_handler.cache_clear()
    get_settings.cache_clear()
