"""Webhook handler for processing Stripe events.

Provides the business logic for /stripe-webhook separate from HTTP routing
concerns, so it can be unit tested without a request object.

Processing order for ``checkout.session.completed``:
1. verify signature
2. skip if the session's marker exists
3. skip if the session is not paid
4. notify (best-effort), then write the marker
"""

from dataclasses import dataclass

from donation_shared.models.stripe_webhook import CheckoutSession, StripeEvent
from donation_shared.services.kv_store import ProcessedSessionTracker
from donation_shared.services.notification_service import NotificationService
from donation_shared.services.stripe_service import StripeService, WebhookSignatureError
from donation_shared.services.telegram_service import NotificationError
from donation_shared.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)


@dataclass(frozen=True)
class WebhookResult:
    """Outcome of one webhook delivery."""

    processing_result: str  # "received", "duplicate", "skipped", "notified"
    session_id: str | None = None

    @property
    def body(self) -> dict:
        """JSON body returned to Stripe."""
        if self.processing_result == "duplicate":
            return {"status": "already_processed"}
        return {"received": True}


class WebhookHandler:
    """Handler for Stripe webhook deliveries.

    Ensures a paid checkout session triggers at most one notification across
    sequential redeliveries, using ProcessedSessionTracker markers.
    """

    def __init__(
        self,
        stripe_service: StripeService,
        tracker: ProcessedSessionTracker,
        notifier: NotificationService,
    ) -> None:
        self._stripe = stripe_service
        self._tracker = tracker
        self._notifier = notifier

    def handle(self, payload: bytes, signature: str | None) -> WebhookResult:
        """Verify and process one webhook delivery.

        Args:
            payload: Raw request body bytes (exactly as received)
            signature: Stripe-Signature header value

        Returns:
            WebhookResult describing what happened

        Raises:
            WebhookSignatureError: If the signature is missing or invalid.
            pydantic.ValidationError: If the verified body is not a Stripe event.
            KeyValueStoreError: If the marker store fails.
        """
        if not signature:
            logger.warning("Webhook request missing Stripe-Signature header")
            raise WebhookSignatureError("Missing Stripe-Signature header")

        self._stripe.verify_webhook_signature(payload, signature)

        event = StripeEvent.model_validate_json(payload)
        log_webhook_event(logger, event.type, event.id, "received")

        if not event.is_checkout_completed:
            return WebhookResult(processing_result="received")

        session = event.checkout_session()

        if self._tracker.is_processed(session.id):
            log_webhook_event(
                logger,
                event.type,
                event.id,
                "duplicate",
                session_id=session.id,
            )
            return WebhookResult(processing_result="duplicate", session_id=session.id)

        if not session.is_paid:
            log_webhook_event(
                logger,
                event.type,
                event.id,
                "skipped",
                session_id=session.id,
                payment_status=session.payment_status,
            )
            return WebhookResult(processing_result="skipped", session_id=session.id)

        logger.info("Processing paid session: %s", session.id)
        self._notify_best_effort(session)
        self._tracker.mark_processed(session.id)

        log_webhook_event(
            logger,
            event.type,
            event.id,
            "notified",
            session_id=session.id,
        )
        return WebhookResult(processing_result="notified", session_id=session.id)

    def _notify_best_effort(self, session: CheckoutSession) -> None:
        """Run the notification; failures are logged and never propagate."""
        try:
            self._notifier.notify_donation(session)
        except NotificationError as e:
            logger.error("Failed to send Telegram notification: %s", e)
        except Exception:
            logger.exception("Unexpected error notifying for session %s", session.id)
