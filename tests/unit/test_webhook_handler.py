"""Unit tests for WebhookHandler.

Signatures are computed and verified for real, markers live in a moto
DynamoDB table, and the notifier is mocked.

Test categories:
- Signature verification gate
- Event routing
- Idempotency
- Payment-status gate
- Best-effort notification
"""

from typing import Any
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError

from conftest import (
    TEST_SESSION_ID,
    create_checkout_completed_event,
    create_stripe_signature,
    encode_event,
)
from donation_shared.config import Settings
from donation_shared.services.kv_store import (
    KeyValueStore,
    KeyValueStoreError,
    ProcessedSessionTracker,
)
from donation_shared.services.stripe_service import StripeService, WebhookSignatureError
from donation_shared.services.telegram_service import NotificationError
from donation_shared.services.webhook_handler import WebhookHandler


# === Test Fixtures ===


@pytest.fixture
def tracker(settings: Settings, dynamodb_resource: Any) -> ProcessedSessionTracker:
    return ProcessedSessionTracker(KeyValueStore(settings, dynamodb=dynamodb_resource))


@pytest.fixture
def notifier() -> MagicMock:
    notifier = MagicMock()
    notifier.notify_donation.return_value = True
    return notifier


@pytest.fixture
def handler(settings: Settings, tracker: ProcessedSessionTracker, notifier: MagicMock) -> WebhookHandler:
    return WebhookHandler(
        stripe_service=StripeService(settings),
        tracker=tracker,
        notifier=notifier,
    )


def _deliver(handler: WebhookHandler, event: dict):
    payload = encode_event(event)
    return handler.handle(payload, create_stripe_signature(payload))


# === Signature Tests ===


class TestSignatureGate:
    """Unverified deliveries never reach idempotency or notification."""

    @pytest.mark.parametrize("signature", [None, "", "t=1,v1=" + "0" * 64, "nonsense"])
    def test_bad_signature_raises_before_processing(
        self, handler, notifier, tracker, checkout_completed_event, signature
    ):
        tracker_spy = MagicMock(wraps=tracker)
        handler._tracker = tracker_spy

        with pytest.raises(WebhookSignatureError):
            handler.handle(encode_event(checkout_completed_event), signature)

        tracker_spy.is_processed.assert_not_called()
        tracker_spy.mark_processed.assert_not_called()
        notifier.notify_donation.assert_not_called()

    def test_signature_for_other_body_is_rejected(self, handler, notifier, checkout_completed_event):
        signature = create_stripe_signature(b'{"type": "ping"}')

        with pytest.raises(WebhookSignatureError):
            handler.handle(encode_event(checkout_completed_event), signature)

        notifier.notify_donation.assert_not_called()


# === Event Routing Tests ===


class TestEventRouting:
    """Only checkout.session.completed is acted on."""

    def test_other_event_types_are_acknowledged(self, handler, notifier):
        event = {"id": "evt_2", "type": "payment_intent.created", "data": {"object": {"id": "pi_1"}}}

        result = _deliver(handler, event)

        assert result.processing_result == "received"
        assert result.body == {"received": True}
        notifier.notify_donation.assert_not_called()

    def test_malformed_json_raises(self, handler):
        payload = b"not json"

        with pytest.raises(ValidationError):
            handler.handle(payload, create_stripe_signature(payload))

    def test_completed_event_without_session_fields_raises(self, handler):
        event = {"id": "evt_3", "type": "checkout.session.completed", "data": {"object": {}}}

        with pytest.raises(ValidationError):
            _deliver(handler, event)


# === Idempotency Tests ===


class TestIdempotency:
    """Sequential redeliveries notify once."""

    def test_first_paid_delivery_notifies_and_marks(self, handler, notifier, tracker, checkout_completed_event):
        result = _deliver(handler, checkout_completed_event)

        assert result.processing_result == "notified"
        assert result.body == {"received": True}
        notifier.notify_donation.assert_called_once()
        session = notifier.notify_donation.call_args.args[0]
        assert session.id == TEST_SESSION_ID
        assert tracker.is_processed(TEST_SESSION_ID)

    def test_redelivery_returns_already_processed(self, handler, notifier, checkout_completed_event):
        first = _deliver(handler, checkout_completed_event)
        second = _deliver(handler, checkout_completed_event)

        assert first.body == {"received": True}
        assert second.processing_result == "duplicate"
        assert second.body == {"status": "already_processed"}
        assert notifier.notify_donation.call_count == 1

    def test_marked_session_is_skipped_even_if_unpaid(self, handler, notifier, tracker):
        tracker.mark_processed("cs_marked")
        event = create_checkout_completed_event(session_id="cs_marked", payment_status="unpaid")

        result = _deliver(handler, event)

        assert result.body == {"status": "already_processed"}
        notifier.notify_donation.assert_not_called()

    def test_store_failure_propagates(self, settings, notifier, checkout_completed_event):
        failing_tracker = MagicMock()
        failing_tracker.is_processed.side_effect = KeyValueStoreError("table unavailable")
        handler = WebhookHandler(StripeService(settings), failing_tracker, notifier)

        with pytest.raises(KeyValueStoreError):
            _deliver(handler, checkout_completed_event)

        notifier.notify_donation.assert_not_called()


# === Payment Status Tests ===


class TestPaymentStatusGate:
    """Unpaid sessions are acknowledged without side effects."""

    @pytest.mark.parametrize("status", ["unpaid", "no_payment_required"])
    def test_unpaid_session_is_not_marked_or_notified(self, handler, notifier, tracker, status):
        event = create_checkout_completed_event(payment_status=status)

        result = _deliver(handler, event)

        assert result.processing_result == "skipped"
        assert result.body == {"received": True}
        notifier.notify_donation.assert_not_called()
        assert not tracker.is_processed(TEST_SESSION_ID)

    def test_skipped_session_is_logged_with_payment_status(self, handler, caplog):
        with caplog.at_level("INFO", logger="donation_shared.services.webhook_handler"):
            _deliver(handler, create_checkout_completed_event(payment_status="unpaid"))

        skipped = [r for r in caplog.records if getattr(r, "result", None) == "skipped"]
        assert len(skipped) == 1
        assert skipped[0].levelname == "WARNING"
        assert skipped[0].session_id == TEST_SESSION_ID
        assert skipped[0].payment_status == "unpaid"

    def test_session_paid_later_is_notified(self, handler, notifier):
        _deliver(handler, create_checkout_completed_event(payment_status="unpaid"))
        result = _deliver(handler, create_checkout_completed_event(payment_status="paid"))

        assert result.processing_result == "notified"
        notifier.notify_donation.assert_called_once()


# === Best-effort Notification Tests ===


class TestBestEffortNotification:
    """Notification failures never fail the delivery or block the marker."""

    def test_notification_error_is_logged_and_session_marked(
        self, handler, notifier, tracker, checkout_completed_event, caplog
    ):
        notifier.notify_donation.side_effect = NotificationError("Failed to send Telegram message")

        with caplog.at_level("ERROR"):
            result = _deliver(handler, checkout_completed_event)

        assert result.body == {"received": True}
        assert tracker.is_processed(TEST_SESSION_ID)
        assert "Failed to send Telegram notification" in caplog.text

    def test_unexpected_notifier_error_is_contained(self, handler, notifier, tracker, checkout_completed_event):
        notifier.notify_donation.side_effect = RuntimeError("boom")

        result = _deliver(handler, checkout_completed_event)

        assert result.body == {"received": True}
        assert tracker.is_processed(TEST_SESSION_ID)

    def test_failed_notification_is_not_retried_on_redelivery(
        self, handler, notifier, checkout_completed_event
    ):
        notifier.notify_donation.side_effect = NotificationError("down")

        _deliver(handler, checkout_completed_event)
        second = _deliver(handler, checkout_completed_event)

        assert second.body == {"status": "already_processed"}
        assert notifier.notify_donation.call_count == 1

    def test_marker_written_after_notification(self, settings, checkout_completed_event):
        calls: list[str] = []
        tracker = MagicMock()
        tracker.is_processed.return_value = False
        tracker.mark_processed.side_effect = lambda session_id: calls.append("mark")
        notifier = MagicMock()
        notifier.notify_donation.side_effect = lambda session: calls.append("notify")
        handler = WebhookHandler(StripeService(settings), tracker, notifier)

        _deliver(handler, checkout_completed_event)

        assert calls == ["notify", "mark"]
