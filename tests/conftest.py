"""Pytest configuration and fixtures for the donation backend tests.

This module provides reusable fixtures for testing:
- Environment-driven Settings
- DynamoDB mocking with moto
- Sample Stripe events and webhook signatures
"""

import hashlib
import hmac
import json
import os
import time
from typing import Any, Generator

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before importing the app
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_abc123xyz")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret123")
os.environ.setdefault("DONATION_TRACKER_TABLE", "test-donation-tracker")
os.environ.setdefault("CORS_ALLOWED_ORIGIN", "https://donate.example.com")
os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:test-token")
os.environ.setdefault("TELEGRAM_CHAT_ID", "-1001234567890")

from donation_shared.config import Settings  # noqa: E402

TEST_WEBHOOK_SECRET = os.environ["STRIPE_WEBHOOK_SECRET"]
TEST_TABLE_NAME = os.environ["DONATION_TRACKER_TABLE"]
TEST_SESSION_ID = "cs_test_a1b2c3"
TEST_PAYMENT_INTENT_ID = "pi_3ABC123DEF456"


# === Settings Fixtures ===


@pytest.fixture
def settings() -> Settings:
    """Settings built from the test environment."""
    return Settings.from_env()


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Clear cached services and settings before and after each test."""
    from donation_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === DynamoDB Fixtures ===


@pytest.fixture
def dynamodb_resource() -> Generator[Any, None, None]:
    """Mocked DynamoDB resource with the donation tracker table."""
    with mock_aws():
        resource = boto3.resource("dynamodb", region_name="eu-west-1")
        resource.create_table(
            TableName=TEST_TABLE_NAME,
            KeySchema=[{"AttributeName": "key", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "key", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        boto3.client("dynamodb", region_name="eu-west-1").update_time_to_live(
            TableName=TEST_TABLE_NAME,
            TimeToLiveSpecification={"AttributeName": "expires_at", "Enabled": True},
        )
        yield resource


# === Stripe Event Helpers ===


def create_stripe_signature(
    payload: bytes,
    secret: str = TEST_WEBHOOK_SECRET,
    timestamp: int | None = None,
) -> str:
    """Create a valid Stripe webhook signature.

    Stripe signatures use HMAC-SHA256 with format: t={timestamp},v1={signature}
    """
    ts = str(timestamp if timestamp is not None else int(time.time()))
    signed_payload = f"{ts}.{payload.decode('utf-8')}"
    signature = hmac.new(
        secret.encode("utf-8"),
        signed_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={ts},v1={signature}"


def create_checkout_completed_event(
    session_id: str = TEST_SESSION_ID,
    payment_status: str = "paid",
    amount_total: int = 2550,
    currency: str = "usd",
    created: int = 1700000000,
    email: str | None = "donor@example.com",
    payment_intent: str | None = TEST_PAYMENT_INTENT_ID,
) -> dict[str, Any]:
    """Create a checkout.session.completed webhook event."""
    return {
        "id": "evt_1ABC123DEF456",
        "object": "event",
        "type": "checkout.session.completed",
        "created": created,
        "data": {
            "object": {
                "id": session_id,
                "object": "checkout.session",
                "payment_status": payment_status,
                "amount_total": amount_total,
                "currency": currency,
                "created": created,
                "customer_details": {"email": email} if email else None,
                "payment_intent": payment_intent,
                "mode": "payment",
            },
        },
    }


def encode_event(event: dict[str, Any]) -> bytes:
    """Serialize an event the way Stripe sends it."""
    return json.dumps(event).encode("utf-8")


@pytest.fixture
def checkout_completed_event() -> dict[str, Any]:
    """Paid checkout.session.completed event."""
    return create_checkout_completed_event()
