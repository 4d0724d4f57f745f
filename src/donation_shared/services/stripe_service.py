"""Stripe payment service for donation checkout sessions.

Provides integration with Stripe using the v8+ StripeClient pattern.
Credentials come from the injected Settings.
"""

import logging

import stripe
from stripe import StripeClient

from donation_shared.config import Settings
from donation_shared.models.donation import DonationRequest
from donation_shared.models.stripe_webhook import PaymentIntent

logger = logging.getLogger(__name__)

DONOR_NOTE_METADATA_KEY = "donor_note"


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(
        self,
        message: str,
        stripe_error_code: str | None = None,
        http_status: int | None = None,
    ) -> None:
        """Initialize with message and optional Stripe error details.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
            http_status: HTTP status Stripe answered with, if any.
        """
        super().__init__(message)
        self.message = message
        self.stripe_error_code = stripe_error_code
        self.http_status = http_status


class WebhookSignatureError(StripeServiceError):
    """Raised when a webhook's Stripe-Signature header does not verify."""


class StripeService:
    """Service for Stripe payment operations.

    Handles:
    - Donation checkout session creation
    - Webhook signature validation
    - PaymentIntent retrieval for donor notes

    Usage:
        stripe_svc = StripeService(settings)
        session_id = stripe_svc.create_donation_checkout_session(donation)
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize Stripe service.

        Args:
            settings: Validated application settings.
        """
        self._settings = settings
        self._client: StripeClient | None = None

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization)."""
        if self._client is None:
            # Redelivery is Stripe's job; never retry from here
            self._client = StripeClient(
                self._settings.stripe_secret_key,
                max_network_retries=0,
            )
            logger.info("Stripe client initialized")
        return self._client

    def create_donation_checkout_session(self, donation: DonationRequest) -> str:
        """Create a single-item Stripe Checkout session for a donation.

        Args:
            donation: Request whose required fields have been validated.

        Returns:
            Stripe checkout session ID.

        Raises:
            DonationError: If the amount is invalid.
            StripeServiceError: If Stripe rejects the request.
        """
        client = self._get_client()
        amount_minor = donation.amount_minor_units()
        currency = (donation.currency or "").lower()

        params: dict = {
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": {
                            "name": self._settings.donation_product_name,
                        },
                        "unit_amount": amount_minor,
                    },
                    "quantity": 1,
                }
            ],
            "mode": "payment",
            "success_url": donation.success_url,
            "cancel_url": donation.cancel_url,
        }
        if donation.note:
            params["payment_intent_data"] = {
                "metadata": {DONOR_NOTE_METADATA_KEY: donation.note},
            }

        try:
            logger.info(
                "Creating Stripe checkout session, amount %d %s",
                amount_minor,
                currency,
            )

            session = client.checkout.sessions.create(params=params)

            logger.info("Checkout session created: %s", session.id)
            return session.id

        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            message = e.user_message or str(e)
            logger.error(
                "Stripe API Error: %s (code: %s, status: %s)",
                message,
                error_code,
                e.http_status,
            )
            raise StripeServiceError(
                message,
                stripe_error_code=error_code,
                http_status=e.http_status,
            ) from e

    def verify_webhook_signature(self, payload: bytes, signature: str) -> None:
        """Verify the Stripe-Signature header against the raw body.

        Only the first two comma-separated fields of the header (``t=`` and
        ``v1=``) are considered.

        Args:
            payload: Raw request body bytes.
            signature: Stripe-Signature header value.

        Raises:
            WebhookSignatureError: If the header is malformed or the MAC does not match.
        """
        header = ",".join(signature.split(",")[:2])

        try:
            stripe.WebhookSignature.verify_header(
                payload.decode("utf-8"),
                header,
                self._settings.stripe_webhook_secret,
                tolerance=self._settings.stripe_webhook_tolerance,
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise WebhookSignatureError("Invalid webhook signature") from e

    def retrieve_payment_intent(self, payment_intent_id: str | None) -> PaymentIntent | None:
        """Fetch a PaymentIntent, treating any failure as "not available".

        Args:
            payment_intent_id: Stripe PaymentIntent ID (pi_xxx) or None.

        Returns:
            PaymentIntent, or None if there is no reference or Stripe fails.
        """
        if not payment_intent_id:
            return None

        client = self._get_client()
        try:
            intent = client.payment_intents.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            logger.error(
                "Failed to retrieve Payment Intent %s: %s (status: %s)",
                payment_intent_id,
                str(e),
                e.http_status,
            )
            return None

        metadata = intent.metadata.to_dict() if intent.metadata else {}
        return PaymentIntent(id=intent.id, metadata=metadata)
