"""Pydantic models for the donation backend."""

from .donation import CheckoutSessionResponse, DonationRequest
from .errors import (
    ERROR_MESSAGES,
    ERROR_STATUS,
    DonationError,
    ErrorCode,
    ErrorResponse,
)
from .stripe_webhook import (
    CHECKOUT_SESSION_COMPLETED,
    CheckoutSession,
    CustomerDetails,
    PaymentIntent,
    StripeEvent,
)

__all__ = [
    # Donation
    "CheckoutSessionResponse",
    "DonationRequest",
    # Errors
    "DonationError",
    "ErrorCode",
    "ErrorResponse",
    "ERROR_MESSAGES",
    "ERROR_STATUS",
    # Stripe
    "CHECKOUT_SESSION_COMPLETED",
    "CheckoutSession",
    "CustomerDetails",
    "PaymentIntent",
    "StripeEvent",
]
