"""Stripe webhook event and payment intent models.

Only the fields this service reads are declared; everything else Stripe
sends is ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
PAYMENT_STATUS_PAID = "paid"


class CustomerDetails(BaseModel):
    """Customer details collected on the checkout page."""

    model_config = ConfigDict(extra="ignore")

    email: str | None = None


class CheckoutSession(BaseModel):
    """The ``data.object`` of a checkout.session.completed event."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(
        ...,
        description="Stripe checkout session ID (cs_xxx)",
        examples=["cs_test_a1b2c3"],
    )
    payment_status: str = Field(
        ...,
        description="paid, unpaid or no_payment_required",
        examples=["paid"],
    )
    amount_total: int | None = Field(
        default=None,
        description="Total in minor units",
        examples=[2550],
    )
    currency: str | None = Field(default=None, examples=["usd"])
    created: int = Field(
        ...,
        description="Creation time as epoch seconds",
        examples=[1700000000],
    )
    customer_details: CustomerDetails | None = None
    payment_intent: str | None = Field(
        default=None,
        description="Linked PaymentIntent ID (pi_xxx)",
    )

    @property
    def customer_email(self) -> str | None:
        """Email entered by the donor, if any."""
        return self.customer_details.email if self.customer_details else None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PAYMENT_STATUS_PAID


class WebhookEventData(BaseModel):
    """Envelope around the event's object."""

    model_config = ConfigDict(extra="ignore")

    object: dict[str, Any] = Field(default_factory=dict)


class StripeEvent(BaseModel):
    """A Stripe webhook event as delivered to /stripe-webhook."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(
        default=None,
        description="Stripe event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    type: str = Field(
        ...,
        description="Stripe event type",
        examples=[CHECKOUT_SESSION_COMPLETED, "payment_intent.created"],
    )
    data: WebhookEventData = Field(default_factory=WebhookEventData)

    @property
    def is_checkout_completed(self) -> bool:
        return self.type == CHECKOUT_SESSION_COMPLETED

    def checkout_session(self) -> CheckoutSession:
        """Parse the event object as a checkout session.

        Raises:
            pydantic.ValidationError: If the object lacks session fields.
        """
        return CheckoutSession.model_validate(self.data.object)


class PaymentIntent(BaseModel):
    """Subset of a Stripe PaymentIntent used for notifications."""

    model_config = ConfigDict(extra="ignore")

    id: str
    metadata: dict[str, str] = Field(default_factory=dict)

    @property
    def donor_note(self) -> str:
        """Note attached at checkout, or an empty string."""
        return self.metadata.get("donor_note") or ""
