"""Donation request and checkout session models."""

from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation

from pydantic import BaseModel, ConfigDict, Field

from .errors import DonationError, ErrorCode

MINOR_UNITS_PER_MAJOR = 100


class DonationRequest(BaseModel):
    """Body of POST /create-checkout-session.

    Every field is optional at parse time so that missing and falsy values
    can be reported with a single "Missing required fields." error.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "amount": 10,
                    "currency": "usd",
                    "note": "Keep up the good work!",
                    "successUrl": "https://donate.example.com/thanks",
                    "cancelUrl": "https://donate.example.com/",
                }
            ]
        },
    )

    amount: str | int | float | None = Field(
        default=None,
        description="Donation amount in major currency units",
        examples=[10, "25.50"],
    )
    currency: str | None = Field(
        default=None,
        description="ISO currency code (any case)",
        examples=["usd"],
    )
    note: str | None = Field(
        default=None,
        description="Optional message from the donor",
    )
    success_url: str | None = Field(
        default=None,
        alias="successUrl",
        description="Redirect target after a completed payment",
    )
    cancel_url: str | None = Field(
        default=None,
        alias="cancelUrl",
        description="Redirect target when the donor cancels",
    )

    def missing_fields(self) -> list[str]:
        """Return the required fields that are absent or falsy."""
        required = {
            "amount": self.amount,
            "currency": self.currency,
            "successUrl": self.success_url,
            "cancelUrl": self.cancel_url,
        }
        return [name for name, value in required.items() if not value]

    def amount_minor_units(self) -> int:
        """Convert the amount to Stripe minor units (cents), rounding half-up.

        Returns:
            Positive integer amount in minor units.

        Raises:
            DonationError: If the amount is not a positive number of at least one minor unit.
        """
        try:
            amount = Decimal(str(self.amount).strip())
        except (InvalidOperation, ValueError) as e:
            raise DonationError(ErrorCode.VALIDATION_ERROR, "Amount must be a number.") from e

        if not amount.is_finite():
            raise DonationError(ErrorCode.VALIDATION_ERROR, "Amount must be a number.")

        try:
            minor = (amount * MINOR_UNITS_PER_MAJOR).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        except DecimalException as e:
            # Result exceeds the decimal context precision or exponent range
            raise DonationError(ErrorCode.VALIDATION_ERROR, "Amount must be a number.") from e

        if minor <= 0:
            raise DonationError(ErrorCode.VALIDATION_ERROR, "Amount must be positive.")
        return int(minor)

    def validate_required(self) -> None:
        """Raise a validation error when any required field is missing.

        Raises:
            DonationError: VALIDATION_ERROR with the generic message.
        """
        if self.missing_fields():
            raise DonationError(ErrorCode.VALIDATION_ERROR)


class CheckoutSessionResponse(BaseModel):
    """Response for a created checkout session."""

    model_config = ConfigDict(strict=True)

    id: str = Field(
        ...,
        description="Stripe checkout session ID",
        examples=["cs_test_a1b2c3"],
    )
