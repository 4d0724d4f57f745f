"""Checkout endpoint for starting a donation.

Called by the donation page in the browser; the returned session ID is
handed to Stripe.js to redirect the donor to hosted checkout.
"""

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from donation_api.dependencies import get_stripe_service
from donation_shared.models.donation import CheckoutSessionResponse, DonationRequest
from donation_shared.models.errors import DonationError, ErrorCode, ErrorResponse
from donation_shared.services.stripe_service import StripeService, StripeServiceError
from donation_shared.utils.logging import get_logger, log_checkout_session

logger = get_logger(__name__)

router = APIRouter(tags=["checkout"])


@router.post(
    "/create-checkout-session",
    summary="Create a donation checkout session",
    description="""
Create a Stripe Checkout session for a one-off donation.

**Notes:**
- `amount` is in major currency units and is rounded half-up to minor units
- `note` is stored on the PaymentIntent and shown in the donation notification
- Stripe errors are returned with Stripe's HTTP status
""",
    response_model=CheckoutSessionResponse,
    responses={
        200: {"description": "Session created", "model": CheckoutSessionResponse},
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        500: {"description": "Unexpected failure", "model": ErrorResponse},
    },
)
async def create_checkout_session(
    request: Request,
    stripe_service: StripeService = Depends(get_stripe_service),
) -> CheckoutSessionResponse:
    """Validate the donation and create the Stripe session."""
    try:
        body = await request.json()

        try:
            donation = DonationRequest.model_validate(body)
        except ValidationError as e:
            raise DonationError(ErrorCode.VALIDATION_ERROR) from e
        donation.validate_required()

        session_id = stripe_service.create_donation_checkout_session(donation)

    except DonationError:
        raise
    except StripeServiceError as e:
        raise DonationError(
            ErrorCode.PROVIDER_ERROR,
            message=e.message,
            status_code=e.http_status,
        ) from e
    except Exception as e:
        logger.exception("Error in create_checkout_session")
        log_checkout_session(logger, error=type(e).__name__)
        raise DonationError(ErrorCode.INTERNAL_ERROR) from e

    log_checkout_session(
        logger,
        session_id=session_id,
        currency=(donation.currency or "").lower(),
    )
    return CheckoutSessionResponse(id=session_id)
