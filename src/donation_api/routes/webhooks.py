"""Webhook endpoint for Stripe events.

This endpoint does NOT require authentication; Stripe calls it
server-to-server with a signed payload.

Responses:
- 200 ``{"received": true}`` for any accepted event
- 200 ``{"status": "already_processed"}`` for a redelivered paid session
- 400 plain text on signature or processing failure
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from starlette.status import HTTP_200_OK, HTTP_400_BAD_REQUEST

from donation_api.dependencies import get_webhook_handler
from donation_shared.models.errors import ERROR_MESSAGES, ErrorCode
from donation_shared.services.stripe_service import WebhookSignatureError
from donation_shared.services.webhook_handler import WebhookHandler
from donation_shared.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

SIGNATURE_HEADER = "Stripe-Signature"


@router.post(
    "/stripe-webhook",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events. Handles:
- checkout.session.completed: sends a donation notification once per paid session

All other event types are acknowledged and ignored.

**Idempotent**: a session that was already handled returns `already_processed`.
""",
    responses={
        200: {"description": "Event received (or already processed)"},
        400: {"description": "Invalid signature or unprocessable event"},
    },
)
async def handle_stripe_webhook(
    request: Request,
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> Response:
    """Verify and process a Stripe webhook delivery."""
    signature = request.headers.get(SIGNATURE_HEADER)
    payload = await request.body()

    try:
        result = handler.handle(payload, signature)
    except WebhookSignatureError:
        logger.error("Webhook signature verification failed.")
        return PlainTextResponse(
            ERROR_MESSAGES[ErrorCode.SIGNATURE_ERROR],
            status_code=HTTP_400_BAD_REQUEST,
        )
    except Exception as e:
        logger.exception("Error in handle_stripe_webhook")
        return PlainTextResponse(
            f"Webhook error: {e}",
            status_code=HTTP_400_BAD_REQUEST,
        )

    return JSONResponse(status_code=HTTP_200_OK, content=result.body)
