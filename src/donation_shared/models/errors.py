"""Standard error codes for the donation backend.

Service layers raise their own exceptions; HTTP routes translate them into
``DonationError`` so every failure reaching a client has a code, a message
and an HTTP status.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Error taxonomy shared by the checkout and webhook endpoints."""

    VALIDATION_ERROR = "ERR_VALIDATION"
    PROVIDER_ERROR = "ERR_PROVIDER"
    SIGNATURE_ERROR = "ERR_SIGNATURE"
    NOTIFICATION_ERROR = "ERR_NOTIFICATION"
    INTERNAL_ERROR = "ERR_INTERNAL"


# Default messages returned to callers
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.VALIDATION_ERROR: "Missing required fields.",
    ErrorCode.PROVIDER_ERROR: "Payment provider rejected the request.",
    ErrorCode.SIGNATURE_ERROR: "Webhook signature verification failed.",
    ErrorCode.NOTIFICATION_ERROR: "Failed to send notification.",
    ErrorCode.INTERNAL_ERROR: "Internal server error.",
}

# Default HTTP status per code; PROVIDER_ERROR normally carries Stripe's own status
ERROR_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.PROVIDER_ERROR: 502,
    ErrorCode.SIGNATURE_ERROR: 400,
    ErrorCode.NOTIFICATION_ERROR: 502,
    ErrorCode.INTERNAL_ERROR: 500,
}


class ErrorResponse(BaseModel):
    """JSON body returned for a failed API request."""

    model_config = ConfigDict(strict=True)

    error: str
    error_code: ErrorCode


class DonationError(Exception):
    """Exception raised by request handlers.

    Can be caught and converted to an ErrorResponse for API responses.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.status_code = status_code or ERROR_STATUS[code]
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert this exception to the API error body."""
        return ErrorResponse(error=self.message, error_code=self.code)
