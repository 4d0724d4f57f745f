"""Correlation ID middleware for request tracing.

Browsers and Stripe rarely send ``X-Correlation-ID``, so most requests get a
fresh UUID. The ID is bound to the request's context for the log prefix and
returned on every response, including 404s and error bodies.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from donation_shared.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Binds one correlation ID per request and echoes it back."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Run the request with its correlation ID bound.

        Args:
            request: Incoming request; its ``X-Correlation-ID`` is reused if present
            call_next: Rest of the middleware stack and the route

        Returns:
            The downstream response with ``X-Correlation-ID`` set
        """
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_ID_HEADER))

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            # Context must not leak into the next request on a reused worker
            clear_correlation_id()
