"""FastAPI application for the donation backend.

Routes:
- POST /create-checkout-session  (browser, CORS-enabled)
- POST /stripe-webhook           (Stripe, signature-verified)
- OPTIONS on any path            (CORS preflight)

Anything else answers 404 "Not Found.".
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from mangum import Mangum
from starlette.status import HTTP_204_NO_CONTENT

from donation_api.exceptions import register_exception_handlers
from donation_api.middleware.correlation import CorrelationIdMiddleware
from donation_api.routes.checkout import router as checkout_router
from donation_api.routes.webhooks import router as webhooks_router
from donation_shared.config import Settings, get_settings
from donation_shared.utils.logging import configure_logging

CORS_ALLOWED_METHODS = ["POST", "OPTIONS"]
CORS_ALLOWED_HEADERS = ["Content-Type"]


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Validated settings. Defaults to settings loaded from the
            environment, which fails fast if required variables are missing.

    Returns:
        Configured FastAPI app.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Donation Checkout API",
        description="Stripe Checkout sessions and webhook notifications for donations",
        version="0.1.0",
    )
    app.state.settings = settings

    # Browsers on the donation page are the only CORS clients
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_allowed_origin],
        allow_methods=CORS_ALLOWED_METHODS,
        allow_headers=CORS_ALLOWED_HEADERS,
    )
    app.add_middleware(CorrelationIdMiddleware)

    register_exception_handlers(app)

    app.include_router(checkout_router)
    app.include_router(webhooks_router)

    @app.options("/{path:path}", include_in_schema=False)
    async def preflight(path: str) -> Response:
        """Answer OPTIONS that are not full CORS preflights."""
        return Response(status_code=HTTP_204_NO_CONTENT)

    return app


app = create_app()

# Lambda handler - Mangum wraps FastAPI for AWS Lambda + API Gateway
handler = Mangum(app, lifespan="off")


def run_server(host: str = "0.0.0.0", port: int = 8080, reload: bool = False) -> None:
    """Run the FastAPI server.

    Args:
        host: Host to bind to (default: 0.0.0.0)
        port: Port to listen on (default: 8080)
        reload: Enable hot reload for development (default: False)
    """
    import uvicorn

    if reload:
        # Use string reference for reload mode (uvicorn requirement)
        uvicorn.run("donation_api.main:app", host=host, port=port, reload=True)
    else:
        uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    run_server()
