"""Request-scoped logging for the donation backend.

Every log line is prefixed with the request's correlation ID, and the two
things worth auditing, checkout attempts and webhook deliveries, are logged
through helpers that emit ``key=value`` fields both in the message and as
record attributes.

Usage:
    from donation_shared.utils.logging import get_logger, log_webhook_event

    logger = get_logger(__name__)
    log_webhook_event(logger, "checkout.session.completed", "evt_1", "notified", session_id="cs_1")
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Any

NO_CORRELATION_ID = "no-correlation-id"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)

# Level per webhook processing result; unknown results log at INFO
WEBHOOK_RESULT_LEVELS: dict[str, int] = {
    "received": logging.INFO,
    "notified": logging.INFO,
    "duplicate": logging.WARNING,
    "skipped": logging.WARNING,
    "error": logging.ERROR,
}


def set_correlation_id(correlation_id: str | None = None) -> str:
    """Bind a correlation ID to the current context, minting a UUID4 if none is given."""
    cid = correlation_id or str(uuid.uuid4())
    _correlation_id.set(cid)
    return cid


def get_correlation_id() -> str | None:
    return _correlation_id.get()


def clear_correlation_id() -> None:
    _correlation_id.set(None)


class CorrelationIdFilter(logging.Filter):
    """Stamps ``record.correlation_id`` from the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class StructuredFormatter(logging.Formatter):
    """Prefixes each formatted line with ``[<correlation id>]``."""

    def format(self, record: logging.LogRecord) -> str:
        cid = getattr(record, "correlation_id", None) or get_correlation_id() or NO_CORRELATION_ID
        return f"[{cid}] {super().format(record)}"


def configure_logging(level: str = "INFO") -> None:
    """Install the structured formatter on the root logger.

    Calling it again only updates the level.

    Args:
        level: Log level name (DEBUG, INFO, ...)
    """
    root = logging.getLogger()
    root.setLevel(level)

    if any(isinstance(h.formatter, StructuredFormatter) for h in root.handlers):
        return

    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Return ``logging.getLogger(name)`` with a CorrelationIdFilter attached once."""
    logger = logging.getLogger(name)
    if not any(isinstance(f, CorrelationIdFilter) for f in logger.filters):
        logger.addFilter(CorrelationIdFilter())
    return logger


def _emit(logger: logging.Logger, level: int, headline: str, fields: dict[str, Any]) -> None:
    present = {key: value for key, value in fields.items() if value is not None}
    parts = [headline, *(f"{key}={value}" for key, value in present.items())]
    logger.log(level, " | ".join(parts), extra=present)


def log_checkout_session(
    logger: logging.Logger,
    *,
    session_id: str | None = None,
    currency: str | None = None,
    error: str | None = None,
) -> None:
    """Log the outcome of one POST /create-checkout-session.

    A call with ``error`` logs the failure at ERROR; otherwise the created
    session is logged at INFO.

    Args:
        logger: Logger instance
        session_id: Created Stripe checkout session ID
        currency: Lower-cased currency sent to Stripe
        error: Exception type name when creation failed
    """
    if error:
        _emit(logger, logging.ERROR, "Checkout session failed", {"error": error})
    else:
        _emit(
            logger,
            logging.INFO,
            "Checkout session created",
            {"session_id": session_id, "currency": currency},
        )


def log_webhook_event(
    logger: logging.Logger,
    event_type: str,
    event_id: str | None,
    result: str,
    *,
    session_id: str | None = None,
    payment_status: str | None = None,
) -> None:
    """Log one webhook delivery and what was done with it.

    Args:
        logger: Logger instance
        event_type: Stripe event type (e.g., "checkout.session.completed")
        event_id: Stripe event ID, if the payload carried one
        result: received, notified, duplicate, skipped or error
        session_id: Checkout session ID for checkout events
        payment_status: Session payment status, logged for skipped sessions
    """
    _emit(
        logger,
        WEBHOOK_RESULT_LEVELS.get(result, logging.INFO),
        f"Webhook {event_type} ({event_id or 'no-id'})",
        {
            "result": result,
            "session_id": session_id,
            "payment_status": payment_status,
        },
    )
