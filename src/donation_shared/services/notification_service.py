"""Donation notifications for the Telegram chat.

Builds the "New Donation Received" message from a paid checkout session and
its PaymentIntent, and sends it through TelegramService. All text is escaped
for Telegram MarkdownV2.
"""

import logging
import re
from datetime import datetime, timezone

from donation_shared.models.stripe_webhook import CheckoutSession, PaymentIntent
from donation_shared.services.stripe_service import StripeService
from donation_shared.services.telegram_service import TelegramService

logger = logging.getLogger(__name__)

# Characters reserved by Telegram MarkdownV2 (plus the escape character itself)
MARKDOWN_V2_RESERVED = "\\_*[]()~`>#+-=|{}.!"
_MARKDOWN_V2_PATTERN = re.compile(f"([{re.escape(MARKDOWN_V2_RESERVED)}])")

EMAIL_PLACEHOLDER = "Not provided"
SEPARATOR = "-" * 35


def escape_markdown(text: str) -> str:
    """Escape every MarkdownV2 reserved character with a backslash.

    Args:
        text: Raw text

    Returns:
        Text safe to interpolate into a MarkdownV2 message
    """
    return _MARKDOWN_V2_PATTERN.sub(r"\\\1", text)


def _bold(label: str) -> str:
    return f"*{escape_markdown(label)}*"


def format_amount(amount_total: int | None) -> str:
    """Render minor units as a major-unit amount with two decimals."""
    return f"{(amount_total or 0) / 100:.2f}"


def format_timestamp(created: int) -> str:
    """Render epoch seconds as a UTC timestamp."""
    return datetime.fromtimestamp(created, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def format_donation_message(
    session: CheckoutSession,
    payment_intent: PaymentIntent | None = None,
) -> str:
    """Compose the MarkdownV2 notification for a paid session.

    Args:
        session: Completed checkout session
        payment_intent: Linked PaymentIntent, if it could be retrieved

    Returns:
        Message text ready for ``parse_mode=MarkdownV2``
    """
    amount = format_amount(session.amount_total)
    currency = (session.currency or "").upper()
    donor_email = session.customer_email or EMAIL_PLACEHOLDER
    payment_id = payment_intent.id if payment_intent else session.id
    donor_note = payment_intent.donor_note if payment_intent else ""

    lines = [
        f"🎉 {_bold('New Donation Received!')} 🎉",
        escape_markdown(SEPARATOR),
        f"{_bold('Amount:')} {escape_markdown(f'{amount} {currency}')}",
        f"{_bold('Donor Email:')} {escape_markdown(donor_email)}",
        f"{_bold('Time (UTC):')} {escape_markdown(format_timestamp(session.created))}",
        f"{_bold('Payment ID:')} {escape_markdown(payment_id)}",
    ]
    if donor_note:
        lines.append(f"{_bold('Note from Donor:')} {escape_markdown(donor_note)}")
    lines.append(escape_markdown(SEPARATOR))

    return "\n".join(lines)


class NotificationService:
    """Sends donation notifications.

    Usage:
        notifier = NotificationService(stripe_service, telegram_service)
        notifier.notify_donation(session)
    """

    def __init__(self, stripe_service: StripeService, telegram: TelegramService) -> None:
        self._stripe = stripe_service
        self._telegram = telegram

    def notify_donation(self, session: CheckoutSession) -> bool:
        """Send the notification for a paid session.

        Args:
            session: Completed, paid checkout session

        Returns:
            True if a message was sent, False if Telegram is not configured

        Raises:
            NotificationError: If Telegram rejects or cannot receive the message.
        """
        payment_intent = self._stripe.retrieve_payment_intent(session.payment_intent)
        logger.info(
            "Preparing donation notification for session %s (PI %s)",
            session.id,
            payment_intent.id if payment_intent else None,
        )

        message = format_donation_message(session, payment_intent)

        if not self._telegram.is_configured:
            logger.warning("Telegram secrets not configured. Skipping notification.")
            return False

        self._telegram.send_message(message)
        logger.info("Telegram notification sent for session %s", session.id)
        return True
