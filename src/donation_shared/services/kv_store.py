"""DynamoDB-backed key-value store with per-item expiry.

Items look like ``{"key": <str>, "value": <str>, "expires_at": <epoch secs>}``.
``expires_at`` is the table's TTL attribute. DynamoDB deletes expired items
lazily, so reads also ignore items whose expiry has passed.
"""

import logging
import time
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from donation_shared.config import Settings

logger = logging.getLogger(__name__)

PROCESSED_SESSION_PREFIX = "processed_session_"
PROCESSED_MARKER_VALUE = "processed"
PROCESSED_MARKER_TTL_SECONDS = 60 * 60 * 24 * 30


class KeyValueStoreError(Exception):
    """Raised when the backing table cannot be read or written."""

    pass


class KeyValueStore:
    """Minimal get/put store on a single DynamoDB table."""

    KEY_ATTRIBUTE = "key"
    VALUE_ATTRIBUTE = "value"
    TTL_ATTRIBUTE = "expires_at"

    def __init__(self, settings: Settings, dynamodb: Any | None = None) -> None:
        """Initialize the store.

        Args:
            settings: Settings naming the DynamoDB table.
            dynamodb: Optional boto3 DynamoDB resource (defaults to a new one).
        """
        self._table_name = settings.donation_tracker_table
        self._dynamodb = dynamodb or boto3.resource("dynamodb")

    def _get_table(self) -> Any:
        return self._dynamodb.Table(self._table_name)

    def get(self, key: str) -> str | None:
        """Get a live value by key.

        Args:
            key: Item key

        Returns:
            Stored value, or None if absent or expired

        Raises:
            KeyValueStoreError: If DynamoDB fails.
        """
        try:
            response = self._get_table().get_item(Key={self.KEY_ATTRIBUTE: key})
        except (ClientError, BotoCoreError) as e:
            raise KeyValueStoreError(f"Failed to read {key}: {e}") from e

        item: dict[str, Any] | None = response.get("Item")
        if item is None:
            return None

        expires_at = item.get(self.TTL_ATTRIBUTE)
        if expires_at is not None and int(expires_at) <= int(time.time()):
            logger.debug("Ignoring expired item %s", key)
            return None

        return str(item.get(self.VALUE_ATTRIBUTE, ""))

    def put(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        """Store a value, optionally expiring after ttl_seconds.

        Args:
            key: Item key
            value: Value to store
            ttl_seconds: Lifetime in seconds; None keeps the item forever

        Raises:
            KeyValueStoreError: If DynamoDB fails.
        """
        item: dict[str, Any] = {
            self.KEY_ATTRIBUTE: key,
            self.VALUE_ATTRIBUTE: value,
        }
        if ttl_seconds is not None:
            item[self.TTL_ATTRIBUTE] = int(time.time()) + ttl_seconds

        try:
            self._get_table().put_item(Item=item)
        except (ClientError, BotoCoreError) as e:
            raise KeyValueStoreError(f"Failed to write {key}: {e}") from e


class ProcessedSessionTracker:
    """Idempotency markers for checkout sessions.

    A marker's presence is the only record that a session was handled.
    The check and the write are separate calls; concurrent deliveries of the
    same session can both pass the check.
    """

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @staticmethod
    def marker_key(session_id: str) -> str:
        """Key of the marker for a checkout session."""
        return f"{PROCESSED_SESSION_PREFIX}{session_id}"

    def is_processed(self, session_id: str) -> bool:
        return self._store.get(self.marker_key(session_id)) is not None

    def mark_processed(self, session_id: str) -> None:
        """Write the marker with a 30-day expiry."""
        self._store.put(
            self.marker_key(session_id),
            PROCESSED_MARKER_VALUE,
            ttl_seconds=PROCESSED_MARKER_TTL_SECONDS,
        )
        logger.info("Session %s marked as processed", session_id)
