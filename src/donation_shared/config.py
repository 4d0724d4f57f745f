"""Application settings loaded once from the environment.

Every service receives a ``Settings`` instance in its constructor instead of
reading ``os.environ`` itself, so configuration is validated a single time at
startup and tests can build settings explicitly.

Usage:
    settings = Settings.from_env()
    stripe_svc = StripeService(settings)
"""

import os
from collections.abc import Mapping
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

REQUIRED_ENV_VARS: dict[str, str] = {
    "stripe_secret_key": "STRIPE_SECRET_KEY",
    "stripe_webhook_secret": "STRIPE_WEBHOOK_SECRET",
    "donation_tracker_table": "DONATION_TRACKER_TABLE",
}

OPTIONAL_ENV_VARS: dict[str, str] = {
    "telegram_bot_token": "TELEGRAM_BOT_TOKEN",
    "telegram_chat_id": "TELEGRAM_CHAT_ID",
    "cors_allowed_origin": "CORS_ALLOWED_ORIGIN",
    "donation_product_name": "DONATION_PRODUCT_NAME",
    "telegram_api_base": "TELEGRAM_API_BASE",
    "telegram_timeout_seconds": "TELEGRAM_TIMEOUT_SECONDS",
    "stripe_webhook_tolerance": "STRIPE_WEBHOOK_TOLERANCE",
    "log_level": "LOG_LEVEL",
}


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid."""

    pass


class Settings(BaseModel):
    """Validated, immutable runtime configuration."""

    model_config = ConfigDict(frozen=True)

    stripe_secret_key: str = Field(
        ...,
        min_length=1,
        description="Stripe secret API key (sk_xxx)",
    )
    stripe_webhook_secret: str = Field(
        ...,
        min_length=1,
        description="Stripe webhook signing secret (whsec_xxx)",
    )
    donation_tracker_table: str = Field(
        ...,
        min_length=1,
        description="DynamoDB table holding idempotency markers",
    )
    telegram_bot_token: str | None = Field(
        default=None,
        description="Telegram bot token; notifications are skipped when unset",
    )
    telegram_chat_id: str | None = Field(
        default=None,
        description="Telegram chat to notify; notifications are skipped when unset",
    )
    cors_allowed_origin: str = Field(
        default="http://localhost:3000",
        description="Single browser origin allowed to create checkout sessions",
    )
    donation_product_name: str = Field(
        default="Donation",
        description="Line item label shown on the Stripe checkout page",
    )
    telegram_api_base: str = Field(
        default="https://api.telegram.org",
        description="Base URL of the Telegram Bot API",
    )
    telegram_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for Telegram API calls",
    )
    stripe_webhook_tolerance: int | None = Field(
        default=None,
        gt=0,
        description="Maximum webhook timestamp age in seconds; unset disables the check",
    )
    log_level: str = Field(default="INFO")

    @field_validator("telegram_bot_token", "telegram_chat_id", "stripe_webhook_tolerance", mode="before")
    @classmethod
    def _blank_as_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def telegram_configured(self) -> bool:
        """True when both the bot token and the chat id are set."""
        return bool(self.telegram_bot_token and self.telegram_chat_id)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            environ: Mapping to read from. Defaults to ``os.environ``.

        Returns:
            Validated Settings instance.

        Raises:
            ConfigurationError: If a required variable is missing or a value is invalid.
        """
        env = os.environ if environ is None else environ

        missing = [name for name in REQUIRED_ENV_VARS.values() if not env.get(name)]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(sorted(missing))}"
            )

        values: dict[str, str] = {
            field: env[name] for field, name in REQUIRED_ENV_VARS.items()
        }
        for field, name in OPTIONAL_ENV_VARS.items():
            if name in env:
                values[field] = env[name]

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings (validated on first call).

    Returns:
        Settings: Shared settings instance.
    """
    return Settings.from_env()
