"""Application settings management."""

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Global settings loaded from environment variables."""

    app_name: str = "Event Reservation Bot"
    app_version: str = "0.1.0"
    environment: str = "development"
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    database_url: str = Field(..., alias="DATABASE_URL")

    jwt_secret: str = Field(..., alias="JWT_SECRET")
    admin_token_ttl_minutes: int = Field(default=60, alias="ADMIN_TOKEN_TTL_MINUTES")
    organizer_token_ttl_minutes: int = Field(default=480, alias="ORGANIZER_TOKEN_TTL_MINUTES")
    default_admin_user: str | None = Field(default=None, alias="DEFAULT_ADMIN_USER")
    default_admin_pass: str | None = Field(default=None, alias="DEFAULT_ADMIN_PASS")

    telegram_bot_token: str | None = Field(default=None, alias="TELEGRAM_BOT_TOKEN")
    telegram_webhook_url: str | None = Field(default=None, alias="TELEGRAM_WEBHOOK_URL")
    telegram_webhook_secret: str | None = Field(default=None, alias="TELEGRAM_WEBHOOK_SECRET")
    authorized_broadcast_ids: str = Field(default="", alias="AUTHORIZED_BROADCAST_IDS")
    images_dir: str = Field(default="images", alias="IMAGES_DIR")
    broadcast_send_delay_seconds: float = Field(default=0.1, alias="BROADCAST_SEND_DELAY_SECONDS")
    conversation_ttl_seconds: float | None = Field(default=86400, alias="CONVERSATION_TTL_SECONDS")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="forbid",
    )

    @field_validator("jwt_secret")
    @classmethod
    def _warn_on_weak_secret(cls, value: str) -> str:
        if len(value) < 16:
            logger.warning("JWT_SECRET is shorter than 16 characters. Set a strong secret in the environment.")
        return value

    @field_validator("conversation_ttl_seconds", mode="before")
    @classmethod
    def _empty_ttl_disables_eviction(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def broadcaster_ids(self) -> frozenset[str]:
        """Telegram user ids allowed to start a broadcast."""
        return frozenset(part.strip() for part in self.authorized_broadcast_ids.split(",") if part.strip())


settings = Settings()
