"""Configuration management for Channel Relay."""

import json
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from channel_relay.constants import DEFAULT_STATE_PATH, DEFAULT_WEBHOOK_NAME


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord
    discord_token: SecretStr = Field(description="Discord bot token")
    allowed_user_ids: Annotated[
        list[int],
        NoDecode,
        Field(default_factory=list, description="Discord user IDs allowed to manage relays"),
    ]
    logging_guild_id: int | None = Field(
        default=None,
        description="Guild where mirror channels are created when no target is given",
    )

    # Relay
    relay_state_path: Path = Field(
        default=Path(DEFAULT_STATE_PATH),
        description="JSON file holding the active relay definitions",
    )
    webhook_name: str = Field(
        default=DEFAULT_WEBHOOK_NAME,
        description="Name given to webhooks created for relays",
    )

    # Application
    environment: str = Field(default="production", description="Environment name")
    log_level: str = Field(default="INFO", description="Logging level")
    log_to_file: bool = Field(default=False, description="Also write logs to a rotating file")
    log_file_path: Path = Field(
        default=Path("logs/channel_relay.log"), description="Rotating log file location"
    )

    @field_validator("allowed_user_ids", mode="before")
    @classmethod
    def _split_user_ids(cls, value: object) -> object:
        """Accept a comma separated string as well as a JSON list."""
        if isinstance(value, int):
            return [value]
        if isinstance(value, str) and value.strip().startswith("["):
            return json.loads(value)
        if isinstance(value, str):
            return [int(part) for part in value.split(",") if part.strip()]
        return value

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment.lower() == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
