"""Configuration management for chatbridge."""

from __future__ import annotations

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatbridge.errors import ConfigurationError

DEFAULT_READ_TIMEOUT_SECONDS = 2.0
DEFAULT_OUTPUT_SEPARATOR = "\n\n"


class BridgeSettings(BaseSettings):
    """Bridge settings."""

    model_config = SettingsConfigDict(
        env_prefix="CHATBRIDGE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Bridge Configuration
    read_timeout_seconds: float = Field(
        default=DEFAULT_READ_TIMEOUT_SECONDS,
        description="How long read_input waits for the UI to reply before giving up",
    )
    output_separator: str = Field(
        default=DEFAULT_OUTPUT_SEPARATOR,
        description="Separator placed between assistant messages in read_output",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")

    @field_validator("read_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("read_timeout_seconds must be positive")
        return value

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()


def get_settings(**overrides: object) -> BridgeSettings:
    """Get bridge settings.

    Values come from ``CHATBRIDGE_*`` environment variables and ``.env``;
    keyword overrides win over both.

    Raises:
        ConfigurationError: if the resulting settings are invalid
    """
    try:
        return BridgeSettings(**overrides)  # type: ignore[arg-type]
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc
