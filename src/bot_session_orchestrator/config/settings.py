"""Application settings and configuration management.

This module provides Pydantic-based settings that load from environment
variables with validation and type safety.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bot_session_orchestrator.constants import (
    DEFAULT_BOT_URL,
    DEFAULT_DIRECTLINE_HOST_URL,
    RUNTIME_FINAL_POLL_DELAY,
    RUNTIME_POLLING_INTERVAL,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables. Defaults target
    a bot and Direct Line host running on the local machine.

    Example:
        >>> settings = Settings()
        >>> print(settings.directline_host_url)
        'http://localhost:3000'
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Direct Line Host Configuration
    # =========================================================================

    directline_host_url: str = Field(
        default=DEFAULT_DIRECTLINE_HOST_URL,
        min_length=1,
        description="Base URL of the Direct Line host serving conversations",
    )

    bot_url: str = Field(
        default=DEFAULT_BOT_URL,
        min_length=1,
        description="Messaging endpoint of the running bot process",
    )

    backend_request_timeout: float | None = Field(
        default=None,
        gt=0.0,
        description="Total timeout in seconds for backend requests (None waits indefinitely)",
    )

    # =========================================================================
    # Bot Credentials
    # =========================================================================

    msa_app_id: str = Field(
        default="",
        description="Microsoft App ID of the bot process",
    )

    msa_app_password: str = Field(
        default="",
        description="Microsoft App Password of the bot process",
    )

    # =========================================================================
    # Runtime Polling Configuration
    # =========================================================================

    polling_interval_seconds: float = Field(
        default=RUNTIME_POLLING_INTERVAL,
        gt=0.0,
        le=300.0,
        description="Seconds between runtime status polls while reloading",
    )

    final_poll_delay_seconds: float = Field(
        default=RUNTIME_FINAL_POLL_DELAY,
        ge=0.0,
        le=300.0,
        description="Seconds before the final status poll after connecting",
    )

    # =========================================================================
    # Persistence & Logging Configuration
    # =========================================================================

    session_store_path: Path | None = Field(
        default=None,
        description="JSON file for durable session storage (in-memory if unset)",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Application log level",
    )

    @model_validator(mode="after")
    def validate_credentials(self) -> "Settings":
        """Validate that bot credentials are complete if an app ID is set.

        Returns:
            The validated Settings instance.

        Raises:
            ValueError: If app_id is set but password is missing.
        """
        if self.msa_app_id and not self.msa_app_password:
            raise ValueError("MSA_APP_PASSWORD is required when MSA_APP_ID is set")

        return self

    def get_directline_base_url(self) -> str:
        """Get the Direct Line host URL without a trailing slash.

        Returns:
            Normalized base URL.
        """
        return self.directline_host_url.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are cached to avoid repeated environment variable reads
    and validation. The cache is cleared on application restart.

    Returns:
        Validated Settings instance.
    """
    return Settings()
