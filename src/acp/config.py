"""Configuration management for the ACP SDK."""

import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_API_VERSION = "2026-01-16"
DEFAULT_HOST = "api.agentic-commerce.com"
DEFAULT_TIMEOUT = 80.0
DEFAULT_MAX_NETWORK_RETRIES = 2


class ACPSettings(BaseSettings):
    """Client configuration loaded from arguments and environment variables.

    All settings can be overridden via environment variables with the
    ACP_ prefix. For example:
        ACP_API_KEY=sk_test_...
        ACP_TIMEOUT=30
        ACP_MAX_NETWORK_RETRIES=3

    Instances are frozen: a client resolves its settings once at
    construction and shares them read-only across concurrent calls.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACP_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    api_key: str | None = Field(
        default=None,
        description="Secret API key sent as a bearer credential",
    )
    api_version: str = Field(
        default=DEFAULT_API_VERSION,
        description="Value of the ACP-Version request header",
    )
    host: str = Field(
        default=DEFAULT_HOST,
        description="API host (without scheme)",
    )
    base_path: str = Field(
        default="/v1",
        description="Path prefix prepended to every request path",
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT,
        gt=0,
        description="Per-attempt deadline in seconds",
    )
    max_network_retries: int = Field(
        default=DEFAULT_MAX_NETWORK_RETRIES,
        ge=0,
        le=10,
        description="Retries after the first attempt for retryable failures",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format",
    )

    @field_validator("host")
    @classmethod
    def _strip_scheme(cls, value: str) -> str:
        """Accept hosts given with a scheme or trailing slash."""
        for scheme in ("https://", "http://"):
            if value.startswith(scheme):
                logger.debug("Stripping scheme from ACP host %s", value)
                value = value[len(scheme) :]
        return value.rstrip("/")

    @field_validator("base_path")
    @classmethod
    def _normalize_base_path(cls, value: str) -> str:
        value = value.strip("/")
        return f"/{value}" if value else ""

    @property
    def base_url(self) -> str:
        """Scheme, host and base path requests are resolved against."""
        return f"https://{self.host}{self.base_path}"


def get_settings(**overrides: object) -> ACPSettings:
    """Build settings from the environment with explicit overrides applied.

    ``None`` overrides are dropped so that unset keyword arguments fall back
    to the environment or the defaults.
    """
    explicit = {k: v for k, v in overrides.items() if v is not None}
    return ACPSettings(**explicit)  # type: ignore[arg-type]
