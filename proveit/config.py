"""Runtime configuration: env-driven.

Centralized config using pydantic-settings.  Reads from a .env file and
PROVEIT_* environment variables; CLI options override individual values.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProveitConfig(BaseSettings):
    """Verification settings with environment variable overrides.

    Examples
    --------
    Override via environment::

        export PROVEIT_GATEWAY_URL=https://cloudflare-ipfs.com/ipfs/
        export PROVEIT_MAX_WORKERS=8
        export PROVEIT_TIMEOUT_RETRIES=2

    Or via .env file::

        PROVEIT_LOG_LEVEL=INFO
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PROVEIT_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Content network
    gateway_url: str = "https://ipfs.io/ipfs/"
    user_agent: str = "proveit/1.0.0"
    metadata_timeout_seconds: float = Field(default=25.0, gt=0)
    image_timeout_seconds: float = Field(default=25.0, gt=0)

    # Timeouts are the only retried failure; 0 keeps the fail-fast behaviour.
    timeout_retries: int = Field(default=0, ge=0)
    retry_backoff_seconds: float = Field(default=1.0, ge=0)

    # 1 = strictly sequential
    max_workers: int = Field(default=1, ge=1)

    # Input
    manifest_filename: str = "manifest.json"

    # Observability
    log_level: str = "WARNING"


# Module-level singleton: import as `from proveit.config import config`
config = ProveitConfig()
