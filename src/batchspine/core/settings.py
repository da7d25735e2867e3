"""Runtime settings for batchspine.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    The only knobs the building blocks need are logging and how patiently a
    blocking launcher waits for an asynchronous job to finish.

    - **Pydantic validation:** Type-checked at startup, not runtime
    - **Environment-driven:** Reads ``BATCHSPINE_*`` env vars and .env files
    - **Sensible defaults:** Works out of the box for development

Examples:
    >>> import os
    >>> os.environ["BATCHSPINE_LAUNCHER_POLL_INTERVAL"] = "0.1"
    >>> BatchSettings().launcher_poll_interval
    0.1

Tags:
    settings, configuration, pydantic, environment, batchspine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BatchSettings(BaseSettings):
    """Settings shared by the launcher, job and logging setup.

    Fields
    ──────
    log_level              : Structlog log level
    log_json               : JSON output (None = auto-detect from tty)
    service_name           : ``service.name`` stamped on every log line
    launcher_poll_interval : Seconds between status polls of a blocking launcher
    launcher_timeout       : Max seconds a blocking launcher waits (None = forever)
    """

    model_config = SettingsConfigDict(
        env_prefix="BATCHSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool | None = Field(default=None, description="Force JSON (True) or console (False) output")
    service_name: str = Field(default="batchspine", description="Service name for log metadata")

    # ── Launcher ─────────────────────────────────────────────────
    launcher_poll_interval: float = Field(
        default=0.5,
        gt=0,
        description="Seconds between job status polls while blocking on an async launch",
    )
    launcher_timeout: float | None = Field(
        default=None,
        gt=0,
        description="Max seconds to wait for a terminal job status",
    )


@lru_cache(maxsize=1)
def get_settings() -> BatchSettings:
    """Return the process-wide settings (cached; ``get_settings.cache_clear()`` to reload)."""
    return BatchSettings()
