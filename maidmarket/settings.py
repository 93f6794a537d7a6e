"""Centralized configuration management for the maidmarket client."""

from __future__ import annotations

import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, PrivateAttr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load a local .env before the settings singleton is built so CLI runs and
# tests see the same values.
load_dotenv()

# -- Application-wide constants -------------------------------------------------

DEFAULT_API_URL = "http://localhost:8787"
DEFAULT_MUTATION_TIMEOUT_SECONDS = 15.0
DEFAULT_REQUEST_TIMEOUT_SECONDS = 10.0
DEFAULT_QUERY_STALE_SECONDS = 30.0
DEFAULT_LOG_LEVEL = "INFO"


def _normalize_base_url(url: str) -> str:
    """Return ``url`` stripped of whitespace and trailing slashes."""

    return url.strip().rstrip("/")


class AppSettings(BaseSettings):
    """Typed configuration surface built on top of ``pydantic-settings``.

    Values come from the process environment or a ``.env`` file. Helper
    properties expose normalised forms (base URL, numeric log level) so the
    API client and CLI do not repeat parsing logic.
    """

    _explicit_api_url: bool = PrivateAttr(default=False)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    def __init__(self, **values: object) -> None:
        """Record whether the API URL was supplied explicitly."""

        normalized_keys = {str(key).lower() for key in values}
        super().__init__(**values)
        self._explicit_api_url = (
            "api_url" in normalized_keys or "maidmarket_api_url" in normalized_keys
        )
        api_env = os.getenv("MAIDMARKET_API_URL")
        if api_env is not None and api_env.strip():
            self._explicit_api_url = True

    api_url: str = Field(
        default=DEFAULT_API_URL,
        alias="MAIDMARKET_API_URL",
        description="Base URL of the marketplace REST API.",
    )
    api_token: str | None = Field(
        default=None,
        alias="MAIDMARKET_API_TOKEN",
        description="Bearer token attached to every API request when present.",
    )
    mutation_timeout_seconds: float = Field(
        default=DEFAULT_MUTATION_TIMEOUT_SECONDS,
        alias="MUTATION_TIMEOUT_SECONDS",
        gt=0,
        description=(
            "Upper bound for a single add/remove favorite call. A request that"
            " exceeds it is reported as a failed toggle and rolled back."
        ),
    )
    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT_SECONDS,
        alias="REQUEST_TIMEOUT_SECONDS",
        gt=0,
        description="Transport-level timeout handed to the HTTP client.",
    )
    query_stale_seconds: float = Field(
        default=DEFAULT_QUERY_STALE_SECONDS,
        alias="QUERY_STALE_SECONDS",
        ge=0,
        description="How long cached query results are served without refetching.",
    )
    log_level: str = Field(
        default=DEFAULT_LOG_LEVEL,
        alias="LOG_LEVEL",
        description="Root logging level (e.g. INFO, DEBUG, WARNING).",
    )

    @property
    def base_url(self) -> str:
        """Return the API URL without trailing slashes."""

        return _normalize_base_url(self.api_url)

    @property
    def log_level_numeric(self) -> int:
        """Translate ``log_level`` into the numeric constant expected by logging."""

        candidate = logging.getLevelName(self.log_level.upper())
        if isinstance(candidate, int):
            return candidate
        return logging.INFO

    def optional_config_warnings(self) -> list[str]:
        """Return human-readable warnings for unset optional configuration."""

        warnings: list[str] = []

        if not self._explicit_api_url and self.api_url == DEFAULT_API_URL:
            warnings.append(
                "MAIDMARKET_API_URL is not set - requests go to the local "
                "development API at " + DEFAULT_API_URL
            )

        if not self.api_token:
            warnings.append(
                "MAIDMARKET_API_TOKEN is not set - favorites endpoints will "
                "reject unauthenticated requests"
            )

        return warnings


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached instance of :class:`AppSettings`."""

    return AppSettings()


__all__ = [
    "AppSettings",
    "DEFAULT_API_URL",
    "DEFAULT_LOG_LEVEL",
    "DEFAULT_MUTATION_TIMEOUT_SECONDS",
    "DEFAULT_QUERY_STALE_SECONDS",
    "DEFAULT_REQUEST_TIMEOUT_SECONDS",
    "get_settings",
]
