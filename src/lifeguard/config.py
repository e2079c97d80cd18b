"""Lightweight application configuration loader."""

from __future__ import annotations

import os
from dataclasses import dataclass

from lifeguard.domain import WaitBudget
from lifeguard.errors import ConfigurationError


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {"0", "false", "no"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        msg = f"{name} must be a number, got {raw!r}"
        raise ConfigurationError(msg) from exc


def _env_int(name: str) -> int | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as exc:
        msg = f"{name} must be an integer, got {raw!r}"
        raise ConfigurationError(msg) from exc


@dataclass(frozen=True)
class AppSettings:
    """Immutable configuration sourced from environment variables."""

    environment: str = "development"
    journal_url: str = "sqlite+aiosqlite:///lifeguard.db"
    control_plane_url: str = "https://management.azure.com"
    subscription_id: str | None = None
    access_token: str | None = None
    api_version: str = "2021-04-01"
    teardown_timeout_seconds: float = 1200.0
    poll_interval_seconds: float = 3.0
    request_timeout_seconds: float = 30.0
    max_concurrent: int | None = None
    retry_transport_errors: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> AppSettings:
        return cls(
            environment=os.getenv("LIFEGUARD_ENV", cls.environment),
            journal_url=os.getenv("LIFEGUARD_JOURNAL_URL", cls.journal_url),
            control_plane_url=os.getenv("LIFEGUARD_CONTROL_PLANE_URL", cls.control_plane_url),
            subscription_id=os.getenv("AZURE_SUBSCRIPTION_ID") or None,
            access_token=os.getenv("LIFEGUARD_ACCESS_TOKEN") or None,
            api_version=os.getenv("LIFEGUARD_API_VERSION", cls.api_version),
            teardown_timeout_seconds=_env_float(
                "LIFEGUARD_TIMEOUT_SECONDS", cls.teardown_timeout_seconds
            ),
            poll_interval_seconds=_env_float(
                "LIFEGUARD_POLL_INTERVAL_SECONDS", cls.poll_interval_seconds
            ),
            request_timeout_seconds=_env_float(
                "LIFEGUARD_REQUEST_TIMEOUT_SECONDS", cls.request_timeout_seconds
            ),
            max_concurrent=_env_int("LIFEGUARD_MAX_CONCURRENT"),
            retry_transport_errors=_env_bool("LIFEGUARD_RETRY_TRANSPORT_ERRORS", False),
            log_level=os.getenv("LIFEGUARD_LOG_LEVEL", cls.log_level).upper(),
        )

    def default_budget(self) -> WaitBudget:
        return WaitBudget(
            timeout=self.teardown_timeout_seconds,
            interval=self.poll_interval_seconds,
        )


__all__ = ["AppSettings"]
