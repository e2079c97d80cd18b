"""Exceptions raised across the lifeguard package."""

from __future__ import annotations


class LifeguardError(RuntimeError):
    """Base class for lifeguard failures."""


class ConfigurationError(LifeguardError):
    """Raised when required settings are missing or invalid."""


class RemoteCallError(LifeguardError):
    """Error reported by a remote control plane.

    ``code`` is the control plane's machine-readable error code (for ARM,
    ``error.code`` in the response body) and ``status_code`` the HTTP status
    when the call went over HTTP.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    def __str__(self) -> str:
        parts = [self.message]
        if self.code:
            parts.append(f"code={self.code}")
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        return " ".join(parts)


__all__ = ["ConfigurationError", "LifeguardError", "RemoteCallError"]
