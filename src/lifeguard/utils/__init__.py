"""Shared utilities."""

from .time import ensure_utc, format_elapsed, utc_now

__all__ = ["ensure_utc", "format_elapsed", "utc_now"]
