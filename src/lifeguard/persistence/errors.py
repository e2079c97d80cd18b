"""Custom persistence exceptions."""

from __future__ import annotations


class JournalError(RuntimeError):
    """Raised when the teardown journal cannot be read or written."""


__all__ = ["JournalError"]
