"""Protocol for remote error classifiers."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from lifeguard.domain import ErrorCategory


@runtime_checkable
class ErrorClassifier(Protocol):
    """Maps an opaque remote-call error onto an :class:`ErrorCategory`.

    Implementations must be pure: the same error always yields the same
    category and no I/O happens during classification.
    """

    def classify(self, error: BaseException | None) -> ErrorCategory: ...


__all__ = ["ErrorClassifier"]
