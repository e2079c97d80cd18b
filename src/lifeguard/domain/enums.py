"""Enumerations shared by the lifeguard domain layer."""

from __future__ import annotations

from enum import StrEnum


class ErrorCategory(StrEnum):
    """Classification of a single remote-call error."""

    NOT_FOUND = "not_found"
    OPERATION_IN_PROGRESS = "operation_in_progress"
    FATAL = "fatal"
    NONE = "none"


class VerdictKind(StrEnum):
    """Terminal outcome of a confirmation loop."""

    COMPLETED = "completed"
    ALREADY_ABSENT = "already_absent"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    CANCELLED = "cancelled"


class TerminalCondition(StrEnum):
    """What the confirmation loop is waiting for."""

    ABSENCE = "absence"
    PRESENCE = "presence"


class OperationKind(StrEnum):
    """Lifecycle operation that produced a verdict."""

    TEARDOWN = "teardown"
    PROVISION = "provision"
