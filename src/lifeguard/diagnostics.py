"""Sinks consuming per-attempt and per-verdict diagnostic records."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from lifeguard.domain import AttemptRecord, ErrorCategory, VerdictKind, VerdictRecord
from lifeguard.utils import format_elapsed


@runtime_checkable
class DiagnosticSink(Protocol):
    """Receives structured records emitted by confirmation loops."""

    async def record_attempt(self, record: AttemptRecord) -> None: ...

    async def record_verdict(self, record: VerdictRecord) -> None: ...


class LoggingSink(DiagnosticSink):
    """Writes diagnostic records through stdlib logging."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("lifeguard.diagnostics")

    async def record_attempt(self, record: AttemptRecord) -> None:
        level = logging.WARNING if record.category is ErrorCategory.FATAL else logging.INFO
        self._logger.log(
            level,
            "%s attempt %s after %s: %s",
            record.ref.display,
            record.attempt,
            format_elapsed(record.elapsed),
            record.category.value,
            extra={
                "operation_id": record.operation_id,
                "attempt": record.attempt,
                "elapsed": record.elapsed,
                "category": record.category.value,
            },
        )

    async def record_verdict(self, record: VerdictRecord) -> None:
        level = logging.INFO
        if record.verdict is VerdictKind.FAILED:
            level = logging.ERROR
        elif record.verdict in (VerdictKind.TIMED_OUT, VerdictKind.CANCELLED):
            level = logging.WARNING
        message = "%s %s finished as %s after %s attempt(s) in %s"
        args: list[object] = [
            record.operation.value,
            record.ref.display,
            record.verdict.value,
            record.attempts,
            format_elapsed(record.elapsed),
        ]
        if record.reason:
            message += ": %s"
            args.append(record.reason)
        self._logger.log(
            level,
            message,
            *args,
            extra={"operation_id": record.operation_id, "verdict": record.verdict.value},
        )


class CompositeSink(DiagnosticSink):
    """Fans records out to several sinks in registration order."""

    def __init__(self, sinks: Iterable[DiagnosticSink]) -> None:
        self._sinks = tuple(sinks)

    @property
    def sinks(self) -> tuple[DiagnosticSink, ...]:
        return self._sinks

    async def record_attempt(self, record: AttemptRecord) -> None:
        for sink in self._sinks:
            await sink.record_attempt(record)

    async def record_verdict(self, record: VerdictRecord) -> None:
        for sink in self._sinks:
            await sink.record_verdict(record)


__all__ = ["CompositeSink", "DiagnosticSink", "LoggingSink"]
