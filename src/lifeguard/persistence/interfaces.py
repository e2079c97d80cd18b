"""Journal abstractions for recorded confirmation runs."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from lifeguard.diagnostics import DiagnosticSink
from lifeguard.domain import AttemptRecord, VerdictRecord


@runtime_checkable
class TeardownJournal(DiagnosticSink, Protocol):
    """Diagnostic sink that can also be queried afterwards."""

    async def list_verdicts(self, *, limit: int = 20) -> Sequence[VerdictRecord]:
        """Most recent verdicts first."""
        ...

    async def list_attempts(self, operation_id: str) -> Sequence[AttemptRecord]:
        """Attempts of one operation in attempt order."""
        ...


__all__ = ["TeardownJournal"]
