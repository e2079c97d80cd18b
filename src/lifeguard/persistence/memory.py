"""In-memory journal used by tests and ephemeral runs."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass, field

from lifeguard.domain import AttemptRecord, VerdictRecord

from .interfaces import TeardownJournal


@dataclass
class InMemoryJournal(TeardownJournal):
    _attempts: dict[str, list[AttemptRecord]] = field(
        default_factory=lambda: defaultdict(list)
    )
    _verdicts: list[VerdictRecord] = field(default_factory=list)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    async def record_attempt(self, record: AttemptRecord) -> None:
        async with self._lock:
            self._attempts[record.operation_id].append(record)

    async def record_verdict(self, record: VerdictRecord) -> None:
        async with self._lock:
            self._verdicts.append(record)

    async def list_verdicts(self, *, limit: int = 20) -> Sequence[VerdictRecord]:
        async with self._lock:
            return list(reversed(self._verdicts))[:limit]

    async def list_attempts(self, operation_id: str) -> Sequence[AttemptRecord]:
        async with self._lock:
            return sorted(self._attempts.get(operation_id, []), key=lambda item: item.attempt)


__all__ = ["InMemoryJournal"]
