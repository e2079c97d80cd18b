from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine

from lifeguard.diagnostics import CompositeSink, LoggingSink
from lifeguard.domain import (
    AttemptRecord,
    ErrorCategory,
    OperationKind,
    ResourceRef,
    VerdictKind,
    VerdictRecord,
)
from lifeguard.persistence import InMemoryJournal, TeardownJournal
from lifeguard.persistence.sqlite import MIGRATIONS, apply_migrations, create_sqlite_journal

REF = ResourceRef.resource_group("t-rg-journal")
BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _attempt(operation_id: str, attempt: int, category: ErrorCategory) -> AttemptRecord:
    return AttemptRecord(
        operation_id=operation_id,
        ref=REF,
        attempt=attempt,
        elapsed=3.0 * (attempt - 1),
        category=category,
        detail="asynchronous operation has not completed",
        recorded_at=BASE_TIME + timedelta(seconds=3 * attempt),
    )


def _verdict(operation_id: str, verdict: VerdictKind, offset: int) -> VerdictRecord:
    return VerdictRecord(
        operation_id=operation_id,
        ref=REF,
        operation=OperationKind.TEARDOWN,
        verdict=verdict,
        attempts=2,
        elapsed=3.0,
        recorded_at=BASE_TIME + timedelta(minutes=offset),
    )


async def _exercise(journal: TeardownJournal) -> tuple:
    await journal.record_attempt(_attempt("op-a", 2, ErrorCategory.NOT_FOUND))
    await journal.record_attempt(_attempt("op-a", 1, ErrorCategory.OPERATION_IN_PROGRESS))
    await journal.record_attempt(_attempt("op-b", 1, ErrorCategory.FATAL))
    await journal.record_verdict(_verdict("op-a", VerdictKind.ALREADY_ABSENT, 1))
    await journal.record_verdict(_verdict("op-b", VerdictKind.FAILED, 2))
    attempts = await journal.list_attempts("op-a")
    latest = await journal.list_verdicts(limit=1)
    everything = await journal.list_verdicts()
    return attempts, latest, everything


def test_in_memory_journal_orders_records() -> None:
    attempts, latest, everything = asyncio.run(_exercise(InMemoryJournal()))

    assert [record.attempt for record in attempts] == [1, 2]
    assert [record.operation_id for record in latest] == ["op-b"]
    assert [record.operation_id for record in everything] == ["op-b", "op-a"]


def test_sqlite_journal_round_trips_records(tmp_path: Path) -> None:
    journal = create_sqlite_journal(f"sqlite+aiosqlite:///{tmp_path / 'journal.db'}")

    async def _run() -> tuple:
        try:
            return await _exercise(journal)
        finally:
            await journal.dispose()

    attempts, latest, everything = asyncio.run(_run())

    assert attempts == [
        _attempt("op-a", 1, ErrorCategory.OPERATION_IN_PROGRESS),
        _attempt("op-a", 2, ErrorCategory.NOT_FOUND),
    ]
    assert latest == [_verdict("op-b", VerdictKind.FAILED, 2)]
    assert [record.verdict for record in everything] == [
        VerdictKind.FAILED,
        VerdictKind.ALREADY_ABSENT,
    ]


def test_logging_sink_levels(caplog: pytest.LogCaptureFixture) -> None:
    sink = CompositeSink([LoggingSink(logging.getLogger("lifeguard.test"))])

    with caplog.at_level(logging.INFO, logger="lifeguard.test"):
        asyncio.run(sink.record_attempt(_attempt("op-c", 1, ErrorCategory.OPERATION_IN_PROGRESS)))
        asyncio.run(sink.record_verdict(_verdict("op-c", VerdictKind.TIMED_OUT, 3)))

    levels = [record.levelno for record in caplog.records]
    assert levels == [logging.INFO, logging.WARNING]
    assert "operation_in_progress" in caplog.records[0].getMessage()
    assert caplog.records[1].verdict == "timed_out"


def test_sqlite_journal_keeps_reruns_of_one_operation(tmp_path: Path) -> None:
    journal = create_sqlite_journal(f"sqlite+aiosqlite:///{tmp_path / 'rerun.db'}")

    async def _run() -> Sequence[VerdictRecord]:
        try:
            await journal.record_verdict(_verdict("rerun", VerdictKind.TIMED_OUT, 1))
            await journal.record_verdict(_verdict("rerun", VerdictKind.ALREADY_ABSENT, 2))
            return await journal.list_verdicts()
        finally:
            await journal.dispose()

    verdicts = asyncio.run(_run())

    assert [record.verdict for record in verdicts] == [
        VerdictKind.ALREADY_ABSENT,
        VerdictKind.TIMED_OUT,
    ]


def test_migrations_apply_in_order_once(tmp_path: Path) -> None:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'schema.db'}")

    async def _run() -> tuple:
        try:
            first = await apply_migrations(engine)
            second = await apply_migrations(engine)
            async with engine.connect() as conn:
                result = await conn.execute(
                    text("SELECT version FROM lifeguard_schema_migrations ORDER BY version")
                )
                versions = [row[0] for row in result]
            return first, second, versions
        finally:
            await engine.dispose()

    first, second, versions = asyncio.run(_run())

    latest = MIGRATIONS[-1][0]
    assert first == second == latest
    assert versions == [version for version, _ in MIGRATIONS]
