"""Async SQLite implementation of the teardown journal."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from sqlalchemy import Select, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from lifeguard.domain import AttemptRecord, VerdictRecord
from lifeguard.persistence.errors import JournalError
from lifeguard.persistence.interfaces import TeardownJournal

from .migrations import apply_migrations
from .models import AttemptLogRecord, VerdictLogRecord

_migration_lock = asyncio.Lock()
_migrated_urls: set[str] = set()


async def _ensure_migrated(engine: AsyncEngine, database_url: str) -> None:
    async with _migration_lock:
        if database_url in _migrated_urls:
            return
        await apply_migrations(engine)
        _migrated_urls.add(database_url)


class SQLiteJournal(TeardownJournal):
    """Stores attempt and verdict records in SQLite through SQLAlchemy."""

    def __init__(self, engine: AsyncEngine, database_url: str) -> None:
        self._engine = engine
        self._database_url = database_url
        self._session_factory = async_sessionmaker(engine, expire_on_commit=False)

    async def _session(self) -> AsyncSession:
        await _ensure_migrated(self._engine, self._database_url)
        return self._session_factory()

    async def record_attempt(self, record: AttemptRecord) -> None:
        row = AttemptLogRecord(
            operation_id=record.operation_id,
            attempt=record.attempt,
            category=record.category.value,
            elapsed=record.elapsed,
            recorded_at=record.recorded_at,
            payload=record.model_dump(mode="json"),
        )
        await self._write(row)

    async def record_verdict(self, record: VerdictRecord) -> None:
        row = VerdictLogRecord(
            operation_id=record.operation_id,
            operation=record.operation.value,
            verdict=record.verdict.value,
            resource=record.ref.display,
            recorded_at=record.recorded_at,
            payload=record.model_dump(mode="json"),
        )
        await self._write(row)

    async def list_verdicts(self, *, limit: int = 20) -> Sequence[VerdictRecord]:
        stmt: Select[tuple[VerdictLogRecord]] = (
            select(VerdictLogRecord)
            .order_by(VerdictLogRecord.recorded_at.desc(), VerdictLogRecord.id.desc())
            .limit(limit)
        )
        rows = await self._read(stmt)
        return [VerdictRecord.model_validate(row.payload) for row in rows]

    async def list_attempts(self, operation_id: str) -> Sequence[AttemptRecord]:
        stmt: Select[tuple[AttemptLogRecord]] = (
            select(AttemptLogRecord)
            .where(AttemptLogRecord.operation_id == operation_id)
            .order_by(AttemptLogRecord.attempt)
        )
        rows = await self._read(stmt)
        return [AttemptRecord.model_validate(row.payload) for row in rows]

    async def dispose(self) -> None:
        await self._engine.dispose()

    async def _write(self, row: AttemptLogRecord | VerdictLogRecord) -> None:
        session = await self._session()
        try:
            async with session.begin():
                session.add(row)
        except SQLAlchemyError as exc:
            msg = f"Unable to write journal record for {row.operation_id}"
            raise JournalError(msg) from exc
        finally:
            await session.close()

    async def _read(self, stmt: Select) -> Sequence:
        session = await self._session()
        try:
            result = await session.execute(stmt)
            return result.scalars().all()
        except SQLAlchemyError as exc:
            raise JournalError("Unable to read journal records") from exc
        finally:
            await session.close()


def create_sqlite_journal(database_url: str) -> SQLiteJournal:
    # aiosqlite connections are bound to the event loop that opened them.
    engine = create_async_engine(database_url, future=True, poolclass=NullPool)
    return SQLiteJournal(engine, database_url)


__all__ = ["SQLiteJournal", "create_sqlite_journal"]
