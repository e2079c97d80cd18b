"""Versioned schema migrations for the SQLite teardown journal."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from .models import Base

Migration = Callable[[AsyncConnection], Awaitable[None]]

MIGRATIONS_TABLE = "lifeguard_schema_migrations"


async def _create_journal_tables(conn: AsyncConnection) -> None:
    await conn.run_sync(Base.metadata.create_all)


async def _index_verdict_history(conn: AsyncConnection) -> None:
    # ``history`` reads verdicts newest first.
    await conn.execute(
        text(
            "CREATE INDEX IF NOT EXISTS ix_verdict_log_recorded_at "
            "ON verdict_log (recorded_at DESC, id DESC)"
        )
    )


MIGRATIONS: Sequence[tuple[int, Migration]] = (
    (1, _create_journal_tables),
    (2, _index_verdict_history),
)


async def current_version(conn: AsyncConnection) -> int:
    result = await conn.execute(text(f"SELECT MAX(version) FROM {MIGRATIONS_TABLE}"))
    return result.scalar() or 0


async def apply_migrations(engine: AsyncEngine) -> int:
    """Apply every migration newer than the recorded version.

    Returns the schema version after the run.
    """

    async with engine.begin() as conn:
        await conn.execute(
            text(f"CREATE TABLE IF NOT EXISTS {MIGRATIONS_TABLE} (version INTEGER PRIMARY KEY)")
        )
        version = await current_version(conn)
        for target, migration in MIGRATIONS:
            if target <= version:
                continue
            await migration(conn)
            await conn.execute(
                text(f"INSERT INTO {MIGRATIONS_TABLE} (version) VALUES (:version)"),
                {"version": target},
            )
            version = target
    return version


__all__ = ["MIGRATIONS", "Migration", "apply_migrations", "current_version"]
