"""SQLite persistence implementation."""

from .journal import SQLiteJournal, create_sqlite_journal
from .migrations import MIGRATIONS, apply_migrations

__all__ = ["MIGRATIONS", "SQLiteJournal", "apply_migrations", "create_sqlite_journal"]
