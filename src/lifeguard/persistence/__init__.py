"""Persistence layer exports."""

from .errors import JournalError
from .interfaces import TeardownJournal
from .memory import InMemoryJournal

__all__ = ["InMemoryJournal", "JournalError", "TeardownJournal"]
