"""Database utilities for the skill ledger."""

from .session import (
    LedgerDatabase,
    dispose_engine,
    get_database,
    get_engine,
    get_session_factory,
    insert_missing,
    session_scope,
)

__all__ = [
    "LedgerDatabase",
    "dispose_engine",
    "get_database",
    "get_engine",
    "get_session_factory",
    "insert_missing",
    "session_scope",
]
