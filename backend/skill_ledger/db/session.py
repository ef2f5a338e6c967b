"""Ledger database handle and per-operation transactions."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Generator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, sessionmaker

from ..config import Settings, get_settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:  # type: ignore[no-untyped-def]
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class LedgerDatabase:
    """Engine plus session factory for one configured ledger store."""

    def __init__(self, settings: Settings) -> None:
        if not settings.database_url:
            raise RuntimeError("SKILL_LEDGER_DATABASE_URL must be configured before using the database.")
        self.url = settings.database_url
        options: dict[str, Any] = {"echo": settings.database_echo, "future": True, "pool_pre_ping": True}
        if self.is_sqlite:
            options["connect_args"] = {"check_same_thread": False}
        else:
            options["pool_size"] = settings.database_pool_size
            options["max_overflow"] = settings.database_max_overflow
        self.engine = create_engine(self.url, **options)
        if self.is_sqlite:
            # Skill, update and goal rows reference their owners; SQLite only checks that on request.
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)
        self.sessions = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False, future=True)

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def dispose(self) -> None:
        self.engine.dispose()


_database: Optional[LedgerDatabase] = None


def get_database() -> LedgerDatabase:
    global _database
    if _database is None:
        _database = LedgerDatabase(get_settings())
    return _database


def get_engine() -> Engine:
    return get_database().engine


def get_session_factory() -> sessionmaker[Session]:
    return get_database().sessions


@contextmanager
def session_scope(*, commit: bool = True) -> Generator[Session, None, None]:
    """One transaction per ledger operation; reads pass ``commit=False`` and always roll back."""
    session = get_database().sessions()
    try:
        yield session
        if commit:
            session.commit()
        else:
            session.rollback()
    except Exception:  # noqa: BLE001
        session.rollback()
        raise
    finally:
        session.close()


def insert_missing(session: Session, model: type, **values: Any) -> None:
    """Insert a row unless one with the same primary key already exists.

    Concurrent first writers of a counter or clock row both succeed; the loser's
    insert is a no-op and the following ``SELECT ... FOR UPDATE`` serialises them.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        session.execute(postgresql_insert(model).values(**values).on_conflict_do_nothing())
    elif dialect == "sqlite":
        session.execute(sqlite_insert(model).values(**values).on_conflict_do_nothing())
    else:
        raise RuntimeError(f"Unsupported ledger database dialect: {dialect}")


def dispose_engine() -> None:
    global _database
    if _database is not None:
        _database.dispose()
    _database = None


__all__ = [
    "LedgerDatabase",
    "dispose_engine",
    "get_database",
    "get_engine",
    "get_session_factory",
    "insert_missing",
    "session_scope",
]
