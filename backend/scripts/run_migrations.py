"""Bring the ledger schema to a target revision during deploys.

The run resolves the database URL, waits until the server answers, upgrades,
and finally checks that every ledger table exists before the service is
allowed to start. ``--sql`` prints the upgrade DDL and touches nothing.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Optional

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from skill_ledger.db.health import StoreHealth, check_ledger_store

LOGGER = logging.getLogger("skill_ledger.migrations")
BACKEND_ROOT = Path(__file__).resolve().parent.parent
URL_PLACEHOLDER = "%(SKILL_LEDGER_DATABASE_URL)s"


@dataclass(frozen=True)
class MigrationOptions:
    revision: str = "head"
    timeout: int = 60
    poll_interval: float = 3.0
    config_path: Path = BACKEND_ROOT / "alembic.ini"
    sql: bool = False

    @classmethod
    def from_env(cls) -> "MigrationOptions":
        return cls(
            revision=os.getenv("SKILL_LEDGER_MIGRATION_REVISION", cls.revision),
            timeout=int(os.getenv("SKILL_LEDGER_MIGRATION_TIMEOUT", str(cls.timeout))),
            poll_interval=float(os.getenv("SKILL_LEDGER_MIGRATION_POLL_INTERVAL", str(cls.poll_interval))),
        )


def parse_args(argv: Optional[list[str]] = None) -> MigrationOptions:
    defaults = MigrationOptions.from_env()
    parser = argparse.ArgumentParser(description="Upgrade the skill ledger schema.")
    parser.add_argument("--revision", default=defaults.revision, help="Target revision (default: %(default)s).")
    parser.add_argument(
        "--timeout",
        type=int,
        default=defaults.timeout,
        help="Seconds to wait for the database (default: %(default)s).",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=defaults.poll_interval,
        help="Seconds between connection attempts (default: %(default)s).",
    )
    parser.add_argument("--config", type=Path, default=defaults.config_path, help="alembic.ini to load.")
    parser.add_argument("--sql", action="store_true", help="Print the upgrade DDL instead of applying it.")
    args = parser.parse_args(argv)
    return replace(
        defaults,
        revision=args.revision,
        timeout=args.timeout,
        poll_interval=args.poll_interval,
        config_path=args.config,
        sql=args.sql,
    )


def get_alembic_config(config_path: Path) -> Config:
    config = Config(str(config_path))
    config.set_main_option("script_location", str(BACKEND_ROOT / "alembic"))
    return config


def resolve_database_url(config: Config) -> str:
    """Replace the ini placeholder with ``SKILL_LEDGER_DATABASE_URL``."""
    configured = config.get_main_option("sqlalchemy.url")
    if configured and configured != URL_PLACEHOLDER:
        return configured
    url = os.getenv("SKILL_LEDGER_DATABASE_URL")
    if not url:
        raise RuntimeError("SKILL_LEDGER_DATABASE_URL must be set before running migrations.")
    config.set_main_option("sqlalchemy.url", url)
    return url


def wait_for_database(database_url: str, *, timeout: int, poll_interval: float) -> int:
    """Return the number of attempts it took for ``SELECT 1`` to succeed."""
    engine = create_engine(database_url, future=True, pool_pre_ping=True)
    deadline = time.monotonic() + timeout
    attempts = 0
    last_error: Optional[Exception] = None
    try:
        while attempts == 0 or time.monotonic() < deadline:
            attempts += 1
            try:
                with engine.connect() as connection:
                    connection.execute(text("SELECT 1"))
            except OperationalError as exc:
                last_error = exc
                LOGGER.warning("Ledger database unavailable (attempt %d): %s", attempts, exc)
            except SQLAlchemyError as exc:
                raise RuntimeError(f"Ledger database rejected the readiness check: {exc}") from exc
            else:
                LOGGER.info("Ledger database reachable after %d attempt(s).", attempts)
                return attempts
            time.sleep(poll_interval)
    finally:
        engine.dispose()
    raise RuntimeError(f"Ledger database not reachable within {timeout}s.") from last_error


def verify_ledger_schema(database_url: str) -> StoreHealth:
    engine = create_engine(database_url, future=True)
    try:
        report = check_ledger_store(engine)
    finally:
        engine.dispose()
    if not report.ready:
        raise RuntimeError(f"Upgrade finished but ledger tables are missing: {', '.join(report.missing_tables)}")
    return report


def run_migrations(options: MigrationOptions, config: Optional[Config] = None) -> Optional[StoreHealth]:
    config = config or get_alembic_config(options.config_path)
    database_url = resolve_database_url(config)
    if options.sql:
        LOGGER.info("Rendering ledger DDL up to %s", options.revision)
        command.upgrade(config, options.revision, sql=True)
        return None
    wait_for_database(database_url, timeout=options.timeout, poll_interval=options.poll_interval)
    LOGGER.info("Upgrading ledger schema to %s", options.revision)
    command.upgrade(config, options.revision)
    report = verify_ledger_schema(database_url)
    LOGGER.info("Ledger schema ready (stored height %s).", report.stored_height)
    return report


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=os.getenv("SKILL_LEDGER_MIGRATION_LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    options = parse_args(argv)
    try:
        run_migrations(options)
    except Exception as exc:  # noqa: BLE001
        LOGGER.exception("Ledger migration failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
