"""Readiness report for the ledger store behind ``/healthz/database``."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import func, inspect, select
from sqlalchemy.engine import Engine

from .models import IdCounterModel, LedgerClockModel

LEDGER_TABLES = (
    "user_profiles",
    "skills",
    "progress_updates",
    "skill_goals",
    "access_grants",
    "id_counters",
    "ledger_clock",
    "ledger_audit_events",
)


@dataclass
class StoreHealth:
    dialect: str
    pool: str
    missing_tables: List[str] = field(default_factory=list)
    stored_height: Optional[int] = None
    counter_rows: Optional[int] = None

    @property
    def ready(self) -> bool:
        return not self.missing_tables

    def as_dict(self) -> Dict[str, Any]:
        return {"ready": self.ready, **asdict(self)}


def check_ledger_store(engine: Engine) -> StoreHealth:
    """Inspect the schema, then read the persisted height and allocator row count."""
    present = set(inspect(engine).get_table_names())
    report = StoreHealth(
        dialect=engine.dialect.name,
        pool=engine.pool.status(),
        missing_tables=[name for name in LEDGER_TABLES if name not in present],
    )
    with engine.connect() as connection:
        if "ledger_clock" in present:
            report.stored_height = connection.execute(select(func.max(LedgerClockModel.height))).scalar() or 0
        if "id_counters" in present:
            report.counter_rows = connection.execute(select(func.count()).select_from(IdCounterModel)).scalar_one()
    return report


__all__ = ["LEDGER_TABLES", "StoreHealth", "check_ledger_store"]
