from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy.orm import Session

from skill_ledger.config import get_settings
from skill_ledger.db.base import Base
from skill_ledger.db.session import dispose_engine, get_engine
from skill_ledger.ledger import SkillLedger
from skill_ledger.telemetry import clear_listeners


class ManualClock:
    """Height stays wherever the test puts it."""

    def __init__(self, height: int = 10) -> None:
        self.height = height

    def current_height(self, session: Session) -> int:
        return self.height

    def advance(self, session: Session) -> int:
        return self.height


@pytest.fixture()
def ledger_db(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    db_path = tmp_path / "ledger.db"
    monkeypatch.setenv("SKILL_LEDGER_DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setenv("SKILL_LEDGER_CLOCK_MODE", "block")
    get_settings.cache_clear()
    dispose_engine()
    engine = get_engine()
    Base.metadata.create_all(engine)
    yield db_path
    clear_listeners()
    dispose_engine()
    get_settings.cache_clear()


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def service(ledger_db: Path, clock: ManualClock) -> SkillLedger:
    return SkillLedger(clock=clock)
