"""Host clocks supplying the logical "current height" for each operation."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from .config import Settings
from .db.models import LedgerClockModel
from .db.session import insert_missing

CLOCK_ROW_ID = 1


class LedgerClock(Protocol):
    """Clocks are read inside the operation's transaction."""

    def current_height(self, session: Session) -> int:  # pragma: no cover - protocol definition
        ...

    def advance(self, session: Session) -> int:  # pragma: no cover - protocol definition
        ...


class BlockHeightClock:
    """Persisted height that moves forward by one for every mutating operation."""

    def current_height(self, session: Session) -> int:
        row = session.get(LedgerClockModel, CLOCK_ROW_ID)
        return row.height if row else 0

    def advance(self, session: Session) -> int:
        insert_missing(session, LedgerClockModel, id=CLOCK_ROW_ID, height=0, advanced_at=datetime.now(timezone.utc))
        stmt = select(LedgerClockModel).where(LedgerClockModel.id == CLOCK_ROW_ID).with_for_update()
        row = session.execute(stmt).scalar_one()
        row.height += 1
        row.advanced_at = datetime.now(timezone.utc)
        session.flush()
        return row.height


class EpochClock:
    """Integer unix seconds; mutating operations do not move it."""

    def __init__(self, now: Callable[[], float] = time.time) -> None:
        self._now = now

    def current_height(self, session: Session) -> int:
        return int(self._now())

    def advance(self, session: Session) -> int:
        return self.current_height(session)


@dataclass(frozen=True)
class OperationContext:
    """Identity and height bound once per operation by the boundary layer."""

    caller: str
    height: int


def build_clock(settings: Settings) -> LedgerClock:
    if settings.clock_mode == "epoch":
        return EpochClock()
    return BlockHeightClock()


__all__ = [
    "BlockHeightClock",
    "EpochClock",
    "LedgerClock",
    "OperationContext",
    "build_clock",
]
