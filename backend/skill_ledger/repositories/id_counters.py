"""Identifier allocator issuing 1, 2, 3, ... per scope.

A scope is either a user (skill ids) or a (user, skill) pair (update and goal
ids). Allocation always consumes the next value; there is no release call.
"""

from __future__ import annotations

from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..db.models import IdCounterModel
from ..db.session import insert_missing

USER_SCOPE = 0


class CounterKind(str, Enum):
    SKILL = "skill"
    UPDATE = "update"
    GOAL = "goal"


class IdAllocator:
    def next_id(self, session: Session, kind: CounterKind, owner: str, skill_id: int = USER_SCOPE) -> int:
        insert_missing(session, IdCounterModel, kind=kind.value, owner=owner, skill_id=skill_id, last_id=0)
        stmt = (
            select(IdCounterModel)
            .where(
                IdCounterModel.kind == kind.value,
                IdCounterModel.owner == owner,
                IdCounterModel.skill_id == skill_id,
            )
            .with_for_update()
        )
        counter = session.execute(stmt).scalar_one()
        counter.last_id += 1
        session.flush()
        return counter.last_id

    def last_id(self, session: Session, kind: CounterKind, owner: str, skill_id: int = USER_SCOPE) -> int:
        counter = session.get(IdCounterModel, (kind.value, owner, skill_id))
        return counter.last_id if counter else 0


id_allocator = IdAllocator()

__all__ = ["CounterKind", "IdAllocator", "USER_SCOPE", "id_allocator"]
