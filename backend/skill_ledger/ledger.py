"""Ledger facade binding caller identity and height to each operation.

Each public method runs as one transaction: the height is read once, every
precondition is checked before the first write, and any ``LedgerError``
rolls the whole operation back.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Callable, ContextManager, Iterator, Optional, Tuple

from sqlalchemy.orm import Session

from .access_control import AccessControl, access_control
from .clock import LedgerClock, OperationContext, build_clock
from .config import get_settings
from .db.session import session_scope
from .errors import LedgerError
from .records import AccessGrant, Goal, Skill, UserProfile
from .repositories import access_grants, goals, skills, users
from .repositories.audit import DEFAULT_AUDIT_LIMIT, recent_events
from .telemetry import LedgerEvent, emit_event

logger = logging.getLogger(__name__)

SessionFactory = Callable[..., ContextManager[Session]]


class SkillLedger:
    def __init__(
        self,
        clock: Optional[LedgerClock] = None,
        session_factory: SessionFactory = session_scope,
        access: AccessControl = access_control,
    ) -> None:
        self._clock_override = clock
        self._session_factory = session_factory
        self._access = access

    @property
    def clock(self) -> LedgerClock:
        if self._clock_override is not None:
            return self._clock_override
        return build_clock(get_settings())

    @contextmanager
    def _operation(self, name: str, caller: str) -> Iterator[Tuple[Session, OperationContext]]:
        try:
            with self._session_factory() as session:
                height = self.clock.advance(session)
                yield session, OperationContext(caller=caller, height=height)
        except LedgerError as exc:
            logger.info("Rejected %s for %s: %s", name, caller, exc.code)
            emit_event(LedgerEvent.OPERATION_REJECTED, caller, operation=name, error=exc.code)
            raise
        except Exception:
            logger.exception("Unexpected failure in %s for %s", name, caller)
            raise

    @contextmanager
    def _read(self) -> Iterator[Session]:
        with self._session_factory(commit=False) as session:
            yield session

    # Mutations

    def register(self, caller: str) -> UserProfile:
        with self._operation("register", caller) as (session, context):
            profile = users.register(session, context)
        emit_event(LedgerEvent.USER_REGISTERED, caller, height=context.height)
        return profile

    def add_skill(
        self,
        caller: str,
        name: str,
        category: str,
        description: str,
        visibility: Any,
        initial_proficiency: Any,
    ) -> int:
        with self._operation("add_skill", caller) as (session, context):
            skill = skills.create(
                session,
                context,
                name=name,
                category=category,
                description=description,
                visibility=visibility,
                initial_proficiency=initial_proficiency,
            )
        emit_event(
            LedgerEvent.SKILL_ADDED,
            caller,
            height=context.height,
            skill_id=skill.skill_id,
            visibility=skill.visibility,
        )
        return skill.skill_id

    def update_progress(
        self,
        caller: str,
        skill_id: int,
        new_proficiency: Any,
        evidence: str = "",
        milestone: str = "",
    ) -> int:
        with self._operation("update_progress", caller) as (session, context):
            update = skills.update_progress(
                session,
                context,
                skill_id,
                new_proficiency=new_proficiency,
                evidence=evidence,
                milestone=milestone,
            )
        emit_event(
            LedgerEvent.PROGRESS_RECORDED,
            caller,
            height=context.height,
            skill_id=skill_id,
            update_id=update.update_id,
            proficiency=update.proficiency,
        )
        return update.update_id

    def set_visibility(self, caller: str, skill_id: int, visibility: Any) -> bool:
        with self._operation("set_visibility", caller) as (session, context):
            skill = skills.set_visibility(session, context, skill_id, visibility)
        emit_event(
            LedgerEvent.VISIBILITY_CHANGED,
            caller,
            height=context.height,
            skill_id=skill_id,
            visibility=skill.visibility,
        )
        return True

    def grant_access(self, caller: str, viewer: str) -> AccessGrant:
        with self._operation("grant_access", caller) as (session, context):
            grant = access_grants.grant(session, context, viewer)
        emit_event(LedgerEvent.ACCESS_GRANTED, caller, height=context.height, viewer=viewer)
        return grant

    def revoke_access(self, caller: str, viewer: str) -> AccessGrant:
        with self._operation("revoke_access", caller) as (session, context):
            grant = access_grants.revoke(session, context, viewer)
        emit_event(LedgerEvent.ACCESS_REVOKED, caller, height=context.height, viewer=viewer)
        return grant

    def set_goal(
        self,
        caller: str,
        skill_id: int,
        target_proficiency: Any,
        target_date: Any,
        description: str = "",
    ) -> int:
        with self._operation("set_goal", caller) as (session, context):
            goal = goals.set_goal(
                session,
                context,
                skill_id,
                target_proficiency=target_proficiency,
                target_date=target_date,
                description=description,
            )
        emit_event(
            LedgerEvent.GOAL_SET,
            caller,
            height=context.height,
            skill_id=skill_id,
            goal_id=goal.goal_id,
            target_date=goal.target_date,
        )
        return goal.goal_id

    def complete_goal(self, caller: str, skill_id: int, goal_id: int) -> Goal:
        with self._operation("complete_goal", caller) as (session, context):
            goal = goals.complete(session, context, skill_id, goal_id)
        emit_event(LedgerEvent.GOAL_COMPLETED, caller, height=context.height, skill_id=skill_id, goal_id=goal_id)
        return goal

    # Reads

    def current_height(self) -> int:
        with self._read() as session:
            return self.clock.current_height(session)

    def get_user_info(self, user: str) -> UserProfile:
        with self._read() as session:
            return users.get_or_default(session, user)

    def get_skill(self, requester: Optional[str], owner: str, skill_id: int) -> Skill | None:
        with self._read() as session:
            return self._access.authorize(session, requester, owner, skill_id)

    def get_skill_updates(self, requester: Optional[str], owner: str, skill_id: int) -> bool | None:
        """Existence indicator for the skill's progress history, ``None`` when hidden."""
        with self._read() as session:
            if self._access.authorize(session, requester, owner, skill_id) is None:
                return None
            return skills.has_updates(session, owner, skill_id)

    def get_skill_goals(self, requester: Optional[str], owner: str, skill_id: int) -> bool | None:
        """Existence indicator for the skill's goals, ``None`` when hidden."""
        with self._read() as session:
            if self._access.authorize(session, requester, owner, skill_id) is None:
                return None
            return goals.has_goals(session, owner, skill_id)

    def can_view(self, requester: Optional[str], owner: str, skill_id: int) -> bool:
        with self._read() as session:
            return self._access.can_view(session, requester, owner, skill_id)

    def has_shared_access(self, owner: str, viewer: str) -> AccessGrant:
        with self._read() as session:
            return access_grants.get_or_default(session, owner, viewer)

    def recent_audit_events(self, caller: str, limit: int = DEFAULT_AUDIT_LIMIT) -> list[dict[str, Any]]:
        with self._read() as session:
            return [
                {
                    "event_type": event.event_type,
                    "height": event.height,
                    "skill_id": event.skill_id,
                    "payload": dict(event.payload or {}),
                    "created_at": event.created_at,
                }
                for event in recent_events(session, caller, limit)
            ]


ledger = SkillLedger()

__all__ = ["SkillLedger", "ledger"]
