"""Skill store and the append-only progress ledger beneath it."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..clock import OperationContext
from ..db.models import ProgressUpdateModel, SkillModel
from ..errors import NotFound
from ..records import (
    INITIAL_MILESTONE,
    ProgressUpdate,
    Skill,
    Visibility,
    parse_visibility,
    require_proficiency,
)
from .audit import record_audit
from .id_counters import CounterKind, IdAllocator, id_allocator
from .users import UserRepository, users


class SkillRepository:
    def __init__(self, allocator: IdAllocator = id_allocator, registry: UserRepository = users) -> None:
        self._allocator = allocator
        self._registry = registry

    def get(self, session: Session, owner: str, skill_id: int) -> Skill | None:
        model = session.get(SkillModel, (owner, skill_id))
        return self._to_domain(model) if model else None

    def create(
        self,
        session: Session,
        context: OperationContext,
        *,
        name: str,
        category: str,
        description: str,
        visibility: Any,
        initial_proficiency: Any,
    ) -> Skill:
        self._registry.require_registered(session, context.caller)
        level = parse_visibility(visibility)
        proficiency = require_proficiency(initial_proficiency)

        skill_id = self._allocator.next_id(session, CounterKind.SKILL, context.caller)
        model = SkillModel(
            owner=context.caller,
            skill_id=skill_id,
            name=name,
            category=category,
            description=description,
            created_height=context.height,
            visibility=int(level),
            current_proficiency=proficiency,
            last_updated_height=context.height,
        )
        session.add(model)
        session.flush()
        self._append_update(session, context, skill_id, proficiency, evidence="", milestone=INITIAL_MILESTONE)
        self._registry.increment_skill_count(session, context.caller)
        record_audit(
            session,
            context,
            "skill_added",
            {"visibility": int(level), "initial_proficiency": proficiency},
            skill_id=skill_id,
        )
        return self._to_domain(model)

    def update_progress(
        self,
        session: Session,
        context: OperationContext,
        skill_id: int,
        *,
        new_proficiency: Any,
        evidence: str,
        milestone: str,
    ) -> ProgressUpdate:
        model = self._require_model(session, context.caller, skill_id)
        proficiency = require_proficiency(new_proficiency)

        update = self._append_update(session, context, skill_id, proficiency, evidence=evidence, milestone=milestone)
        model.current_proficiency = proficiency
        model.last_updated_height = context.height
        session.flush()
        record_audit(
            session,
            context,
            "progress_recorded",
            {"update_id": update.update_id, "proficiency": proficiency},
            skill_id=skill_id,
        )
        return update

    def set_visibility(self, session: Session, context: OperationContext, skill_id: int, visibility: Any) -> Skill:
        model = self._require_model(session, context.caller, skill_id)
        level = parse_visibility(visibility)
        previous = Visibility(model.visibility)
        model.visibility = int(level)
        session.flush()
        record_audit(
            session,
            context,
            "visibility_changed",
            {"previous": int(previous), "visibility": int(level)},
            skill_id=skill_id,
        )
        return self._to_domain(model)

    def get_update(self, session: Session, owner: str, skill_id: int, update_id: int) -> ProgressUpdate | None:
        model = session.get(ProgressUpdateModel, (owner, skill_id, update_id))
        return self._update_to_domain(model) if model else None

    def has_updates(self, session: Session, owner: str, skill_id: int) -> bool:
        stmt = select(func.count()).select_from(ProgressUpdateModel).where(
            ProgressUpdateModel.owner == owner,
            ProgressUpdateModel.skill_id == skill_id,
        )
        return session.execute(stmt).scalar_one() > 0

    def _require_model(self, session: Session, owner: str, skill_id: int) -> SkillModel:
        model = session.get(SkillModel, (owner, skill_id))
        if model is None:
            raise NotFound(f"Skill {skill_id} was not found for '{owner}'.", skill_id=skill_id)
        return model

    def _append_update(
        self,
        session: Session,
        context: OperationContext,
        skill_id: int,
        proficiency: int,
        *,
        evidence: str,
        milestone: str,
    ) -> ProgressUpdate:
        update_id = self._allocator.next_id(session, CounterKind.UPDATE, context.caller, skill_id)
        model = ProgressUpdateModel(
            owner=context.caller,
            skill_id=skill_id,
            update_id=update_id,
            proficiency=proficiency,
            recorded_height=context.height,
            evidence=evidence,
            milestone=milestone,
        )
        session.add(model)
        session.flush()
        return self._update_to_domain(model)

    @staticmethod
    def _to_domain(model: SkillModel) -> Skill:
        return Skill(
            owner=model.owner,
            skill_id=model.skill_id,
            name=model.name,
            category=model.category,
            description=model.description,
            created_at=model.created_height,
            visibility=Visibility(model.visibility),
            current_proficiency=model.current_proficiency,
            last_updated=model.last_updated_height,
        )

    @staticmethod
    def _update_to_domain(model: ProgressUpdateModel) -> ProgressUpdate:
        return ProgressUpdate(
            owner=model.owner,
            skill_id=model.skill_id,
            update_id=model.update_id,
            proficiency=model.proficiency,
            timestamp=model.recorded_height,
            evidence=model.evidence,
            milestone=model.milestone,
        )


skills = SkillRepository()

__all__ = ["SkillRepository", "skills"]
