"""Goal tracker: per-skill targets moving from open to completed once."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..clock import OperationContext
from ..db.models import GoalModel, SkillModel
from ..errors import InvalidInput, NotFound
from ..records import Goal, require_height, require_proficiency
from .audit import record_audit
from .id_counters import CounterKind, IdAllocator, id_allocator


class GoalRepository:
    def __init__(self, allocator: IdAllocator = id_allocator) -> None:
        self._allocator = allocator

    def get(self, session: Session, owner: str, skill_id: int, goal_id: int) -> Goal | None:
        model = session.get(GoalModel, (owner, skill_id, goal_id))
        return self._to_domain(model) if model else None

    def set_goal(
        self,
        session: Session,
        context: OperationContext,
        skill_id: int,
        *,
        target_proficiency: Any,
        target_date: Any,
        description: str,
    ) -> Goal:
        if session.get(SkillModel, (context.caller, skill_id)) is None:
            raise NotFound(f"Skill {skill_id} was not found for '{context.caller}'.", skill_id=skill_id)
        target = require_proficiency(target_proficiency)
        target_date = require_height(target_date)
        if target_date <= context.height:
            raise InvalidInput(
                f"Goal target date {target_date} must be later than the current height {context.height}.",
                current_height=context.height,
            )

        goal_id = self._allocator.next_id(session, CounterKind.GOAL, context.caller, skill_id)
        model = GoalModel(
            owner=context.caller,
            skill_id=skill_id,
            goal_id=goal_id,
            target_proficiency=target,
            target_height=target_date,
            description=description,
            created_height=context.height,
            completed=False,
            completed_height=0,
        )
        session.add(model)
        session.flush()
        record_audit(
            session,
            context,
            "goal_set",
            {"goal_id": goal_id, "target_proficiency": target, "target_date": target_date},
            skill_id=skill_id,
        )
        return self._to_domain(model)

    def complete(self, session: Session, context: OperationContext, skill_id: int, goal_id: int) -> Goal:
        # Completion is self-reported; current proficiency is not compared to the target.
        model = session.get(GoalModel, (context.caller, skill_id, goal_id))
        if model is None:
            raise NotFound(
                f"Goal {goal_id} on skill {skill_id} was not found for '{context.caller}'.",
                skill_id=skill_id,
                goal_id=goal_id,
            )
        if model.completed:
            raise InvalidInput(
                f"Goal {goal_id} was already completed at height {model.completed_height}.",
                goal_id=goal_id,
            )
        model.completed = True
        model.completed_height = context.height
        session.flush()
        record_audit(session, context, "goal_completed", {"goal_id": goal_id}, skill_id=skill_id)
        return self._to_domain(model)

    def has_goals(self, session: Session, owner: str, skill_id: int) -> bool:
        stmt = select(func.count()).select_from(GoalModel).where(
            GoalModel.owner == owner,
            GoalModel.skill_id == skill_id,
        )
        return session.execute(stmt).scalar_one() > 0

    @staticmethod
    def _to_domain(model: GoalModel) -> Goal:
        return Goal(
            owner=model.owner,
            skill_id=model.skill_id,
            goal_id=model.goal_id,
            target_proficiency=model.target_proficiency,
            target_date=model.target_height,
            description=model.description,
            created_at=model.created_height,
            completed=model.completed,
            completed_at=model.completed_height,
        )


goals = GoalRepository()

__all__ = ["GoalRepository", "goals"]
