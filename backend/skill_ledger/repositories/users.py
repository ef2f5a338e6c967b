"""User registry: one profile per principal, created exactly once."""

from __future__ import annotations

from sqlalchemy.orm import Session

from ..clock import OperationContext
from ..db.models import UserProfileModel
from ..errors import AlreadyExists, NotFound
from ..records import UserProfile
from .audit import record_audit


class UserRepository:
    def get(self, session: Session, principal: str) -> UserProfile | None:
        model = session.get(UserProfileModel, principal)
        return self._to_domain(model) if model else None

    def get_or_default(self, session: Session, principal: str) -> UserProfile:
        return self.get(session, principal) or UserProfile(principal=principal)

    def register(self, session: Session, context: OperationContext) -> UserProfile:
        if session.get(UserProfileModel, context.caller) is not None:
            raise AlreadyExists(f"Principal '{context.caller}' is already registered.")
        model = UserProfileModel(principal=context.caller, created_height=context.height, skill_count=0)
        session.add(model)
        session.flush()
        record_audit(session, context, "user_registered", {})
        return self._to_domain(model)

    def require_registered(self, session: Session, principal: str) -> UserProfileModel:
        model = session.get(UserProfileModel, principal)
        if model is None:
            raise NotFound(f"Principal '{principal}' has not registered.")
        return model

    def increment_skill_count(self, session: Session, principal: str) -> int:
        model = self.require_registered(session, principal)
        model.skill_count += 1
        session.flush()
        return model.skill_count

    @staticmethod
    def _to_domain(model: UserProfileModel) -> UserProfile:
        return UserProfile(
            principal=model.principal,
            created_at=model.created_height,
            skill_count=model.skill_count,
        )


users = UserRepository()

__all__ = ["UserRepository", "users"]
