"""Visibility checks gating every read of skill data.

A skill that does not exist and a skill the requester may not see produce the
same empty result, so the existence of a private skill cannot be discovered.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from .records import AccessGrant, Skill, Visibility
from .repositories.access_grants import AccessGrantRepository, access_grants
from .repositories.skills import SkillRepository, skills


def can_view(requester: Optional[str], skill: Skill, grant: Optional[AccessGrant]) -> bool:
    if requester is not None and requester == skill.owner:
        return True
    if skill.visibility == Visibility.PUBLIC:
        return True
    if skill.visibility == Visibility.SHARED:
        return grant is not None and grant.viewer == requester and grant.can_view
    return False


class AccessControl:
    def __init__(
        self,
        skill_repository: SkillRepository = skills,
        grant_repository: AccessGrantRepository = access_grants,
    ) -> None:
        self._skills = skill_repository
        self._grants = grant_repository

    def authorize(self, session: Session, requester: Optional[str], owner: str, skill_id: int) -> Skill | None:
        """Return the skill when ``requester`` may see it, otherwise ``None``."""
        skill = self._skills.get(session, owner, skill_id)
        if skill is None:
            return None
        grant = None
        if requester is not None and skill.visibility == Visibility.SHARED:
            grant = self._grants.get(session, owner, requester)
        return skill if can_view(requester, skill, grant) else None

    def can_view(self, session: Session, requester: Optional[str], owner: str, skill_id: int) -> bool:
        return self.authorize(session, requester, owner, skill_id) is not None


access_control = AccessControl()

__all__ = ["AccessControl", "access_control", "can_view"]
