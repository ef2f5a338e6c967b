"""Request and response payloads for the ledger HTTP interface."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Generic, Optional, TypeVar

from pydantic import BaseModel, Field

from .records import AccessGrant, Skill, UserProfile

ValueT = TypeVar("ValueT")


class LedgerResult(BaseModel, Generic[ValueT]):
    ok: bool = True
    value: ValueT


class LedgerFailure(BaseModel):
    ok: bool = False
    error: str
    detail: str


# Numeric ledger fields are passed through untyped: the ledger validators reject
# booleans, numeric strings and floats instead of pydantic coercing them.


class AddSkillRequest(BaseModel):
    name: str
    category: str
    description: str = ""
    visibility: Any
    initial_proficiency: Any


class UpdateProgressRequest(BaseModel):
    new_proficiency: Any
    evidence: str = ""
    milestone: str = ""


class SetVisibilityRequest(BaseModel):
    visibility: Any


class SetGoalRequest(BaseModel):
    target_proficiency: Any
    target_date: Any
    description: str = ""


class UserInfoPayload(BaseModel):
    created_at: int
    skill_count: int


class SkillPayload(BaseModel):
    owner: str
    skill_id: int
    name: str
    category: str
    description: str
    created_at: int
    visibility: int
    current_proficiency: int
    last_updated: int


class SkillHistoryPayload(BaseModel):
    has_records: bool


class AccessGrantPayload(BaseModel):
    granted_at: int
    can_view: bool


class HeightPayload(BaseModel):
    height: int
    clock_mode: str


class AuditEventPayload(BaseModel):
    event_type: str
    height: int
    skill_id: Optional[int] = None
    payload: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


def user_info_payload(profile: UserProfile) -> UserInfoPayload:
    return UserInfoPayload(created_at=profile.created_at, skill_count=profile.skill_count)


def skill_payload(skill: Skill | None) -> SkillPayload | None:
    if skill is None:
        return None
    return SkillPayload(
        owner=skill.owner,
        skill_id=skill.skill_id,
        name=skill.name,
        category=skill.category,
        description=skill.description,
        created_at=skill.created_at,
        visibility=int(skill.visibility),
        current_proficiency=skill.current_proficiency,
        last_updated=skill.last_updated,
    )


def history_payload(indicator: bool | None) -> SkillHistoryPayload | None:
    if indicator is None:
        return None
    return SkillHistoryPayload(has_records=indicator)


def grant_payload(grant: AccessGrant) -> AccessGrantPayload:
    return AccessGrantPayload(granted_at=grant.granted_at, can_view=grant.can_view)


__all__ = [
    "AccessGrantPayload",
    "AddSkillRequest",
    "AuditEventPayload",
    "HeightPayload",
    "LedgerFailure",
    "LedgerResult",
    "SetGoalRequest",
    "SetVisibilityRequest",
    "SkillHistoryPayload",
    "SkillPayload",
    "UpdateProgressRequest",
    "UserInfoPayload",
    "grant_payload",
    "history_payload",
    "skill_payload",
    "user_info_payload",
]
