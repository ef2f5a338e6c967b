"""Domain records for users, skills, progress updates, goals and access grants.

Heights (``created_at``, ``last_updated``, ``timestamp``, ``completed_at``,
``granted_at``, ``target_date``) are logical clock values supplied by the host,
not wall-clock datetimes.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Literal

from pydantic import BaseModel

from .errors import InvalidInput, InvalidProficiency, InvalidVisibility

MIN_PROFICIENCY = 1
MAX_PROFICIENCY = 5
INITIAL_MILESTONE = "Initial skill level set"
MAX_PRINCIPAL_LENGTH = 256


class Visibility(IntEnum):
    PRIVATE = 1
    SHARED = 2
    PUBLIC = 3


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_visibility(value: Any) -> Visibility:
    if not _is_int(value):
        raise InvalidVisibility(f"Visibility must be one of 1, 2, 3; got {value!r}.", visibility=str(value))
    try:
        return Visibility(value)
    except ValueError:
        raise InvalidVisibility(f"Visibility must be one of 1, 2, 3; got {value}.", visibility=value) from None


def require_proficiency(value: Any) -> int:
    if not _is_int(value) or not MIN_PROFICIENCY <= value <= MAX_PROFICIENCY:
        raise InvalidProficiency(
            f"Proficiency must be between {MIN_PROFICIENCY} and {MAX_PROFICIENCY}; got {value!r}.",
        )
    return value


def require_height(value: Any, field: str = "target_date") -> int:
    if not _is_int(value):
        raise InvalidInput(f"{field} must be an integer height; got {value!r}.", field=field)
    return value


class UserProfile(BaseModel):
    principal: str
    created_at: int = 0
    skill_count: int = 0


class Skill(BaseModel):
    owner: str
    skill_id: int
    name: str
    category: str
    description: str = ""
    created_at: int
    visibility: Visibility
    current_proficiency: int
    last_updated: int


class ProgressUpdate(BaseModel):
    owner: str
    skill_id: int
    update_id: int
    proficiency: int
    timestamp: int
    evidence: str = ""
    milestone: str = ""


class Goal(BaseModel):
    owner: str
    skill_id: int
    goal_id: int
    target_proficiency: int
    target_date: int
    description: str = ""
    created_at: int
    completed: bool = False
    completed_at: int = 0

    @property
    def status(self) -> Literal["open", "completed"]:
        return "completed" if self.completed else "open"


class AccessGrant(BaseModel):
    owner: str
    viewer: str
    granted_at: int = 0
    can_view: bool = False


__all__ = [
    "AccessGrant",
    "Goal",
    "INITIAL_MILESTONE",
    "MAX_PRINCIPAL_LENGTH",
    "MAX_PROFICIENCY",
    "MIN_PROFICIENCY",
    "ProgressUpdate",
    "Skill",
    "UserProfile",
    "Visibility",
    "parse_visibility",
    "require_height",
    "require_proficiency",
]
