"""Database-backed repositories for each ledger component."""

from .access_grants import AccessGrantRepository, access_grants
from .goals import GoalRepository, goals
from .id_counters import CounterKind, IdAllocator, id_allocator
from .skills import SkillRepository, skills
from .users import UserRepository, users

__all__ = [
    "AccessGrantRepository",
    "CounterKind",
    "GoalRepository",
    "IdAllocator",
    "SkillRepository",
    "UserRepository",
    "access_grants",
    "goals",
    "id_allocator",
    "skills",
    "users",
]
