"""ORM models backing the skill ledger.

Every primary key embeds the owning principal so that a write derived from
the authenticated caller can only ever touch that caller's rows.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from ..records import MAX_PRINCIPAL_LENGTH as PRINCIPAL_LENGTH
from .base import Base, TimestampMixin

JSONType = JSON


class UserProfileModel(TimestampMixin, Base):
    __tablename__ = "user_profiles"

    principal: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), primary_key=True)
    created_height: Mapped[int] = mapped_column(Integer, nullable=False)
    skill_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class SkillModel(TimestampMixin, Base):
    __tablename__ = "skills"

    owner: Mapped[str] = mapped_column(
        String(PRINCIPAL_LENGTH), ForeignKey("user_profiles.principal"), primary_key=True
    )
    skill_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_height: Mapped[int] = mapped_column(Integer, nullable=False)
    visibility: Mapped[int] = mapped_column(Integer, nullable=False)
    current_proficiency: Mapped[int] = mapped_column(Integer, nullable=False)
    last_updated_height: Mapped[int] = mapped_column(Integer, nullable=False)


class ProgressUpdateModel(Base):
    __tablename__ = "progress_updates"
    __table_args__ = (
        ForeignKeyConstraint(
            ["owner", "skill_id"],
            ["skills.owner", "skills.skill_id"],
            name="fk_progress_updates_skill",
        ),
    )

    owner: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), primary_key=True)
    skill_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    update_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    proficiency: Mapped[int] = mapped_column(Integer, nullable=False)
    recorded_height: Mapped[int] = mapped_column(Integer, nullable=False)
    evidence: Mapped[str] = mapped_column(Text, default="", nullable=False)
    milestone: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )


class GoalModel(TimestampMixin, Base):
    __tablename__ = "skill_goals"
    __table_args__ = (
        ForeignKeyConstraint(
            ["owner", "skill_id"],
            ["skills.owner", "skills.skill_id"],
            name="fk_skill_goals_skill",
        ),
    )

    owner: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), primary_key=True)
    skill_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    goal_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    target_proficiency: Mapped[int] = mapped_column(Integer, nullable=False)
    target_height: Mapped[int] = mapped_column(Integer, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    created_height: Mapped[int] = mapped_column(Integer, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_height: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class AccessGrantModel(TimestampMixin, Base):
    __tablename__ = "access_grants"

    owner: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), primary_key=True)
    viewer: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), primary_key=True)
    granted_height: Mapped[int] = mapped_column(Integer, nullable=False)
    can_view: Mapped[bool] = mapped_column(Boolean, nullable=False)


class IdCounterModel(Base):
    """Last identifier issued per scope; ``skill_id`` is 0 for per-user scopes."""

    __tablename__ = "id_counters"

    kind: Mapped[str] = mapped_column(String(16), primary_key=True)
    owner: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), primary_key=True)
    skill_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    last_id: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class LedgerClockModel(Base):
    __tablename__ = "ledger_clock"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    height: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    advanced_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False
    )


class LedgerAuditEventModel(Base):
    __tablename__ = "ledger_audit_events"
    __table_args__ = (Index("ix_ledger_audit_events_actor", "actor"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    actor: Mapped[str] = mapped_column(String(PRINCIPAL_LENGTH), nullable=False)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    height: Mapped[int] = mapped_column(Integer, nullable=False)
    payload: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    skill_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )


__all__ = [
    "AccessGrantModel",
    "GoalModel",
    "IdCounterModel",
    "LedgerAuditEventModel",
    "LedgerClockModel",
    "ProgressUpdateModel",
    "SkillModel",
    "UserProfileModel",
]
