"""Initial skill ledger schema.

Revision ID: 20251019_01_initial_ledger
Revises:
Create Date: 2025-10-19 12:00:00.000000
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "20251019_01_initial_ledger"
down_revision = None
branch_labels = None
depends_on = None

PRINCIPAL = sa.String(length=256)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "user_profiles",
        sa.Column("principal", PRINCIPAL, primary_key=True),
        sa.Column("created_height", sa.Integer(), nullable=False),
        sa.Column("skill_count", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
    )

    op.create_table(
        "skills",
        sa.Column("owner", PRINCIPAL, sa.ForeignKey("user_profiles.principal"), primary_key=True),
        sa.Column("skill_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_height", sa.Integer(), nullable=False),
        sa.Column("visibility", sa.Integer(), nullable=False),
        sa.Column("current_proficiency", sa.Integer(), nullable=False),
        sa.Column("last_updated_height", sa.Integer(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "progress_updates",
        sa.Column("owner", PRINCIPAL, primary_key=True),
        sa.Column("skill_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("update_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("proficiency", sa.Integer(), nullable=False),
        sa.Column("recorded_height", sa.Integer(), nullable=False),
        sa.Column("evidence", sa.Text(), nullable=False, server_default=""),
        sa.Column("milestone", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(
            ["owner", "skill_id"],
            ["skills.owner", "skills.skill_id"],
            name="fk_progress_updates_skill",
        ),
    )

    op.create_table(
        "skill_goals",
        sa.Column("owner", PRINCIPAL, primary_key=True),
        sa.Column("skill_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("goal_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("target_proficiency", sa.Integer(), nullable=False),
        sa.Column("target_height", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_height", sa.Integer(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_height", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["owner", "skill_id"],
            ["skills.owner", "skills.skill_id"],
            name="fk_skill_goals_skill",
        ),
    )

    op.create_table(
        "access_grants",
        sa.Column("owner", PRINCIPAL, primary_key=True),
        sa.Column("viewer", PRINCIPAL, primary_key=True),
        sa.Column("granted_height", sa.Integer(), nullable=False),
        sa.Column("can_view", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "id_counters",
        sa.Column("kind", sa.String(length=16), primary_key=True),
        sa.Column("owner", PRINCIPAL, primary_key=True),
        sa.Column("skill_id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("last_id", sa.Integer(), nullable=False, server_default="0"),
    )

    clock = op.create_table(
        "ledger_clock",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("height", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("advanced_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    # Single height row; block-mode operations lock it with SELECT ... FOR UPDATE.
    op.bulk_insert(clock, [{"id": 1, "height": 0}])

    op.create_table(
        "ledger_audit_events",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor", PRINCIPAL, nullable=False),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("height", sa.Integer(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("skill_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_ledger_audit_events_actor", "ledger_audit_events", ["actor"])


def downgrade() -> None:
    op.drop_index("ix_ledger_audit_events_actor", table_name="ledger_audit_events")
    op.drop_table("ledger_audit_events")
    op.drop_table("ledger_clock")
    op.drop_table("id_counters")
    op.drop_table("access_grants")
    op.drop_table("skill_goals")
    op.drop_table("progress_updates")
    op.drop_table("skills")
    op.drop_table("user_profiles")
