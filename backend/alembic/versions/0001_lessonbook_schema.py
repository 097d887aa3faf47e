# backend/alembic/versions/0001_lessonbook_schema.py
"""Lesson booking schema - catalog, schedules, reservations, memberships

Revision ID: 0001_lessonbook_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates every table plus the per-coach reservation overlap guard
``reservations_no_overlap_per_coach``: a btree_gist exclusion constraint on
PostgreSQL, BEFORE INSERT/UPDATE triggers on SQLite.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_lessonbook_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ACTIVE_STATUSES_SQL = "'ATTENDED', 'CONFIRMED', 'HOLIDAY', 'PENDING'"
ALL_STATUSES_SQL = "'PENDING', 'CONFIRMED', 'ATTENDED', 'NO_SHOW', 'CANCELED', 'HOLIDAY'"
OVERLAP_CONSTRAINT = "reservations_no_overlap_per_coach"


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create all tables and the overlap guard."""
    print("Creating lesson booking tables...")

    op.create_table(
        "users",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("role IN ('admin', 'user')", name="ck_users_role"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "branches",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("address", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_branches_name", "branches", ["name"])

    op.create_table(
        "coaches",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("phone", sa.String(30), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("branch_id", sa.String(26), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["branch_id"], ["branches.id"], ondelete="SET NULL"),
    )
    op.create_index("ix_coaches_name", "coaches", ["name"])

    op.create_table(
        "coach_availability_rules",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("coach_id", sa.String(26), nullable=False),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.Integer(), nullable=False, comment="Minutes past midnight"),
        sa.Column("end_time", sa.Integer(), nullable=False, comment="Minutes past midnight"),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"], ondelete="CASCADE"),
        sa.CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_availability_rules_weekday"),
        sa.CheckConstraint("start_time < end_time", name="ck_availability_rules_time_order"),
    )
    op.create_index(
        "ix_availability_rules_coach_weekday", "coach_availability_rules", ["coach_id", "weekday"]
    )

    op.create_table(
        "coach_time_offs",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("coach_id", sa.String(26), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"], ondelete="CASCADE"),
        sa.CheckConstraint("end_at > start_at", name="ck_time_offs_time_order"),
    )
    op.create_index("ix_time_offs_coach_start", "coach_time_offs", ["coach_id", "start_at"])

    op.create_table(
        "lessons",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("coach_id", sa.String(26), nullable=False),
        sa.Column("branch_id", sa.String(26), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"]),
        sa.ForeignKeyConstraint(["branch_id"], ["branches.id"]),
    )
    op.create_index("ix_lessons_name", "lessons", ["name"])
    op.create_index("ix_lessons_coach_id", "lessons", ["coach_id"])
    op.create_index("ix_lessons_branch_id", "lessons", ["branch_id"])

    op.create_table(
        "reservations",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("lesson_id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("coach_id", sa.String(26), nullable=False),
        sa.Column("branch_id", sa.String(26), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="CONFIRMED"),
        sa.Column("goal", sa.String(10), nullable=True),
        sa.Column("category_tag", sa.String(50), nullable=True),
        sa.Column("feedback", sa.Text(), nullable=True),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["lesson_id"], ["lessons.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"]),
        sa.ForeignKeyConstraint(["branch_id"], ["branches.id"]),
        sa.CheckConstraint("end_at > start_at", name="ck_reservations_time_order"),
        sa.CheckConstraint(f"status IN ({ALL_STATUSES_SQL})", name="ck_reservations_status"),
        sa.CheckConstraint(
            "goal IS NULL OR goal IN ('EASY', 'NORMAL', 'HARD')", name="ck_reservations_goal"
        ),
    )
    op.create_index("ix_reservations_lesson_id", "reservations", ["lesson_id"])
    op.create_index("ix_reservations_user_id", "reservations", ["user_id"])
    op.create_index("ix_reservations_status", "reservations", ["status"])
    op.create_index("ix_reservations_coach_start", "reservations", ["coach_id", "start_at"])

    op.create_table(
        "memberships",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("coach_id", sa.String(26), nullable=False),
        sa.Column("remaining_minutes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["coach_id"], ["coaches.id"]),
        sa.UniqueConstraint("user_id", "coach_id", name="uq_memberships_user_coach"),
        sa.CheckConstraint("remaining_minutes >= 0", name="ck_memberships_remaining_non_negative"),
    )
    op.create_index("ix_memberships_user_id", "memberships", ["user_id"])
    op.create_index("ix_memberships_coach_id", "memberships", ["coach_id"])

    op.create_table(
        "membership_ledger",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("membership_id", sa.String(26), nullable=False),
        sa.Column("delta_minutes", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(20), nullable=False),
        sa.Column("reservation_id", sa.String(26), nullable=True),
        sa.Column("created_by", sa.String(26), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["membership_id"], ["memberships.id"]),
        sa.ForeignKeyConstraint(["reservation_id"], ["reservations.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.CheckConstraint(
            "reason IN ('ALLOCATE', 'BOOKING', 'CANCEL_REFUND', 'ADJUST')",
            name="ck_membership_ledger_reason",
        ),
    )
    op.create_index("ix_membership_ledger_membership_id", "membership_ledger", ["membership_id"])
    op.create_index("ix_membership_ledger_reservation", "membership_ledger", ["reservation_id"])

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        print("Adding reservation overlap exclusion constraint...")
        op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
        op.execute(
            f"""
            ALTER TABLE reservations
              ADD CONSTRAINT {OVERLAP_CONSTRAINT}
              EXCLUDE USING gist (
                coach_id WITH =,
                tstzrange(start_at, end_at, '[)') WITH &&
              )
              WHERE (status IN ({ACTIVE_STATUSES_SQL}))
            """
        )
    elif bind.dialect.name == "sqlite":
        print("Adding reservation overlap triggers...")
        predicate = (
            f"SELECT RAISE(ABORT, '{OVERLAP_CONSTRAINT}') WHERE EXISTS ("
            "SELECT 1 FROM reservations AS r "
            "WHERE r.coach_id = NEW.coach_id AND r.id <> NEW.id "
            f"AND r.status IN ({ACTIVE_STATUSES_SQL}) "
            "AND r.start_at < NEW.end_at AND NEW.start_at < r.end_at)"
        )
        op.execute(
            f"CREATE TRIGGER {OVERLAP_CONSTRAINT}_insert BEFORE INSERT ON reservations "
            f"WHEN NEW.status IN ({ACTIVE_STATUSES_SQL}) BEGIN {predicate}; END"
        )
        op.execute(
            f"CREATE TRIGGER {OVERLAP_CONSTRAINT}_update "
            "BEFORE UPDATE OF coach_id, start_at, end_at, status ON reservations "
            f"WHEN NEW.status IN ({ACTIVE_STATUSES_SQL}) BEGIN {predicate}; END"
        )

    print("Lesson booking schema created")


def downgrade() -> None:
    """Drop all lesson booking tables."""
    print("Dropping lesson booking tables...")
    bind = op.get_bind()
    if bind.dialect.name == "sqlite":
        op.execute(f"DROP TRIGGER IF EXISTS {OVERLAP_CONSTRAINT}_update")
        op.execute(f"DROP TRIGGER IF EXISTS {OVERLAP_CONSTRAINT}_insert")

    op.drop_table("membership_ledger")
    op.drop_table("memberships")
    op.drop_table("reservations")
    op.drop_table("lessons")
    op.drop_table("coach_time_offs")
    op.drop_table("coach_availability_rules")
    op.drop_table("coaches")
    op.drop_table("branches")
    op.drop_table("users")
