"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

users, streaks, checkins, journal_entries, milestone_celebrations.

The partial unique index uq_streaks_one_active_per_user allows at most one
row with ended_at IS NULL per user. (user_id, day) on checkins and
(streak_id, milestone_day) on milestone_celebrations back the two other
get-or-create paths.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

RATING_COLUMNS = (
    "mood_rating",
    "energy_rating",
    "confidence_rating",
    "faith_rating",
    "self_control_rating",
)


def upgrade() -> None:
    # --- ENUM types ---
    reset_reason_enum = sa.Enum("none", "relapse", "manual", name="reset_reason_enum")
    reset_reason_enum.create(op.get_bind(), checkfirst=True)

    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("display_name", sa.String(128), nullable=True),
        sa.Column("commitment_signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("commitment_date", sa.Date(), nullable=True),
        sa.Column("timezone", sa.String(64), nullable=True),
        sa.Column("coach_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_id", "users", ["id"])

    # --- streaks ---
    op.create_table(
        "streaks",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reset_reason", sa.Enum(
            "none", "relapse", "manual", name="reset_reason_enum", create_type=False,
        ), nullable=False, server_default="none"),
        sa.Column("last_celebrated_milestone_day", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("length_days", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_streaks_id", "streaks", ["id"])
    op.create_index("ix_streaks_user_id", "streaks", ["user_id"])
    op.create_index(
        "uq_streaks_one_active_per_user",
        "streaks",
        ["user_id"],
        unique=True,
        postgresql_where=sa.text("ended_at IS NULL"),
        sqlite_where=sa.text("ended_at IS NULL"),
    )

    # --- checkins ---
    op.create_table(
        "checkins",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("day", sa.Date(), nullable=False),
        *(sa.Column(c, sa.Integer(), nullable=False) for c in RATING_COLUMNS),
        sa.Column("progress_reflection", sa.Text(), nullable=True),
        sa.Column("journey_reflection", sa.Text(), nullable=True),
        sa.Column("gratitude", sa.Text(), nullable=True),
        sa.Column("stayed_clean", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "day", name="uq_checkins_user_day"),
        *(
            sa.CheckConstraint(f"{c} BETWEEN 1 AND 10", name=f"ck_checkins_{c}_range")
            for c in RATING_COLUMNS
        ),
    )
    op.create_index("ix_checkins_id", "checkins", ["id"])
    op.create_index("ix_checkins_user_id", "checkins", ["user_id"])
    op.create_index("ix_checkins_day", "checkins", ["day"])

    # --- journal_entries ---
    op.create_table(
        "journal_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("mood", sa.Integer(), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_journal_entries_id", "journal_entries", ["id"])
    op.create_index("ix_journal_entries_user_id", "journal_entries", ["user_id"])
    op.create_index("ix_journal_entries_date", "journal_entries", ["date"])

    # --- milestone_celebrations ---
    op.create_table(
        "milestone_celebrations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("streak_id", sa.Integer(), sa.ForeignKey("streaks.id"), nullable=False),
        sa.Column("milestone_day", sa.Integer(), nullable=False),
        sa.Column("streak_days", sa.Integer(), nullable=False),
        sa.Column("celebrated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("streak_id", "milestone_day", name="uq_celebration_streak_day"),
    )
    op.create_index("ix_milestone_celebrations_id", "milestone_celebrations", ["id"])
    op.create_index("ix_milestone_celebrations_streak_id", "milestone_celebrations", ["streak_id"])


def downgrade() -> None:
    op.drop_table("milestone_celebrations")
    op.drop_table("journal_entries")
    op.drop_table("checkins")
    op.drop_index("uq_streaks_one_active_per_user", table_name="streaks")
    op.drop_table("streaks")
    op.drop_table("users")

    if op.get_bind().dialect.name == "postgresql":
        op.execute("DROP TYPE IF EXISTS reset_reason_enum")
