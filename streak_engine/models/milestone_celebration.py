"""
MilestoneCelebration: ledger of milestones shown to the user.

Append-only. One row per (streak_id, milestone_day); the unique
constraint backs the exactly-once celebration guarantee at the DB level.
Written in the same transaction that advances
Streak.last_celebrated_milestone_day.
"""
from datetime import datetime
from sqlalchemy import Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from streak_engine.db.base import Base
from streak_engine.db.types import UTCDateTime


class MilestoneCelebration(Base):
    __tablename__ = "milestone_celebrations"
    __table_args__ = (
        UniqueConstraint("streak_id", "milestone_day", name="uq_celebration_streak_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    streak_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("streaks.id"), nullable=False, index=True
    )
    milestone_day: Mapped[int] = mapped_column(Integer, nullable=False)
    # Streak length when the celebration fired (>= milestone_day when days were skipped)
    streak_days: Mapped[int] = mapped_column(Integer, nullable=False)
    celebrated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
