"""
Streak: one continuous commitment interval.

ended_at IS NULL marks the active streak. The partial unique index
`uq_streaks_one_active_per_user` guarantees at most one per user at the
DB level, so concurrent get-or-create calls cannot both succeed.

Rows are never deleted; closing a streak only sets ended_at and
reset_reason.
"""
from datetime import datetime
from sqlalchemy import Integer, Enum, ForeignKey, Index, func, text
from sqlalchemy.orm import Mapped, mapped_column
import enum

from streak_engine.db.base import Base
from streak_engine.db.types import UTCDateTime


class ResetReason(str, enum.Enum):
    none = "none"
    relapse = "relapse"
    manual = "manual"


class Streak(Base):
    __tablename__ = "streaks"
    __table_args__ = (
        Index(
            "uq_streaks_one_active_per_user",
            "user_id",
            unique=True,
            postgresql_where=text("ended_at IS NULL"),
            sqlite_where=text("ended_at IS NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    started_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    ended_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    reset_reason: Mapped[str] = mapped_column(
        Enum(ResetReason, name="reset_reason_enum"),
        nullable=False,
        default=ResetReason.none,
    )
    last_celebrated_milestone_day: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    # Calendar-day length frozen when the streak closes; NULL while active
    length_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def is_active(self) -> bool:
        return self.ended_at is None
