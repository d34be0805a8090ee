import datetime as dt
from sqlalchemy import (
    Integer, Text, Boolean, Date, ForeignKey, CheckConstraint, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column

from streak_engine.db.base import Base
from streak_engine.db.types import UTCDateTime

RATING_MIN = 1
RATING_MAX = 10

RATING_FIELDS = (
    "mood_rating",
    "energy_rating",
    "confidence_rating",
    "faith_rating",
    "self_control_rating",
)


def _rating_check(column: str) -> CheckConstraint:
    return CheckConstraint(
        f"{column} BETWEEN {RATING_MIN} AND {RATING_MAX}",
        name=f"ck_checkins_{column}_range",
    )


class CheckIn(Base):
    """
    Daily self-assessment. One canonical row per (user, calendar day).

    `day` is the local calendar day the submission was bucketed into;
    `date` is the instant of the latest submission for that day.
    """

    __tablename__ = "checkins"
    __table_args__ = (
        UniqueConstraint("user_id", "day", name="uq_checkins_user_day"),
        *(_rating_check(c) for c in RATING_FIELDS),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    date: Mapped[dt.datetime] = mapped_column(UTCDateTime, nullable=False)
    day: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)

    mood_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    energy_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    confidence_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    faith_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    self_control_rating: Mapped[int] = mapped_column(Integer, nullable=False)

    progress_reflection: Mapped[str | None] = mapped_column(Text, nullable=True)
    journey_reflection: Mapped[str | None] = mapped_column(Text, nullable=True)
    gratitude: Mapped[str | None] = mapped_column(Text, nullable=True)

    stayed_clean: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
