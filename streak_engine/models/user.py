from datetime import datetime, date
from sqlalchemy import Integer, String, Boolean, Date, func
from sqlalchemy.orm import Mapped, mapped_column

from streak_engine.db.base import Base
from streak_engine.db.types import UTCDateTime


class User(Base):
    """
    One row per installation.

    commitment_signed_at is NULL until the user signs their commitment;
    such a user never has an active streak.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    display_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    commitment_signed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    # Target date picked when signing (e.g. 90 days out)
    commitment_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    # Last device zone reported by the client; fallback only
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    coach_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
