import datetime as dt
from sqlalchemy import Integer, Text, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column

from streak_engine.db.base import Base
from streak_engine.db.types import UTCDateTime


class JournalEntry(Base):
    """
    Free-text journal entry. The engine only counts these.

    Rows are written by the journaling service that shares this database;
    this service has no write path for them, so the weekly journal count
    stays 0 until that writer has populated the table.
    """

    __tablename__ = "journal_entries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )
    date: Mapped[dt.datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    mood: Mapped[int | None] = mapped_column(Integer, nullable=True)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime,
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
