"""
Persistent record store: query and commit helpers over the SQLAlchemy
session.

Every engine write goes through commit() or commit_unless_conflict().
A failed commit is rolled back, which expires the ORM instances in the
session, so callers see the last committed state again and nothing
optimistic survives. The failure is surfaced as PersistenceWriteError,
never swallowed.

commit_unless_conflict() is for get-or-create paths: a unique-constraint
violation means another writer got there first, which the caller
resolves by re-reading.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from streak_engine.core.errors import PersistenceWriteError
from streak_engine.models.checkin import CheckIn
from streak_engine.models.journal_entry import JournalEntry
from streak_engine.models.milestone_celebration import MilestoneCelebration
from streak_engine.models.streak import Streak
from streak_engine.models.user import User

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Commit
# ---------------------------------------------------------------------------

def commit(db: Session, action: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Commit failed while persisting %s", action)
        raise PersistenceWriteError(action, reason=type(exc).__name__) from exc


def flush(db: Session, action: str) -> None:
    try:
        db.flush()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Flush failed while persisting %s", action)
        raise PersistenceWriteError(action, reason=type(exc).__name__) from exc


def commit_unless_conflict(db: Session, action: str) -> bool:
    """
    Commit; return False (after rollback) if a unique constraint rejected
    the write. Any other failure raises PersistenceWriteError.
    """
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("Concurrent write detected while persisting %s; re-reading", action)
        return False
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Commit failed while persisting %s", action)
        raise PersistenceWriteError(action, reason=type(exc).__name__) from exc
    return True


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def find_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


# ---------------------------------------------------------------------------
# Streaks
# ---------------------------------------------------------------------------

def active_streaks(db: Session, user_id: int) -> list[Streak]:
    """All rows with ended_at IS NULL. More than one is an integrity violation."""
    return (
        db.query(Streak)
        .filter(Streak.user_id == user_id, Streak.ended_at.is_(None))
        .order_by(Streak.id)
        .all()
    )


def streaks_for_user(db: Session, user_id: int) -> list[Streak]:
    """Full history, oldest first."""
    return (
        db.query(Streak)
        .filter(Streak.user_id == user_id)
        .order_by(Streak.started_at, Streak.id)
        .all()
    )


def latest_closed_streak(db: Session, user_id: int) -> Optional[Streak]:
    return (
        db.query(Streak)
        .filter(Streak.user_id == user_id, Streak.ended_at.is_not(None))
        .order_by(Streak.ended_at.desc(), Streak.id.desc())
        .first()
    )


def advance_celebrated_day(db: Session, streak_id: int, milestone_day: int) -> int:
    """
    Compare-and-swap on last_celebrated_milestone_day. Only moves forward,
    only on an active streak. Returns the number of rows changed (0 or 1).
    Not committed.
    """
    return (
        db.query(Streak)
        .filter(
            Streak.id == streak_id,
            Streak.ended_at.is_(None),
            Streak.last_celebrated_milestone_day < milestone_day,
        )
        .update(
            {
                Streak.last_celebrated_milestone_day: milestone_day,
                Streak.updated_at: func.now(),
            },
            synchronize_session=False,
        )
    )


def celebrations_for_streak(db: Session, streak_id: int) -> list[MilestoneCelebration]:
    return (
        db.query(MilestoneCelebration)
        .filter(MilestoneCelebration.streak_id == streak_id)
        .order_by(MilestoneCelebration.milestone_day)
        .all()
    )


# ---------------------------------------------------------------------------
# Check-ins
# ---------------------------------------------------------------------------

def checkin_for_day(db: Session, user_id: int, day: date) -> Optional[CheckIn]:
    return (
        db.query(CheckIn)
        .filter(CheckIn.user_id == user_id, CheckIn.day == day)
        .first()
    )


def checkins_for_user(
    db: Session,
    user_id: int,
    limit: Optional[int] = None,
) -> list[CheckIn]:
    """Newest first."""
    q = (
        db.query(CheckIn)
        .filter(CheckIn.user_id == user_id)
        .order_by(CheckIn.day.desc())
    )
    if limit is not None:
        q = q.limit(limit)
    return q.all()


def count_checkin_days(db: Session, user_id: int, from_day: date, to_day: date) -> int:
    return (
        db.query(func.count(func.distinct(CheckIn.day)))
        .filter(
            CheckIn.user_id == user_id,
            CheckIn.day >= from_day,
            CheckIn.day <= to_day,
        )
        .scalar()
        or 0
    )


# ---------------------------------------------------------------------------
# Journal
# ---------------------------------------------------------------------------

def journal_entries_for_user(
    db: Session,
    user_id: int,
    since: Optional[datetime] = None,
) -> list[JournalEntry]:
    q = db.query(JournalEntry).filter(JournalEntry.user_id == user_id)
    if since is not None:
        q = q.filter(JournalEntry.date >= since)
    return q.order_by(JournalEntry.date.desc()).all()
