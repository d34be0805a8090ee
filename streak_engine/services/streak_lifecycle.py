"""
Streak lifecycle: start, continue, reset.

Rules
-----
  * A user without commitment_signed_at has no streak; ensure returns None.
  * At most one active streak (ended_at IS NULL) per user. The DB enforces
    it with a partial unique index; finding two anyway raises
    DuplicateActiveStreakError and nothing is auto-healed.
  * Reset closes the active streak (ended_at, reset_reason, frozen
    length_days) and opens the next one at the same instant, in one commit.
  * History is never deleted, so longest / total only ever grow.

Lengths are calendar-day differences (see calendar_days).

Public API
----------
get_active_streak(db, user_id)                  -> Streak | None
ensure_streak_if_committed(db, user)            -> Streak | None
reset_streak(db, user, reason, now, tz)         -> Streak (the new active one)
current_streak_days(streak, now, tz)            -> int
streak_length_days(streak, now, tz)             -> int
longest_streak_days(streaks, now, tz)           -> int
total_clean_days(streaks, now, tz)              -> int
list_streaks(db, user_id)                       -> list[Streak]
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from streak_engine.core.errors import (
    DuplicateActiveStreakError,
    NoActiveStreakError,
    PersistenceWriteError,
)
from streak_engine.models.streak import ResetReason, Streak
from streak_engine.models.user import User
from streak_engine.services import store
from streak_engine.services.calendar_days import (
    TimezoneLike,
    day_difference,
    ensure_aware,
    resolve_timezone,
    utcnow,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_active_streak(db: Session, user_id: int) -> Optional[Streak]:
    rows = store.active_streaks(db, user_id)
    if len(rows) > 1:
        ids = [s.id for s in rows]
        logger.error("User %d has %d active streaks %s", user_id, len(rows), ids)
        raise DuplicateActiveStreakError(user_id, ids)
    return rows[0] if rows else None


def list_streaks(db: Session, user_id: int) -> list[Streak]:
    return store.streaks_for_user(db, user_id)


# ---------------------------------------------------------------------------
# Ensure (get-or-create)
# ---------------------------------------------------------------------------

def _first_start(db: Session, user: User) -> datetime:
    """
    Start instant for a streak created by ensure. The first streak is
    anchored at the commitment; if history already exists the new streak
    picks up where the last one closed so intervals never overlap.
    """
    previous = store.latest_closed_streak(db, user.id)
    if previous is not None and previous.ended_at is not None:
        return previous.ended_at
    return user.commitment_signed_at


def ensure_streak_if_committed(db: Session, user: User) -> Optional[Streak]:
    """
    Return the active streak, creating it if the user has committed but has
    none. Idempotent; safe on every app foreground.
    """
    if user.commitment_signed_at is None:
        return None

    user_id = user.id
    existing = get_active_streak(db, user_id)
    if existing is not None:
        return existing

    streak = Streak(
        user_id=user_id,
        started_at=_first_start(db, user),
        reset_reason=ResetReason.none,
        last_celebrated_milestone_day=0,
    )
    db.add(streak)
    if not store.commit_unless_conflict(db, "streak creation"):
        # Another writer created it between our read and our insert.
        winner = get_active_streak(db, user_id)
        if winner is None:
            raise PersistenceWriteError("streak creation", reason="conflict without active streak")
        return winner

    db.refresh(streak)
    logger.info("Started streak %d for user %d at %s", streak.id, user_id, streak.started_at)
    return streak


# ---------------------------------------------------------------------------
# Reset
# ---------------------------------------------------------------------------

def reset_streak(
    db: Session,
    user: User,
    reason: str,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> Streak:
    """Close the active streak and open a fresh one starting at `now`."""
    reason = ResetReason(reason)
    if reason is ResetReason.none:
        raise ValueError("reset reason must be 'relapse' or 'manual'")

    now = ensure_aware(now or utcnow())
    zone = resolve_timezone(tz)
    user_id = user.id

    current = get_active_streak(db, user_id)
    if current is None:
        raise NoActiveStreakError(user_id, action="reset the streak")

    closed_id = current.id
    final_length = max(day_difference(current.started_at, now, zone), 0)
    current.ended_at = now
    current.reset_reason = reason
    current.length_days = final_length
    # Free the active slot before inserting its successor.
    store.flush(db, "streak reset")

    fresh = Streak(
        user_id=user_id,
        started_at=now,
        reset_reason=ResetReason.none,
        last_celebrated_milestone_day=0,
    )
    db.add(fresh)
    store.commit(db, "streak reset")
    db.refresh(fresh)

    logger.info(
        "Reset streak %d for user %d (%s) after %d days; new streak %d",
        closed_id, user_id, reason.value, final_length, fresh.id,
    )
    return fresh


# ---------------------------------------------------------------------------
# Lengths
# ---------------------------------------------------------------------------

def current_streak_days(
    streak: Streak,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> int:
    return max(day_difference(streak.started_at, now or utcnow(), tz), 0)


def streak_length_days(
    streak: Streak,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> int:
    """Frozen length for a closed streak, live length for the active one."""
    if streak.ended_at is None:
        return current_streak_days(streak, now, tz)
    if streak.length_days is not None:
        return streak.length_days
    return max(day_difference(streak.started_at, streak.ended_at, tz), 0)


def longest_streak_days(
    streaks: Iterable[Streak],
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> int:
    zone = resolve_timezone(tz)
    now = now or utcnow()
    return max((streak_length_days(s, now, zone) for s in streaks), default=0)


def total_clean_days(
    streaks: Iterable[Streak],
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> int:
    zone = resolve_timezone(tz)
    now = now or utcnow()
    return sum(streak_length_days(s, now, zone) for s in streaks)
