"""
Milestone tracker: threshold crossing and exactly-once celebration.

Per streak, each milestone moves locked → reached → celebrated and never
back. A new streak starts with last_celebrated_milestone_day = 0, so every
milestone is locked again.

Celebration policy
------------------
Only the single highest reached milestone is ever pending. If the app was
not opened for two weeks and days 3, 7 and 14 were all crossed, day 14 is
celebrated and 3 and 7 are skipped, not queued.

Exactly-once
------------
mark_celebrated() advances the streak with a compare-and-swap UPDATE
(… WHERE last_celebrated_milestone_day < :day AND ended_at IS NULL) and
inserts a MilestoneCelebration row in the same commit. The row's
(streak_id, milestone_day) unique constraint is the final guard. Marking
the same or a lower day again is a no-op. A day above the streak's current
length is refused, so a milestone cannot skip the reached state.

The notifier is told only after the commit succeeds; its failures are
logged and never undo the celebration.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from streak_engine.core.errors import (
    MilestoneNotReachedError,
    NoActiveStreakError,
    UnknownMilestoneError,
)
from streak_engine.models.milestone_celebration import MilestoneCelebration
from streak_engine.models.streak import Streak
from streak_engine.models.user import User
from streak_engine.services import milestone_catalog as catalog
from streak_engine.services import store
from streak_engine.services.calendar_days import TimezoneLike, ensure_aware, utcnow
from streak_engine.services.milestone_catalog import MilestoneDefinition
from streak_engine.services.notifications import MilestoneNotifier, dispatch_milestone
from streak_engine.services.streak_lifecycle import (
    current_streak_days,
    ensure_streak_if_committed,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MilestoneProgress:
    """Where a streak sits between the previous and the next threshold."""
    current_days: int
    latest: Optional[MilestoneDefinition]
    next: Optional[MilestoneDefinition]
    days_to_next: int
    progress_to_next: float   # 0.0 – 1.0; 1.0 once the catalog is exhausted


# ---------------------------------------------------------------------------
# Pure evaluation
# ---------------------------------------------------------------------------

def reached_milestones(current_days: int) -> list[MilestoneDefinition]:
    return list(catalog.reached(current_days))


def pending_celebration(streak: Streak, current_days: int) -> Optional[MilestoneDefinition]:
    latest = catalog.latest_reached(current_days)
    if latest is None:
        return None
    if latest.day > streak.last_celebrated_milestone_day:
        return latest
    return None


def milestone_progress(current_days: int) -> MilestoneProgress:
    days = max(current_days, 0)
    latest = catalog.latest_reached(days)
    upcoming = catalog.next_after(days)
    if upcoming is None:
        return MilestoneProgress(days, latest, None, 0, 1.0)

    previous = catalog.previous_day(upcoming.day)
    span = upcoming.day - previous
    fraction = min(max((days - previous) / span, 0.0), 1.0)
    return MilestoneProgress(
        current_days=days,
        latest=latest,
        next=upcoming,
        days_to_next=max(upcoming.day - days, 0),
        progress_to_next=fraction,
    )


# ---------------------------------------------------------------------------
# Celebration
# ---------------------------------------------------------------------------

def _record_celebration(
    db: Session,
    streak: Streak,
    milestone: MilestoneDefinition,
    notifier: Optional[MilestoneNotifier],
    now: datetime,
    streak_days: int,
) -> bool:
    """CAS + ledger row. True only if this call moved the streak forward."""
    if streak.ended_at is not None:
        raise NoActiveStreakError(streak.user_id, action="celebrate a milestone")

    streak_id = streak.id
    user_id = streak.user_id

    changed = store.advance_celebrated_day(db, streak_id, milestone.day)
    if not changed:
        db.rollback()
        db.refresh(streak)
        if streak.ended_at is not None:
            raise NoActiveStreakError(user_id, action="celebrate a milestone")
        return False

    db.add(MilestoneCelebration(
        streak_id=streak_id,
        milestone_day=milestone.day,
        streak_days=streak_days,
        celebrated_at=now,
    ))
    recorded = store.commit_unless_conflict(db, "milestone celebration")
    db.refresh(streak)
    if not recorded:
        return False

    logger.info("Celebrated day %d on streak %d for user %d", milestone.day, streak_id, user_id)
    dispatch_milestone(notifier, milestone)
    return True


def mark_celebrated(
    db: Session,
    streak: Streak,
    milestone_day: int,
    notifier: Optional[MilestoneNotifier] = None,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> Streak:
    """
    Record that `milestone_day` has been shown for `streak`. Call it once per
    surfaced celebration, before or while it is shown. Marking a day at or
    below the current marker changes nothing; marking a day the streak has
    not reached raises MilestoneNotReachedError and writes nothing.
    """
    milestone = catalog.definition_for(milestone_day)
    if milestone is None:
        raise UnknownMilestoneError(milestone_day)
    if streak.ended_at is not None:
        raise NoActiveStreakError(streak.user_id, action="celebrate a milestone")
    now = ensure_aware(now or utcnow())
    days = current_streak_days(streak, now, tz)
    if milestone.day > days:
        raise MilestoneNotReachedError(milestone.day, days)
    _record_celebration(db, streak, milestone, notifier, now, streak_days=days)
    return streak


def celebrate_pending(
    db: Session,
    user: User,
    notifier: Optional[MilestoneNotifier] = None,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> Optional[MilestoneDefinition]:
    """
    Foreground hook: ensure the streak, find the pending milestone and mark
    it. Returns the milestone to show, or None. Repeated calls return None
    until a higher threshold is crossed.
    """
    streak = ensure_streak_if_committed(db, user)
    if streak is None:
        return None
    now = ensure_aware(now or utcnow())
    days = current_streak_days(streak, now, tz)
    milestone = pending_celebration(streak, days)
    if milestone is None:
        return None
    if not _record_celebration(db, streak, milestone, notifier, now, streak_days=days):
        return None
    return milestone


def list_celebrations(db: Session, streak: Streak) -> list[MilestoneCelebration]:
    return store.celebrations_for_streak(db, streak.id)
