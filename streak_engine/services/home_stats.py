"""
Aggregate stats projector: the HomeStats view model every screen reads.

project_home_stats() is a pure function of (user, history, now, tz): no
queries, no writes, no cache. get_home_stats() is the loader that ensures
the streak, pulls the history from the store and delegates.

A user who never committed gets zeros for every streak-derived field;
has_checked_in_today is evaluated regardless.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from streak_engine.core.config import settings
from streak_engine.core.errors import DuplicateActiveStreakError
from streak_engine.models.checkin import CheckIn
from streak_engine.models.journal_entry import JournalEntry
from streak_engine.models.streak import Streak
from streak_engine.models.user import User
from streak_engine.services import store
from streak_engine.services.calendar_days import (
    TimezoneLike,
    day_difference,
    day_window,
    ensure_aware,
    local_midnight,
    resolve_timezone,
    start_of_day,
    utcnow,
)
from streak_engine.services.checkin_ledger import checkin_score
from streak_engine.services.milestone_tracker import milestone_progress
from streak_engine.services.streak_lifecycle import (
    current_streak_days,
    ensure_streak_if_committed,
    longest_streak_days,
    total_clean_days,
)


@dataclass(frozen=True)
class HomeStats:
    current_streak_days: int
    longest_streak_days: int
    total_clean_days: int
    has_checked_in_today: bool
    checkins_this_week: int
    journal_entries_this_week: int
    last_celebrated_milestone_day: int
    commitment_date: Optional[date]
    commitment_signed_at: Optional[datetime]
    streak_started_at: Optional[datetime]
    display_name: Optional[str]
    checkins_this_streak: int
    today_checkin_score: Optional[int]
    next_milestone_day: Optional[int]
    days_to_next_milestone: int
    progress_to_next_milestone: float
    commitment_progress: Optional[float]


def _active(user: User, streaks: Sequence[Streak]) -> Optional[Streak]:
    active = [s for s in streaks if s.ended_at is None]
    if len(active) > 1:
        raise DuplicateActiveStreakError(user.id, [s.id for s in active])
    return active[0] if active else None


def _commitment_progress(
    user: User, current_days: int, tz: TimezoneLike
) -> Optional[float]:
    if user.commitment_date is None or user.commitment_signed_at is None:
        return None
    target = day_difference(
        user.commitment_signed_at, local_midnight(user.commitment_date, tz), tz
    )
    if target <= 0:
        return 1.0
    return min(current_days / target, 1.0)


def project_home_stats(
    user: User,
    streaks: Sequence[Streak],
    checkins: Iterable[CheckIn],
    journal_entries: Iterable[JournalEntry],
    now: datetime,
    tz: TimezoneLike = None,
) -> HomeStats:
    zone = resolve_timezone(tz)
    now = ensure_aware(now)
    today = start_of_day(now, zone)
    week_start, week_end = day_window(today, settings.WEEK_WINDOW_DAYS)

    by_day: dict[date, CheckIn] = {c.day: c for c in checkins}
    todays = by_day.get(today)
    checkins_this_week = sum(1 for d in by_day if week_start <= d <= week_end)
    journal_this_week = sum(
        1 for e in journal_entries
        if week_start <= start_of_day(e.date, zone) <= week_end
    )

    active = _active(user, streaks) if user.commitment_signed_at is not None else None
    if active is None:
        current = 0
        checkins_this_streak = 0
    else:
        current = current_streak_days(active, now, zone)
        first_day = start_of_day(active.started_at, zone)
        checkins_this_streak = sum(1 for d in by_day if first_day <= d <= today)

    committed = user.commitment_signed_at is not None
    progress = milestone_progress(current)

    return HomeStats(
        current_streak_days=current,
        longest_streak_days=longest_streak_days(streaks, now, zone) if committed else 0,
        total_clean_days=total_clean_days(streaks, now, zone) if committed else 0,
        has_checked_in_today=todays is not None,
        checkins_this_week=checkins_this_week,
        journal_entries_this_week=journal_this_week,
        last_celebrated_milestone_day=active.last_celebrated_milestone_day if active else 0,
        commitment_date=user.commitment_date,
        commitment_signed_at=user.commitment_signed_at,
        streak_started_at=active.started_at if active else None,
        display_name=user.display_name,
        checkins_this_streak=checkins_this_streak,
        today_checkin_score=checkin_score(todays) if todays is not None else None,
        next_milestone_day=progress.next.day if active and progress.next else None,
        days_to_next_milestone=progress.days_to_next if active else 0,
        progress_to_next_milestone=progress.progress_to_next if active else 0.0,
        commitment_progress=_commitment_progress(user, current, zone) if active else None,
    )


def get_home_stats(
    db: Session,
    user: User,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> HomeStats:
    """Ensure the streak first so the stats reflect the current state."""
    now = ensure_aware(now or utcnow())
    ensure_streak_if_committed(db, user)
    # One spare day covers zones ahead of UTC at the window's edge.
    since = now - timedelta(days=settings.WEEK_WINDOW_DAYS + 1)
    return project_home_stats(
        user=user,
        streaks=store.streaks_for_user(db, user.id),
        checkins=store.checkins_for_user(db, user.id),
        journal_entries=store.journal_entries_for_user(db, user.id, since=since),
        now=now,
        tz=tz,
    )
