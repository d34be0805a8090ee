"""
Progress projections: rating averages and the month calendar.

Both are pure functions over explicit inputs. get_progress() and
get_calendar_month() are the loaders used by the stats router.
"""
from __future__ import annotations

import calendar
from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Optional, Sequence

from sqlalchemy.orm import Session

from streak_engine.models.checkin import CheckIn, RATING_FIELDS
from streak_engine.models.journal_entry import JournalEntry
from streak_engine.models.streak import Streak
from streak_engine.models.user import User
from streak_engine.services import milestone_catalog as catalog
from streak_engine.services import store
from streak_engine.services.calendar_days import (
    TimezoneLike,
    ensure_aware,
    local_midnight,
    resolve_timezone,
    start_of_day,
    utcnow,
)
from streak_engine.services.checkin_ledger import checkin_score
from streak_engine.services.milestone_tracker import MilestoneProgress, milestone_progress
from streak_engine.services.streak_lifecycle import (
    current_streak_days,
    ensure_streak_if_committed,
)


@dataclass(frozen=True)
class RatingAverages:
    """Per-dimension averages on a 0-100 scale."""
    mood: int
    energy: int
    confidence: int
    faith: int
    self_control: int
    sample_size: int


@dataclass(frozen=True)
class CalendarDay:
    day: date
    is_today: bool
    is_future: bool
    in_streak: bool
    streak_day: Optional[int]
    milestone_day: Optional[int]
    checkin_score: Optional[int]
    stayed_clean: Optional[bool]
    journal_count: int


@dataclass(frozen=True)
class ProgressView:
    current_streak_days: int
    milestones: MilestoneProgress
    ratings: RatingAverages


def _scaled_average(values: Sequence[int]) -> int:
    if not values:
        return 0
    return min(sum(values) * 10 // len(values), 100)


def rating_averages(checkins: Iterable[CheckIn]) -> RatingAverages:
    rows = list(checkins)
    columns = {f: [getattr(c, f) for c in rows] for f in RATING_FIELDS}
    return RatingAverages(
        mood=_scaled_average(columns["mood_rating"]),
        energy=_scaled_average(columns["energy_rating"]),
        confidence=_scaled_average(columns["confidence_rating"]),
        faith=_scaled_average(columns["faith_rating"]),
        self_control=_scaled_average(columns["self_control_rating"]),
        sample_size=len(rows),
    )


def calendar_month(
    user: User,
    year: int,
    month: int,
    streak: Optional[Streak],
    checkins: Iterable[CheckIn],
    journal_entries: Iterable[JournalEntry],
    now: datetime,
    tz: TimezoneLike = None,
) -> list[CalendarDay]:
    """
    One CalendarDay per day of the month. streak_day counts calendar days
    from the active streak's first day and is also filled for future days;
    milestone_day only marks thresholds that are not in the future.
    """
    zone = resolve_timezone(tz)
    today = start_of_day(ensure_aware(now), zone)
    first_streak_day = start_of_day(streak.started_at, zone) if streak else None

    by_day = {c.day: c for c in checkins if c.user_id == user.id}
    journal_counts = Counter(start_of_day(e.date, zone) for e in journal_entries)

    _, length = calendar.monthrange(year, month)
    days: list[CalendarDay] = []
    for offset in range(length):
        day = date(year, month, 1) + timedelta(days=offset)
        is_future = day > today

        streak_day = None
        if first_streak_day is not None and day >= first_streak_day:
            streak_day = (day - first_streak_day).days

        milestone_day = None
        if streak_day is not None and not is_future and catalog.definition_for(streak_day):
            milestone_day = streak_day

        checkin = by_day.get(day)
        days.append(CalendarDay(
            day=day,
            is_today=day == today,
            is_future=is_future,
            in_streak=streak_day is not None and not is_future,
            streak_day=streak_day,
            milestone_day=milestone_day,
            checkin_score=checkin_score(checkin) if checkin else None,
            stayed_clean=checkin.stayed_clean if checkin else None,
            journal_count=journal_counts.get(day, 0),
        ))
    return days


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------

def get_progress(
    db: Session,
    user: User,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> ProgressView:
    now = ensure_aware(now or utcnow())
    streak = ensure_streak_if_committed(db, user)
    days = current_streak_days(streak, now, tz) if streak else 0
    return ProgressView(
        current_streak_days=days,
        milestones=milestone_progress(days),
        ratings=rating_averages(store.checkins_for_user(db, user.id)),
    )


def get_calendar_month(
    db: Session,
    user: User,
    year: int,
    month: int,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> list[CalendarDay]:
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    now = ensure_aware(now or utcnow())
    zone = resolve_timezone(tz)
    streak = ensure_streak_if_committed(db, user)
    # One day of slack for zones ahead of UTC.
    since = local_midnight(date(year, month, 1), zone) - timedelta(days=1)
    return calendar_month(
        user, year, month, streak,
        checkins=store.checkins_for_user(db, user.id),
        journal_entries=store.journal_entries_for_user(db, user.id, since=since),
        now=now,
        tz=zone,
    )
