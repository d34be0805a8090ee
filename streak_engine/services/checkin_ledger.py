"""
Check-in ledger: one canonical check-in per user per calendar day.

Submissions are bucketed into start_of_day(now, tz). A second submission on
the same day overwrites the existing row in place (same id, refreshed
`date`); it never creates a duplicate. The (user_id, day) unique constraint
backs this when two first-submissions race.

Ratings are validated before anything touches the session.

Check-ins dated before the active streak started stay in the ledger as
history; they only drop out of "this streak" counts.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from streak_engine.core.errors import InvalidRatingRangeError, PersistenceWriteError
from streak_engine.models.checkin import CheckIn, RATING_FIELDS, RATING_MAX, RATING_MIN
from streak_engine.models.user import User
from streak_engine.services import store
from streak_engine.services.calendar_days import (
    TimezoneLike,
    ensure_aware,
    resolve_timezone,
    start_of_day,
    utcnow,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Input types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Ratings:
    mood: int
    energy: int
    confidence: int
    faith: int
    self_control: int

    def as_columns(self) -> dict[str, int]:
        return dict(zip(
            RATING_FIELDS,
            (self.mood, self.energy, self.confidence, self.faith, self.self_control),
        ))


@dataclass(frozen=True)
class Reflections:
    progress: Optional[str] = None
    journey: Optional[str] = None
    gratitude: Optional[str] = None

    def as_columns(self) -> dict[str, Optional[str]]:
        return {
            "progress_reflection": self.progress,
            "journey_reflection": self.journey,
            "gratitude": self.gratitude,
        }


@dataclass
class SubmitResult:
    checkin: CheckIn
    created: bool   # False when an existing same-day check-in was overwritten


def validate_ratings(ratings: Ratings) -> None:
    for field, value in ratings.as_columns().items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidRatingRangeError(field, value, RATING_MIN, RATING_MAX)
        if not RATING_MIN <= value <= RATING_MAX:
            raise InvalidRatingRangeError(field, value, RATING_MIN, RATING_MAX)


def checkin_score(checkin: CheckIn) -> int:
    """Overall score as a percentage of the 50-point maximum."""
    total = sum(getattr(checkin, f) for f in RATING_FIELDS)
    return min(total * 100 // (RATING_MAX * len(RATING_FIELDS)), 100)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_checkin(db: Session, user: User, day: date) -> Optional[CheckIn]:
    """Lookup by calendar day, not by timestamp."""
    return store.checkin_for_day(db, user.id, day)


def has_checked_in_today(
    db: Session,
    user: User,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> bool:
    return get_checkin(db, user, start_of_day(now or utcnow(), tz)) is not None


def checkins_in_range(db: Session, user: User, from_day: date, to_day: date) -> int:
    """Distinct days with a check-in in [from_day, to_day]."""
    if from_day > to_day:
        return 0
    return store.count_checkin_days(db, user.id, from_day, to_day)


def checkins_since(
    db: Session,
    user: User,
    started_at: datetime,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> int:
    """Check-in days from the streak's first day through today."""
    zone = resolve_timezone(tz)
    return checkins_in_range(
        db, user, start_of_day(started_at, zone), start_of_day(now or utcnow(), zone)
    )


def list_checkins(db: Session, user: User, limit: Optional[int] = 30) -> list[CheckIn]:
    return store.checkins_for_user(db, user.id, limit=limit)


# ---------------------------------------------------------------------------
# Submit
# ---------------------------------------------------------------------------

def _apply(checkin: CheckIn, ratings: Ratings, reflections: Reflections,
           stayed_clean: bool, now: datetime) -> None:
    for column, value in ratings.as_columns().items():
        setattr(checkin, column, value)
    for column, value in reflections.as_columns().items():
        setattr(checkin, column, value)
    checkin.stayed_clean = stayed_clean
    checkin.date = now


def submit_checkin(
    db: Session,
    user: User,
    ratings: Ratings,
    reflections: Optional[Reflections] = None,
    stayed_clean: bool = True,
    now: Optional[datetime] = None,
    tz: TimezoneLike = None,
) -> SubmitResult:
    """Create today's check-in, or overwrite it if one already exists."""
    validate_ratings(ratings)
    reflections = reflections or Reflections()
    now = ensure_aware(now or utcnow())
    day = start_of_day(now, tz)
    user_id = user.id

    existing = store.checkin_for_day(db, user_id, day)
    if existing is None:
        fresh = CheckIn(user_id=user_id, day=day)
        _apply(fresh, ratings, reflections, stayed_clean, now)
        db.add(fresh)
        if store.commit_unless_conflict(db, "check-in"):
            db.refresh(fresh)
            logger.info("Recorded check-in %d for user %d on %s", fresh.id, user_id, day)
            return SubmitResult(checkin=fresh, created=True)
        # Lost a race with a concurrent first submission; overwrite theirs.
        existing = store.checkin_for_day(db, user_id, day)
        if existing is None:
            raise PersistenceWriteError("check-in", reason="conflict without existing row")

    _apply(existing, ratings, reflections, stayed_clean, now)
    store.commit(db, "check-in")
    db.refresh(existing)
    logger.info("Updated check-in %d for user %d on %s", existing.id, user_id, day)
    return SubmitResult(checkin=existing, created=False)
