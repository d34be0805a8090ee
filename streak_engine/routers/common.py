"""
Request helpers shared by the routers.

Every endpoint that depends on "today" takes the same two query params:
`tz` (IANA key) and `now` (client instant). The zone falls back to the
user's stored zone, then to settings.DEFAULT_TIMEZONE.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from streak_engine.db.base import get_db
from streak_engine.models.streak import Streak
from streak_engine.models.user import User
from streak_engine.schemas.streaks import StreakResponse
from streak_engine.services.calendar_days import ensure_aware, resolve_timezone, utcnow
from streak_engine.services.streak_lifecycle import streak_length_days
from streak_engine.services.users import get_user


@dataclass
class Clock:
    now: datetime
    tz: Optional[str]

    def zone_for(self, user: User) -> ZoneInfo:
        return resolve_timezone(self.tz or user.timezone)


def clock_params(
    tz: Optional[str] = Query(
        default=None,
        description="IANA zone of the device. Falls back to the user's stored zone.",
        examples=["America/New_York"],
    ),
    now: Optional[datetime] = Query(
        default=None,
        description="Client instant (ISO 8601). Defaults to server time; naive values are UTC.",
        examples=["2026-03-08T12:00:00+00:00"],
    ),
) -> Clock:
    return Clock(now=ensure_aware(now) if now else utcnow(), tz=tz)


def load_user(user_id: int, db: Session = Depends(get_db)) -> User:
    """Path dependency: 404 USER_NOT_FOUND for unknown ids."""
    return get_user(db, user_id)


def iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def streak_to_response(streak: Streak, now: datetime, zone: ZoneInfo) -> StreakResponse:
    return StreakResponse(
        id=streak.id,
        started_at=streak.started_at.isoformat(),
        ended_at=iso(streak.ended_at),
        is_active=streak.is_active,
        reset_reason=getattr(streak.reset_reason, "value", streak.reset_reason),
        length_days=streak_length_days(streak, now, zone),
        last_celebrated_milestone_day=streak.last_celebrated_milestone_day,
    )
