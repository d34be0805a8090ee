"""
Check-ins router.

POST /users/{id}/checkins            — submit today's check-in (201 new / 200 overwrite)
GET  /users/{id}/checkins            — recent check-ins, newest first
GET  /users/{id}/checkins/today      — today's check-in, or null
GET  /users/{id}/checkins/day/{day}  — check-in for a calendar day, or null
GET  /users/{id}/checkins/count      — distinct check-in days in a range
"""
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from streak_engine.core.config import settings
from streak_engine.db.base import get_db
from streak_engine.models.checkin import CheckIn
from streak_engine.models.user import User
from streak_engine.routers.common import Clock, clock_params, load_user
from streak_engine.schemas.checkins import CheckInListResponse, CheckInRequest, CheckInResponse
from streak_engine.schemas.common import CountResponse, ErrorResponse
from streak_engine.services.calendar_days import start_of_day
from streak_engine.services.checkin_ledger import (
    Ratings,
    Reflections,
    checkin_score,
    checkins_in_range,
    checkins_since,
    get_checkin,
    list_checkins,
    submit_checkin,
)
from streak_engine.services.streak_lifecycle import get_active_streak

router = APIRouter(prefix="/users", tags=["checkins"])


# ---------------------------------------------------------------------------
# Serialization helper
# ---------------------------------------------------------------------------

def _checkin_to_response(checkin: CheckIn) -> CheckInResponse:
    return CheckInResponse(
        id=checkin.id,
        day=checkin.day.isoformat(),
        date=checkin.date.isoformat(),
        mood_rating=checkin.mood_rating,
        energy_rating=checkin.energy_rating,
        confidence_rating=checkin.confidence_rating,
        faith_rating=checkin.faith_rating,
        self_control_rating=checkin.self_control_rating,
        score=checkin_score(checkin),
        stayed_clean=checkin.stayed_clean,
        progress_reflection=checkin.progress_reflection,
        journey_reflection=checkin.journey_reflection,
        gratitude=checkin.gratitude,
    )


# ---------------------------------------------------------------------------
# POST /users/{id}/checkins
# ---------------------------------------------------------------------------

@router.post(
    "/{user_id}/checkins",
    response_model=CheckInResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit today's check-in",
    responses={
        200: {"description": "Today's existing check-in was overwritten."},
        201: {"description": "First check-in of the day recorded."},
        404: {"model": ErrorResponse, "description": "User not found."},
        422: {"model": ErrorResponse, "description": "Rating outside 1-10 or bad time zone."},
        503: {"model": ErrorResponse, "description": "Check-in could not be persisted."},
    },
)
def submit(
    payload: CheckInRequest,
    response: Response,
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """
    One check-in per local calendar day. Submitting again the same day
    replaces the ratings and reflections of the existing row (same `id`).

    `stayed_clean: false` is stored but does **not** reset the streak.
    """
    result = submit_checkin(
        db,
        user,
        ratings=Ratings(
            mood=payload.mood_rating,
            energy=payload.energy_rating,
            confidence=payload.confidence_rating,
            faith=payload.faith_rating,
            self_control=payload.self_control_rating,
        ),
        reflections=Reflections(
            progress=payload.progress_reflection,
            journey=payload.journey_reflection,
            gratitude=payload.gratitude,
        ),
        stayed_clean=payload.stayed_clean,
        now=clock.now,
        tz=clock.zone_for(user),
    )
    if not result.created:
        response.status_code = status.HTTP_200_OK
    return _checkin_to_response(result.checkin)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

@router.get(
    "/{user_id}/checkins",
    response_model=CheckInListResponse,
    summary="Recent check-ins (newest first)",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def list_recent(
    limit: int = Query(
        default=settings.CHECKIN_HISTORY_LIMIT, ge=1, le=366, description="Page size."
    ),
    user: User = Depends(load_user),
    db: Session = Depends(get_db),
):
    items = list_checkins(db, user, limit=limit)
    return CheckInListResponse(
        total=len(items),
        items=[_checkin_to_response(c) for c in items],
    )


@router.get(
    "/{user_id}/checkins/today",
    response_model=Optional[CheckInResponse],
    summary="Today's check-in, or null",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read_today(
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """'Today' is the calendar day of `now` in the resolved zone."""
    checkin = get_checkin(db, user, start_of_day(clock.now, clock.zone_for(user)))
    return _checkin_to_response(checkin) if checkin else None


@router.get(
    "/{user_id}/checkins/count",
    response_model=CountResponse,
    summary="Distinct check-in days in a range",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def count(
    from_day: Optional[date] = Query(
        default=None,
        description="First day (inclusive). Defaults to the active streak's first day.",
        examples=["2026-03-01"],
    ),
    to_day: Optional[date] = Query(
        default=None,
        description="Last day (inclusive). Defaults to today.",
        examples=["2026-03-31"],
    ),
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """
    Without `from_day` this is the "check-ins this streak" count: days
    before the active streak started are not counted. A user with no
    active streak gets 0.
    """
    zone = clock.zone_for(user)
    if from_day is None:
        streak = get_active_streak(db, user.id)
        if streak is None:
            return CountResponse(count=0)
        if to_day is None:
            return CountResponse(
                count=checkins_since(db, user, streak.started_at, now=clock.now, tz=zone)
            )
        from_day = start_of_day(streak.started_at, zone)
    if to_day is None:
        to_day = start_of_day(clock.now, zone)
    return CountResponse(count=checkins_in_range(db, user, from_day, to_day))


@router.get(
    "/{user_id}/checkins/day/{day}",
    response_model=Optional[CheckInResponse],
    summary="Check-in for a calendar day, or null",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read_day(
    day: date,
    user: User = Depends(load_user),
    db: Session = Depends(get_db),
):
    checkin = get_checkin(db, user, day)
    return _checkin_to_response(checkin) if checkin else None
