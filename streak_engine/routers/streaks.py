"""
Streaks router.

POST /users/{id}/streak/ensure  — foreground hook: get-or-create the active streak
GET  /users/{id}/streak         — the active streak, or null
GET  /users/{id}/streaks        — full history with longest / total
POST /users/{id}/streak/reset   — close the active streak and start a new one
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from streak_engine.db.base import get_db
from streak_engine.models.user import User
from streak_engine.routers.common import Clock, clock_params, load_user, streak_to_response
from streak_engine.schemas.common import ErrorResponse
from streak_engine.schemas.streaks import (
    ResetRequest,
    ResetResponse,
    StreakHistoryResponse,
    StreakResponse,
)
from streak_engine.services import store
from streak_engine.services.streak_lifecycle import (
    ensure_streak_if_committed,
    get_active_streak,
    list_streaks,
    longest_streak_days,
    reset_streak,
    total_clean_days,
)

router = APIRouter(prefix="/users", tags=["streaks"])


@router.post(
    "/{user_id}/streak/ensure",
    response_model=Optional[StreakResponse],
    summary="Ensure the active streak exists",
    responses={
        200: {"description": "The active streak, or null if the user never committed."},
        404: {"model": ErrorResponse, "description": "User not found."},
        500: {"model": ErrorResponse, "description": "Duplicate active streaks detected."},
    },
)
def ensure(
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """
    Call on every app foreground. **Idempotent**: only the first call after
    signing (or after history without an active streak) creates a row.
    """
    streak = ensure_streak_if_committed(db, user)
    if streak is None:
        return None
    return streak_to_response(streak, clock.now, clock.zone_for(user))


@router.get(
    "/{user_id}/streak",
    response_model=Optional[StreakResponse],
    summary="Get the active streak",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read_active(
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """Read-only; returns null when there is no active streak."""
    streak = get_active_streak(db, user.id)
    if streak is None:
        return None
    return streak_to_response(streak, clock.now, clock.zone_for(user))


@router.get(
    "/{user_id}/streaks",
    response_model=StreakHistoryResponse,
    summary="Streak history (oldest first)",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def history(
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    zone = clock.zone_for(user)
    streaks = list_streaks(db, user.id)
    return StreakHistoryResponse(
        total=len(streaks),
        longest_streak_days=longest_streak_days(streaks, clock.now, zone),
        total_clean_days=total_clean_days(streaks, clock.now, zone),
        items=[streak_to_response(s, clock.now, zone) for s in streaks],
    )


@router.post(
    "/{user_id}/streak/reset",
    response_model=ResetResponse,
    summary="Reset the streak (relapse or manual)",
    responses={
        200: {"description": "Old streak closed, new streak started at `now`."},
        404: {"model": ErrorResponse, "description": "User not found."},
        409: {"model": ErrorResponse, "description": "No active streak to reset."},
        503: {"model": ErrorResponse, "description": "Reset could not be persisted."},
    },
)
def reset(
    payload: ResetRequest,
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """
    Closes the active streak and opens the next one in a single commit.
    History is kept: longest and total clean days never go down.
    """
    zone = clock.zone_for(user)
    fresh = reset_streak(db, user, payload.reason, now=clock.now, tz=zone)
    closed = store.latest_closed_streak(db, user.id)
    return ResetResponse(
        closed=streak_to_response(closed, clock.now, zone),
        streak=streak_to_response(fresh, clock.now, zone),
    )
