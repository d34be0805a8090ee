"""
Milestones router.

GET  /milestones                                — the static catalog
GET  /users/{id}/milestones                     — catalog with locked / reached / celebrated
GET  /users/{id}/milestones/pending             — milestone to celebrate now, or null
POST /users/{id}/milestones/{day}/celebrate     — mark a milestone as shown
POST /users/{id}/milestones/celebrate-pending   — ensure + pending + mark in one call
GET  /users/{id}/milestones/celebrations        — celebration ledger of the active streak
"""
from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from streak_engine.core.errors import NoActiveStreakError
from streak_engine.db.base import get_db
from streak_engine.models.milestone_celebration import MilestoneCelebration
from streak_engine.models.user import User
from streak_engine.routers.common import Clock, clock_params, load_user, streak_to_response
from streak_engine.schemas.common import ErrorResponse
from streak_engine.schemas.milestones import (
    CelebrationResponse,
    MilestoneBoardResponse,
    MilestoneResponse,
    MilestoneStatusResponse,
    PendingMilestoneResponse,
)
from streak_engine.schemas.streaks import StreakResponse
from streak_engine.services import milestone_catalog as catalog
from streak_engine.services.milestone_catalog import MilestoneDefinition
from streak_engine.services.milestone_tracker import (
    celebrate_pending,
    list_celebrations,
    mark_celebrated,
    milestone_progress,
    pending_celebration,
)
from streak_engine.services.notifications import MilestoneNotifier, get_notifier
from streak_engine.services.streak_lifecycle import current_streak_days, get_active_streak

router = APIRouter(tags=["milestones"])


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------

def _milestone_fields(m: MilestoneDefinition) -> dict:
    return {
        "day": m.day,
        "title": m.title,
        "display_name": m.display_name,
        "meaning": m.meaning,
        "verse": m.verse or "",
        "verse_reference": m.verse_reference or "",
        "icon": m.icon,
        "colors": list(m.colors),
        "is_major": m.day in catalog.MAJOR_DAYS,
    }


def _milestone_to_response(m: MilestoneDefinition) -> MilestoneResponse:
    return MilestoneResponse(**_milestone_fields(m))


def _status(day: int, current_days: int, celebrated_day: int) -> str:
    if day <= celebrated_day:
        return "celebrated"
    if day <= current_days:
        return "reached"
    return "locked"


def _celebration_to_response(row: MilestoneCelebration) -> CelebrationResponse:
    return CelebrationResponse(
        id=row.id,
        streak_id=row.streak_id,
        milestone_day=row.milestone_day,
        streak_days=row.streak_days,
        celebrated_at=row.celebrated_at.isoformat(),
    )


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

@router.get(
    "/milestones",
    response_model=list[MilestoneResponse],
    summary="Milestone catalog (ascending by day)",
)
def list_catalog():
    """Static. Day 0 is never a milestone."""
    return [_milestone_to_response(m) for m in catalog.MILESTONES]


# ---------------------------------------------------------------------------
# Per-user board
# ---------------------------------------------------------------------------

@router.get(
    "/users/{user_id}/milestones",
    response_model=MilestoneBoardResponse,
    summary="Milestones with their state for the active streak",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def board(
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """
    | Status | Meaning |
    |---|---|
    | `locked`     | threshold not reached in this streak |
    | `reached`    | reached but not celebrated |
    | `celebrated` | at or below the streak's celebrated marker |

    Skipped thresholds below a celebrated one count as celebrated.
    """
    streak = get_active_streak(db, user.id)
    days = current_streak_days(streak, clock.now, clock.zone_for(user)) if streak else 0
    celebrated = streak.last_celebrated_milestone_day if streak else 0
    progress = milestone_progress(days)
    return MilestoneBoardResponse(
        current_streak_days=days,
        last_celebrated_milestone_day=celebrated,
        next_milestone_day=progress.next.day if progress.next else None,
        days_to_next_milestone=progress.days_to_next,
        progress_to_next_milestone=progress.progress_to_next,
        items=[
            MilestoneStatusResponse(
                **_milestone_fields(m), status=_status(m.day, days, celebrated)
            )
            for m in catalog.MILESTONES
        ],
    )


@router.get(
    "/users/{user_id}/milestones/pending",
    response_model=PendingMilestoneResponse,
    summary="Milestone waiting to be celebrated",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def pending(
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """
    Read-only. Returns the same milestone on every call until it is marked
    celebrated. Only the highest reached threshold is ever pending.
    """
    streak = get_active_streak(db, user.id)
    if streak is None:
        return PendingMilestoneResponse(milestone=None)
    days = current_streak_days(streak, clock.now, clock.zone_for(user))
    milestone = pending_celebration(streak, days)
    return PendingMilestoneResponse(
        milestone=_milestone_to_response(milestone) if milestone else None
    )


@router.post(
    "/users/{user_id}/milestones/{day}/celebrate",
    response_model=StreakResponse,
    summary="Mark a milestone as celebrated",
    responses={
        200: {"description": "Marker advanced, or unchanged if already at or past `day`."},
        404: {"model": ErrorResponse, "description": "User or milestone not found."},
        409: {"model": ErrorResponse, "description": "No active streak, or milestone not reached yet."},
        503: {"model": ErrorResponse, "description": "Celebration could not be persisted."},
    },
)
def celebrate(
    day: int,
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    notifier: MilestoneNotifier = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """**Idempotent**: marking the same or a lower day again changes nothing."""
    streak = get_active_streak(db, user.id)
    if streak is None:
        raise NoActiveStreakError(user.id, action="celebrate a milestone")
    zone = clock.zone_for(user)
    streak = mark_celebrated(db, streak, day, notifier=notifier, now=clock.now, tz=zone)
    return streak_to_response(streak, clock.now, zone)


@router.post(
    "/users/{user_id}/milestones/celebrate-pending",
    response_model=PendingMilestoneResponse,
    summary="Celebrate whatever is pending",
    responses={
        200: {"description": "The milestone to show now, or null if nothing is pending."},
        404: {"model": ErrorResponse, "description": "User not found."},
        503: {"model": ErrorResponse, "description": "Celebration could not be persisted."},
    },
)
def celebrate_now(
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    notifier: MilestoneNotifier = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """
    Foreground helper: ensures the streak, then marks the pending milestone.
    A second call returns null until a higher threshold is crossed.
    """
    milestone = celebrate_pending(
        db, user, notifier=notifier, now=clock.now, tz=clock.zone_for(user)
    )
    return PendingMilestoneResponse(
        milestone=_milestone_to_response(milestone) if milestone else None
    )


@router.get(
    "/users/{user_id}/milestones/celebrations",
    response_model=list[CelebrationResponse],
    summary="Celebrations recorded for the active streak",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def celebrations(
    user: User = Depends(load_user),
    db: Session = Depends(get_db),
):
    streak = get_active_streak(db, user.id)
    if streak is None:
        return []
    return [_celebration_to_response(row) for row in list_celebrations(db, streak)]
