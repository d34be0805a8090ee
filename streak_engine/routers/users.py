"""
Users router.

POST /users                    — create a user
GET  /users/{id}               — fetch a user
PUT  /users/{id}/timezone      — store the device zone
POST /users/{id}/commitment    — sign the commitment (starts the first streak)
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from streak_engine.db.base import get_db
from streak_engine.models.user import User
from streak_engine.routers.common import Clock, clock_params, iso, load_user, streak_to_response
from streak_engine.schemas.common import ErrorResponse
from streak_engine.schemas.users import (
    CommitmentRequest,
    CommitmentResponse,
    CreateUserRequest,
    TimezoneRequest,
    UserResponse,
)
from streak_engine.services.calendar_days import ensure_aware
from streak_engine.services.users import create_user, sign_commitment, update_timezone

router = APIRouter(prefix="/users", tags=["users"])


# ---------------------------------------------------------------------------
# Serialization helper
# ---------------------------------------------------------------------------

def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        display_name=user.display_name,
        timezone=user.timezone,
        commitment_signed_at=iso(user.commitment_signed_at),
        commitment_date=iso(user.commitment_date),
        created_at=iso(user.created_at) or "",
    )


# ---------------------------------------------------------------------------
# POST /users
# ---------------------------------------------------------------------------

@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    responses={422: {"model": ErrorResponse, "description": "Unknown time zone."}},
)
def create(payload: CreateUserRequest, db: Session = Depends(get_db)):
    """A new user has no commitment and therefore no streak."""
    user = create_user(db, display_name=payload.display_name, timezone=payload.timezone)
    return _user_to_response(user)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    summary="Fetch a user",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def read(user: User = Depends(load_user)):
    return _user_to_response(user)


@router.put(
    "/{user_id}/timezone",
    response_model=UserResponse,
    summary="Store the device time zone",
    responses={
        404: {"model": ErrorResponse, "description": "User not found."},
        422: {"model": ErrorResponse, "description": "Unknown time zone."},
    },
)
def set_timezone(
    payload: TimezoneRequest,
    user: User = Depends(load_user),
    db: Session = Depends(get_db),
):
    """
    The stored zone is only a fallback for requests that carry no `tz`.
    Changing it re-buckets "today" on the next read; nothing is rewritten.
    """
    return _user_to_response(update_timezone(db, user, payload.timezone))


# ---------------------------------------------------------------------------
# POST /users/{id}/commitment
# ---------------------------------------------------------------------------

@router.post(
    "/{user_id}/commitment",
    response_model=CommitmentResponse,
    summary="Sign the commitment",
    responses={
        200: {"description": "Commitment stored; the active streak is returned."},
        404: {"model": ErrorResponse, "description": "User not found."},
        503: {"model": ErrorResponse, "description": "Could not persist the commitment."},
    },
)
def sign(
    payload: CommitmentRequest,
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """
    The first signing instant anchors the first streak. Signing again keeps
    that instant and only updates `target_date`.
    """
    now = ensure_aware(payload.now) if payload.now else clock.now
    streak = sign_commitment(db, user, target_date=payload.target_date, now=now)
    zone = clock.zone_for(user)
    return CommitmentResponse(
        user=_user_to_response(user),
        streak=streak_to_response(streak, now, zone) if streak else None,
    )
