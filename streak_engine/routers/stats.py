"""
Stats router.

GET /users/{id}/home-stats   — HomeStats view model for the dashboard
GET /users/{id}/progress     — milestone progress + rating averages
GET /users/{id}/calendar     — one month of streak / check-in / journal markers
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from streak_engine.db.base import get_db
from streak_engine.models.user import User
from streak_engine.routers.common import Clock, clock_params, iso, load_user
from streak_engine.schemas.common import ErrorResponse
from streak_engine.schemas.stats import (
    CalendarDayResponse,
    CalendarMonthResponse,
    HomeStatsResponse,
    ProgressResponse,
    RatingAveragesResponse,
)
from streak_engine.services.calendar_days import start_of_day
from streak_engine.services.home_stats import get_home_stats
from streak_engine.services.progress import get_calendar_month, get_progress

router = APIRouter(prefix="/users", tags=["stats"])


@router.get(
    "/{user_id}/home-stats",
    response_model=HomeStatsResponse,
    summary="Dashboard stats",
    responses={
        200: {"description": "Projected from stored history; nothing is cached."},
        404: {"model": ErrorResponse, "description": "User not found."},
        422: {"model": ErrorResponse, "description": "Unknown time zone."},
    },
)
def home_stats(
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """
    Ensures the streak first, then projects:

    - **current / longest / total** streak days (calendar days)
    - **has_checked_in_today**, **checkins_this_week**, **checkins_this_streak**
    - **journal_entries_this_week**
    - next milestone and commitment progress

    A user who never committed gets zeros for every streak field.
    """
    stats = get_home_stats(db, user, now=clock.now, tz=clock.zone_for(user))
    return HomeStatsResponse(
        current_streak_days=stats.current_streak_days,
        longest_streak_days=stats.longest_streak_days,
        total_clean_days=stats.total_clean_days,
        has_checked_in_today=stats.has_checked_in_today,
        checkins_this_week=stats.checkins_this_week,
        journal_entries_this_week=stats.journal_entries_this_week,
        last_celebrated_milestone_day=stats.last_celebrated_milestone_day,
        commitment_date=iso(stats.commitment_date),
        commitment_signed_at=iso(stats.commitment_signed_at),
        streak_started_at=iso(stats.streak_started_at),
        display_name=stats.display_name,
        checkins_this_streak=stats.checkins_this_streak,
        today_checkin_score=stats.today_checkin_score,
        next_milestone_day=stats.next_milestone_day,
        days_to_next_milestone=stats.days_to_next_milestone,
        progress_to_next_milestone=stats.progress_to_next_milestone,
        commitment_progress=stats.commitment_progress,
    )


@router.get(
    "/{user_id}/progress",
    response_model=ProgressResponse,
    summary="Milestone progress and rating averages",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def progress(
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """Rating averages are on a 0-100 scale (average rating x 10)."""
    view = get_progress(db, user, now=clock.now, tz=clock.zone_for(user))
    return ProgressResponse(
        current_streak_days=view.current_streak_days,
        latest_milestone_day=view.milestones.latest.day if view.milestones.latest else None,
        next_milestone_day=view.milestones.next.day if view.milestones.next else None,
        days_to_next_milestone=view.milestones.days_to_next,
        progress_to_next_milestone=view.milestones.progress_to_next,
        ratings=RatingAveragesResponse.model_validate(view.ratings),
    )


@router.get(
    "/{user_id}/calendar",
    response_model=CalendarMonthResponse,
    summary="Month calendar",
    responses={404: {"model": ErrorResponse, "description": "User not found."}},
)
def month_calendar(
    year: Optional[int] = Query(default=None, ge=1970, le=9999, examples=[2026]),
    month: Optional[int] = Query(default=None, ge=1, le=12, examples=[3]),
    user: User = Depends(load_user),
    clock: Clock = Depends(clock_params),
    db: Session = Depends(get_db),
):
    """Defaults to the current month in the resolved zone."""
    zone = clock.zone_for(user)
    today = start_of_day(clock.now, zone)
    year = year or today.year
    month = month or today.month
    days = get_calendar_month(db, user, year, month, now=clock.now, tz=zone)
    return CalendarMonthResponse(
        year=year,
        month=month,
        days=[
            CalendarDayResponse(
                day=d.day.isoformat(),
                is_today=d.is_today,
                is_future=d.is_future,
                in_streak=d.in_streak,
                streak_day=d.streak_day,
                milestone_day=d.milestone_day,
                checkin_score=d.checkin_score,
                stayed_clean=d.stayed_clean,
                journal_count=d.journal_count,
            )
            for d in days
        ],
    )
