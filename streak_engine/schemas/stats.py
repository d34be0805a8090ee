"""
Aggregate stats schemas.

GET /users/{id}/home-stats   → HomeStatsResponse
GET /users/{id}/progress     → ProgressResponse
GET /users/{id}/calendar     → CalendarMonthResponse
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class HomeStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    current_streak_days: int
    longest_streak_days: int
    total_clean_days: int
    has_checked_in_today: bool
    checkins_this_week: int
    journal_entries_this_week: int
    last_celebrated_milestone_day: int
    commitment_date: Optional[str] = None
    commitment_signed_at: Optional[str] = None
    streak_started_at: Optional[str] = None
    display_name: Optional[str] = None
    checkins_this_streak: int
    today_checkin_score: Optional[int] = None
    next_milestone_day: Optional[int] = None
    days_to_next_milestone: int
    progress_to_next_milestone: float
    commitment_progress: Optional[float] = Field(
        default=None,
        description="Fraction of the signed commitment span covered by the current streak.",
    )


class RatingAveragesResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    mood: int
    energy: int
    confidence: int
    faith: int
    self_control: int
    sample_size: int


class ProgressResponse(BaseModel):
    current_streak_days: int
    latest_milestone_day: Optional[int] = None
    next_milestone_day: Optional[int] = None
    days_to_next_milestone: int
    progress_to_next_milestone: float
    ratings: RatingAveragesResponse


class CalendarDayResponse(BaseModel):
    day: str
    is_today: bool
    is_future: bool
    in_streak: bool
    streak_day: Optional[int] = None
    milestone_day: Optional[int] = None
    checkin_score: Optional[int] = None
    stayed_clean: Optional[bool] = None
    journal_count: int


class CalendarMonthResponse(BaseModel):
    year: int
    month: int
    days: list[CalendarDayResponse]
