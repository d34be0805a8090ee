"""
Milestone schemas.

GET  /milestones                                   → list[MilestoneResponse]
GET  /users/{id}/milestones                        → MilestoneBoardResponse
GET  /users/{id}/milestones/pending                → PendingMilestoneResponse
POST /users/{id}/milestones/{day}/celebrate        → StreakResponse
POST /users/{id}/milestones/celebrate-pending      → PendingMilestoneResponse
GET  /users/{id}/milestones/celebrations           → list[CelebrationResponse]
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class MilestoneResponse(BaseModel):
    day: int
    title: str
    display_name: str
    meaning: str
    verse: str
    verse_reference: str
    icon: str
    colors: list[str]
    is_major: bool


class MilestoneStatusResponse(MilestoneResponse):
    status: str = Field(description='"locked" | "reached" | "celebrated"')


class MilestoneBoardResponse(BaseModel):
    current_streak_days: int
    last_celebrated_milestone_day: int
    next_milestone_day: Optional[int] = None
    days_to_next_milestone: int
    progress_to_next_milestone: float
    items: list[MilestoneStatusResponse]


class PendingMilestoneResponse(BaseModel):
    milestone: Optional[MilestoneResponse] = Field(
        default=None,
        description="The milestone to show now, or null.",
    )


class CelebrationResponse(BaseModel):
    id: int
    streak_id: int
    milestone_day: int
    streak_days: int
    celebrated_at: str
