"""
Streak schemas.

POST /users/{id}/streak/ensure  → Optional[StreakResponse]
GET  /users/{id}/streak         → Optional[StreakResponse]
GET  /users/{id}/streaks        → StreakHistoryResponse
POST /users/{id}/streak/reset   → ResetRequest → ResetResponse
"""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class StreakResponse(BaseModel):
    id: int
    started_at: str
    ended_at: Optional[str] = None
    is_active: bool
    reset_reason: str = Field(description='"none" | "relapse" | "manual"')
    length_days: int = Field(
        description="Calendar days so far (active) or frozen at close (history)."
    )
    last_celebrated_milestone_day: int


class StreakHistoryResponse(BaseModel):
    total: int
    longest_streak_days: int
    total_clean_days: int
    items: list[StreakResponse]


class ResetRequest(BaseModel):
    reason: Literal["relapse", "manual"] = Field(
        default="relapse",
        description="Why the streak is being closed.",
    )


class ResetResponse(BaseModel):
    closed: StreakResponse
    streak: StreakResponse
