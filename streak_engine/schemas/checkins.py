"""
Check-in schemas.

POST /users/{id}/checkins              → CheckInRequest → CheckInResponse (201 / 200)
GET  /users/{id}/checkins              → CheckInListResponse
GET  /users/{id}/checkins/today        → Optional[CheckInResponse]
GET  /users/{id}/checkins/day/{day}    → Optional[CheckInResponse]
GET  /users/{id}/checkins/count        → CountResponse

Ratings are plain integers here; the 1-10 range is enforced by the ledger
so every caller gets the same INVALID_RATING_RANGE error.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class CheckInRequest(BaseModel):
    mood_rating: int = Field(examples=[7])
    energy_rating: int = Field(examples=[6])
    confidence_rating: int = Field(examples=[8])
    faith_rating: int = Field(examples=[9])
    self_control_rating: int = Field(examples=[7])
    stayed_clean: bool = Field(
        default=True,
        description="Informational. A relapse is recorded through /streak/reset.",
    )
    progress_reflection: Optional[str] = None
    journey_reflection: Optional[str] = None
    gratitude: Optional[str] = None


class CheckInResponse(BaseModel):
    id: int
    day: str = Field(description="Local calendar day the check-in belongs to.")
    date: str = Field(description="Instant of the latest submission for that day.")
    mood_rating: int
    energy_rating: int
    confidence_rating: int
    faith_rating: int
    self_control_rating: int
    score: int = Field(description="Sum of the five ratings as a percentage of 50.")
    stayed_clean: bool
    progress_reflection: Optional[str] = None
    journey_reflection: Optional[str] = None
    gratitude: Optional[str] = None


class CheckInListResponse(BaseModel):
    total: int
    items: list[CheckInResponse]
