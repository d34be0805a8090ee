"""
User and commitment schemas.

POST /users                       → CreateUserRequest → UserResponse
GET  /users/{id}                  → UserResponse
PUT  /users/{id}/timezone         → TimezoneRequest   → UserResponse
POST /users/{id}/commitment       → CommitmentRequest → CommitmentResponse
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from streak_engine.schemas.streaks import StreakResponse


class CreateUserRequest(BaseModel):
    display_name: Optional[str] = Field(default=None, max_length=128, examples=["Yusuf"])
    timezone: Optional[str] = Field(
        default=None,
        description="IANA zone of the device. Used when a request carries no `tz`.",
        examples=["Europe/London"],
    )


class TimezoneRequest(BaseModel):
    timezone: str = Field(description="IANA zone key.", examples=["Asia/Karachi"])


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    display_name: Optional[str] = None
    timezone: Optional[str] = None
    commitment_signed_at: Optional[str] = None
    commitment_date: Optional[str] = None
    created_at: str


class CommitmentRequest(BaseModel):
    """Sign the commitment. Re-signing only moves the target date."""
    target_date: Optional[date] = Field(
        default=None,
        description="Day the user commits to stay clean until.",
        examples=["2026-12-31"],
    )
    now: Optional[datetime] = Field(
        default=None,
        description="Signing instant as reported by the client. Defaults to server time.",
    )


class CommitmentResponse(BaseModel):
    user: UserResponse
    streak: Optional[StreakResponse] = None
