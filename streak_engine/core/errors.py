"""
Custom exception hierarchy for the streak engine.

Rule: every error has a machine-readable `code` string so clients
can branch on it without parsing English messages.

"Expected" conditions (no check-in today, never committed) are not
errors anywhere in the engine; they come back as None / zero values.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class StreakEngineException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class NoActiveStreakError(StreakEngineException):
    """Relapse or celebration attempted while the user has no active streak."""
    http_status = status.HTTP_409_CONFLICT
    code = "NO_ACTIVE_STREAK"

    def __init__(self, user_id: int, action: str):
        super().__init__(
            message=f"User {user_id} has no active streak; cannot {action}.",
            details={"user_id": user_id, "action": action},
        )


class DuplicateActiveStreakError(StreakEngineException):
    """Integrity violation: the store holds more than one active streak."""
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "DUPLICATE_ACTIVE_STREAK"

    def __init__(self, user_id: int, streak_ids: list[int]):
        super().__init__(
            message=(
                f"User {user_id} has {len(streak_ids)} active streaks; "
                "refusing to pick one."
            ),
            details={"user_id": user_id, "streak_ids": streak_ids},
        )


class PersistenceWriteError(StreakEngineException):
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "PERSISTENCE_WRITE_FAILED"

    def __init__(self, action: str, reason: str | None = None):
        super().__init__(
            message=f"Could not persist {action}. Retry later.",
            details={"action": action, "reason": reason} if reason else {"action": action},
        )


class InvalidRatingRangeError(StreakEngineException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_RATING_RANGE"

    def __init__(self, field: str, value: Any, minimum: int, maximum: int):
        super().__init__(
            message=f"Rating '{field}' must be between {minimum} and {maximum}. Received {value}.",
            details={"field": field, "value": value, "min": minimum, "max": maximum},
        )


class UserNotFoundError(StreakEngineException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "USER_NOT_FOUND"

    def __init__(self, user_id: int):
        super().__init__(
            message=f"User {user_id} does not exist.",
            details={"user_id": user_id},
        )


class UnknownMilestoneError(StreakEngineException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "UNKNOWN_MILESTONE"

    def __init__(self, day: int):
        super().__init__(
            message=f"No milestone is defined for day {day}.",
            details={"day": day},
        )


class MilestoneNotReachedError(StreakEngineException):
    http_status = status.HTTP_409_CONFLICT
    code = "MILESTONE_NOT_REACHED"

    def __init__(self, day: int, current_days: int):
        super().__init__(
            message=f"Milestone day {day} is not reached yet (streak is at day {current_days}).",
            details={"day": day, "current_streak_days": current_days},
        )


class InvalidTimezoneError(StreakEngineException):
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "INVALID_TIMEZONE"

    def __init__(self, key: str):
        super().__init__(
            message=f"Unknown time zone '{key}'. Use an IANA key such as 'Europe/London'.",
            details={"timezone": key},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def streak_engine_exception_handler(
    request: Request, exc: StreakEngineException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
