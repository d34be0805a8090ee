"""
Users and the commitment that starts their first streak.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from streak_engine.core.errors import UserNotFoundError
from streak_engine.models.streak import Streak
from streak_engine.models.user import User
from streak_engine.services import store
from streak_engine.services.calendar_days import ensure_aware, resolve_timezone, utcnow
from streak_engine.services.streak_lifecycle import ensure_streak_if_committed

logger = logging.getLogger(__name__)


def create_user(
    db: Session,
    display_name: Optional[str] = None,
    timezone: Optional[str] = None,
) -> User:
    if timezone is not None:
        timezone = resolve_timezone(timezone).key
    user = User(display_name=display_name, timezone=timezone)
    db.add(user)
    store.commit(db, "user")
    db.refresh(user)
    logger.info("Created user %d", user.id)
    return user


def get_user(db: Session, user_id: int) -> User:
    user = store.find_user(db, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


def update_timezone(db: Session, user: User, timezone: str) -> User:
    """Store the device zone the client last reported."""
    key = resolve_timezone(timezone).key
    if user.timezone != key:
        user.timezone = key
        store.commit(db, "user timezone")
        db.refresh(user)
    return user


def sign_commitment(
    db: Session,
    user: User,
    target_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Optional[Streak]:
    """
    Sign (or re-sign) the commitment and make sure a streak exists.

    The first signing instant anchors the first streak, so re-signing keeps
    it and only moves the target date.
    """
    if user.commitment_signed_at is None:
        user.commitment_signed_at = ensure_aware(now or utcnow())
        logger.info("User %d signed their commitment", user.id)
    if target_date is not None:
        user.commitment_date = target_date
    store.commit(db, "commitment")
    db.refresh(user)
    return ensure_streak_if_committed(db, user)
