"""
Notification collaborator.

The engine tells a MilestoneNotifier about each celebration *after* it is
committed. Delivery (push scheduling, local alerts) lives outside the
engine; a notifier failure is logged and never rolls back the celebration.
"""
from __future__ import annotations

import logging
from typing import Optional, Protocol

from streak_engine.services.milestone_catalog import MilestoneDefinition

logger = logging.getLogger(__name__)


class MilestoneNotifier(Protocol):
    def notify_milestone(self, day: int, title: str, meaning: str) -> None:
        ...


class LoggingMilestoneNotifier:
    """Default notifier: records the alert in the application log."""

    def notify_milestone(self, day: int, title: str, meaning: str) -> None:
        logger.info("Milestone reached: day=%d title=%r meaning=%r", day, title, meaning)


_default_notifier = LoggingMilestoneNotifier()


def get_notifier() -> MilestoneNotifier:
    """FastAPI dependency; tests override it with a recording notifier."""
    return _default_notifier


def dispatch_milestone(
    notifier: Optional[MilestoneNotifier],
    milestone: MilestoneDefinition,
) -> bool:
    """Fire-and-forget. Returns False if the notifier raised."""
    if notifier is None:
        return True
    try:
        notifier.notify_milestone(milestone.day, milestone.title, milestone.meaning)
    except Exception:
        logger.warning(
            "Milestone notifier failed for day %d; celebration stays recorded",
            milestone.day,
            exc_info=True,
        )
        return False
    return True
