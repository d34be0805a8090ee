"""
Tests for the milestone tracker.

Covered scenarios:
  A) pending repeats until marked, then None until the next threshold
  B) day 3 without opening the app → reached {1, 3}, only 3 pending
  C) marking is idempotent (same or lower day changes nothing)
  D) a concurrent celebration already advanced the marker → no-op
  E) notifier failure keeps the celebration
  F) closed streak, unknown day and not-yet-reached day raise
  G) progress between thresholds
"""
from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from conftest import T0, FailingNotifier, RecordingNotifier, TestingSessionLocal
from streak_engine.core.errors import (
    MilestoneNotReachedError,
    NoActiveStreakError,
    UnknownMilestoneError,
)
from streak_engine.models.streak import Streak
from streak_engine.services.milestone_tracker import (
    celebrate_pending,
    list_celebrations,
    mark_celebrated,
    milestone_progress,
    pending_celebration,
    reached_milestones,
)
from streak_engine.services.streak_lifecycle import get_active_streak, reset_streak


def _at(days: int, hours: int = 10):
    return T0 + timedelta(days=days, hours=hours)


class TestPending:
    def test_nothing_on_day_zero(self, db, committed_user):
        streak = get_active_streak(db, committed_user.id)
        assert reached_milestones(0) == []
        assert pending_celebration(streak, 0) is None

    def test_pending_until_marked(self, db, committed_user):
        streak = get_active_streak(db, committed_user.id)
        for _ in range(3):
            assert pending_celebration(streak, 3).day == 3

        mark_celebrated(db, streak, 3, now=_at(3), tz="UTC")
        assert pending_celebration(streak, 3) is None
        assert pending_celebration(streak, 6) is None
        assert pending_celebration(streak, 7).day == 7

    def test_skipped_threshold_is_not_queued(self, db, committed_user):
        notifier = RecordingNotifier()
        reached = [m.day for m in reached_milestones(3)]
        assert reached == [1, 3]

        shown = celebrate_pending(db, committed_user, notifier=notifier, now=_at(3), tz="UTC")
        assert shown.day == 3

        streak = get_active_streak(db, committed_user.id)
        assert streak.last_celebrated_milestone_day == 3
        assert [c.milestone_day for c in list_celebrations(db, streak)] == [3]
        assert [call[0] for call in notifier.calls] == [3]
        assert notifier.calls[0][1] == "Reborn"

    def test_celebrate_pending_only_once(self, db, committed_user):
        notifier = RecordingNotifier()
        assert celebrate_pending(db, committed_user, notifier=notifier, now=_at(7), tz="UTC").day == 7
        assert celebrate_pending(db, committed_user, notifier=notifier, now=_at(7, 20), tz="UTC") is None
        assert len(notifier.calls) == 1

    def test_uncommitted_user(self, db, user):
        assert celebrate_pending(db, user, now=_at(30)) is None


class TestMarkCelebrated:
    def test_idempotent(self, db, committed_user):
        streak = get_active_streak(db, committed_user.id)
        mark_celebrated(db, streak, 7, now=_at(7), tz="UTC")
        mark_celebrated(db, streak, 7, now=_at(7, 12), tz="UTC")
        mark_celebrated(db, streak, 3, now=_at(7, 13), tz="UTC")

        assert streak.last_celebrated_milestone_day == 7
        rows = list_celebrations(db, streak)
        assert len(rows) == 1
        assert rows[0].streak_days == 7

    def test_concurrent_celebration_wins(self, db, committed_user):
        notifier = RecordingNotifier()
        streak = get_active_streak(db, committed_user.id)

        other = TestingSessionLocal()
        try:
            rival = other.get(Streak, streak.id)
            rival.last_celebrated_milestone_day = 7
            other.commit()
        finally:
            other.close()

        mark_celebrated(db, streak, 3, notifier=notifier, now=_at(7), tz="UTC")
        assert streak.last_celebrated_milestone_day == 7
        assert list_celebrations(db, streak) == []
        assert notifier.calls == []

    def test_notifier_failure_keeps_celebration(self, db, committed_user, caplog):
        streak = get_active_streak(db, committed_user.id)
        with caplog.at_level(logging.WARNING):
            mark_celebrated(db, streak, 1, notifier=FailingNotifier(), now=_at(1), tz="UTC")

        db.expire_all()
        assert get_active_streak(db, committed_user.id).last_celebrated_milestone_day == 1
        assert any("notifier failed" in r.message for r in caplog.records)

    def test_unknown_day(self, db, committed_user):
        streak = get_active_streak(db, committed_user.id)
        with pytest.raises(UnknownMilestoneError) as exc_info:
            mark_celebrated(db, streak, 5, now=_at(5))
        assert exc_info.value.http_status == 404

    def test_unreached_day_is_refused(self, db, committed_user):
        notifier = RecordingNotifier()
        streak = get_active_streak(db, committed_user.id)
        with pytest.raises(MilestoneNotReachedError) as exc_info:
            mark_celebrated(db, streak, 365, notifier=notifier, now=T0 + timedelta(hours=1), tz="UTC")
        assert exc_info.value.http_status == 409
        assert exc_info.value.details == {"day": 365, "current_streak_days": 0}

        db.expire_all()
        streak = get_active_streak(db, committed_user.id)
        assert streak.last_celebrated_milestone_day == 0
        assert list_celebrations(db, streak) == []
        assert notifier.calls == []
        assert pending_celebration(streak, 30).day == 30

    def test_reached_day_is_accepted(self, db, committed_user):
        streak = get_active_streak(db, committed_user.id)
        with pytest.raises(MilestoneNotReachedError):
            mark_celebrated(db, streak, 14, now=_at(13), tz="UTC")
        mark_celebrated(db, streak, 14, now=_at(14), tz="UTC")
        assert streak.last_celebrated_milestone_day == 14

    def test_closed_streak(self, db, committed_user):
        old = get_active_streak(db, committed_user.id)
        reset_streak(db, committed_user, "manual", now=_at(4), tz="UTC")
        with pytest.raises(NoActiveStreakError):
            mark_celebrated(db, old, 3, now=_at(4, 11))

    def test_new_streak_starts_locked(self, db, committed_user):
        streak = get_active_streak(db, committed_user.id)
        mark_celebrated(db, streak, 3, now=_at(3), tz="UTC")
        fresh = reset_streak(db, committed_user, "relapse", now=_at(4), tz="UTC")
        assert fresh.last_celebrated_milestone_day == 0
        assert pending_celebration(fresh, 1).day == 1
        assert list_celebrations(db, fresh) == []


class TestProgress:
    def test_between_thresholds(self):
        p = milestone_progress(10)
        assert p.latest.day == 7
        assert p.next.day == 14
        assert p.days_to_next == 4
        assert p.progress_to_next == pytest.approx(3 / 7)

    def test_before_first(self):
        p = milestone_progress(0)
        assert p.latest is None
        assert p.next.day == 1
        assert p.progress_to_next == 0.0

    def test_catalog_exhausted(self):
        p = milestone_progress(400)
        assert p.next is None
        assert p.days_to_next == 0
        assert p.progress_to_next == 1.0
