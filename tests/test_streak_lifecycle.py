"""
Tests for the streak lifecycle manager.

Covered scenarios:
  A) ensure without commitment    → None, nothing written
  B) ensure is idempotent         → 100 calls, exactly one streak
  C) concurrent creator           → IntegrityError recovered, winner returned
  D) duplicate active rows        → DuplicateActiveStreakError, logged
  E) reset                        → current 0, total and longest keep the closed length
  F) relapse on day 10 after celebrating day 7
  G) ensure after history resumes at the last close
"""
from __future__ import annotations

import logging
from datetime import timedelta

import pytest

from conftest import T0, TestingSessionLocal
from streak_engine.core.errors import DuplicateActiveStreakError, NoActiveStreakError
from streak_engine.models.streak import ResetReason, Streak
from streak_engine.services import store
from streak_engine.services.milestone_tracker import mark_celebrated
from streak_engine.services.streak_lifecycle import (
    current_streak_days,
    ensure_streak_if_committed,
    get_active_streak,
    list_streaks,
    longest_streak_days,
    reset_streak,
    streak_length_days,
    total_clean_days,
)


class TestEnsure:
    def test_uncommitted_user_has_no_streak(self, db, user):
        assert ensure_streak_if_committed(db, user) is None
        assert list_streaks(db, user.id) == []

    def test_first_streak_starts_at_commitment(self, db, committed_user):
        streak = get_active_streak(db, committed_user.id)
        assert streak.started_at == T0
        assert streak.ended_at is None
        assert streak.reset_reason == ResetReason.none
        assert streak.last_celebrated_milestone_day == 0

    def test_repeated_ensure_creates_one_streak(self, db, committed_user):
        first = get_active_streak(db, committed_user.id)
        for _ in range(100):
            assert ensure_streak_if_committed(db, committed_user).id == first.id
        assert len(list_streaks(db, committed_user.id)) == 1

    def test_concurrent_creator_wins(self, db, make_user, monkeypatch):
        u = make_user(signed_at=T0)
        original = store.latest_closed_streak
        winner_ids: list[int] = []

        def racing(session, user_id):
            other = TestingSessionLocal()
            try:
                rival = Streak(
                    user_id=user_id,
                    started_at=T0,
                    reset_reason=ResetReason.none,
                    last_celebrated_milestone_day=0,
                )
                other.add(rival)
                other.commit()
                winner_ids.append(rival.id)
            finally:
                other.close()
            return original(session, user_id)

        monkeypatch.setattr(store, "latest_closed_streak", racing)
        streak = ensure_streak_if_committed(db, u)

        assert streak.id == winner_ids[0]
        assert len(list_streaks(db, u.id)) == 1

    def test_resumes_from_last_close(self, db, make_user):
        u = make_user(signed_at=T0)
        closed_at = T0 + timedelta(days=5)
        db.add(Streak(
            user_id=u.id,
            started_at=T0,
            ended_at=closed_at,
            reset_reason=ResetReason.manual,
            last_celebrated_milestone_day=3,
            length_days=5,
        ))
        db.commit()

        streak = ensure_streak_if_committed(db, u)
        assert streak.started_at == closed_at
        assert streak.last_celebrated_milestone_day == 0


class TestDuplicateActive:
    def test_two_active_rows_raise(self, db, committed_user, monkeypatch, caplog):
        a = Streak(id=9001, user_id=committed_user.id, started_at=T0)
        b = Streak(id=9002, user_id=committed_user.id, started_at=T0)
        monkeypatch.setattr(store, "active_streaks", lambda session, user_id: [a, b])

        with caplog.at_level(logging.ERROR):
            with pytest.raises(DuplicateActiveStreakError) as exc_info:
                ensure_streak_if_committed(db, committed_user)

        assert exc_info.value.details["streak_ids"] == [9001, 9002]
        assert exc_info.value.http_status == 500
        assert any("active streaks" in r.message for r in caplog.records)


class TestReset:
    def test_reset_closes_and_reopens(self, db, committed_user):
        now = T0 + timedelta(days=12, hours=5)
        closed = get_active_streak(db, committed_user.id)
        closed_id = closed.id

        fresh = reset_streak(db, committed_user, "relapse", now=now, tz="UTC")

        assert fresh.id != closed_id
        assert fresh.started_at == now
        assert fresh.last_celebrated_milestone_day == 0
        assert current_streak_days(fresh, now, "UTC") == 0

        history = list_streaks(db, committed_user.id)
        old = next(s for s in history if s.id == closed_id)
        assert old.ended_at == now
        assert old.reset_reason == ResetReason.relapse
        assert old.length_days == 12
        assert total_clean_days(history, now, "UTC") == 12
        assert longest_streak_days(history, now, "UTC") == 12

    def test_totals_never_decrease(self, db, committed_user):
        first_reset = T0 + timedelta(days=12)
        reset_streak(db, committed_user, "relapse", now=first_reset, tz="UTC")
        second_reset = first_reset + timedelta(days=3)
        reset_streak(db, committed_user, "manual", now=second_reset, tz="UTC")

        history = list_streaks(db, committed_user.id)
        assert len(history) == 3
        assert total_clean_days(history, second_reset, "UTC") == 15
        assert longest_streak_days(history, second_reset, "UTC") == 12

    def test_frozen_length_ignores_later_zone(self, db, committed_user):
        now = T0 + timedelta(days=4, hours=2)
        reset_streak(db, committed_user, "manual", now=now, tz="UTC")
        closed = store.latest_closed_streak(db, committed_user.id)
        assert streak_length_days(closed, now, "Pacific/Honolulu") == 4

    def test_no_active_streak(self, db, user):
        with pytest.raises(NoActiveStreakError) as exc_info:
            reset_streak(db, user, "relapse", now=T0)
        assert exc_info.value.code == "NO_ACTIVE_STREAK"

    @pytest.mark.parametrize("reason", ["none", "sneeze"])
    def test_invalid_reason(self, db, committed_user, reason):
        with pytest.raises(ValueError):
            reset_streak(db, committed_user, reason, now=T0 + timedelta(days=1))
        assert get_active_streak(db, committed_user.id).started_at == T0

    def test_relapse_after_celebrating_week(self, db, committed_user):
        streak = get_active_streak(db, committed_user.id)
        mark_celebrated(db, streak, 7, now=T0 + timedelta(days=7, hours=9), tz="UTC")
        assert streak.last_celebrated_milestone_day == 7

        relapse_at = T0 + timedelta(days=10, hours=20)
        fresh = reset_streak(db, committed_user, "relapse", now=relapse_at, tz="UTC")

        assert fresh.started_at == relapse_at
        assert fresh.last_celebrated_milestone_day == 0
        assert current_streak_days(fresh, relapse_at, "UTC") == 0
        history = list_streaks(db, committed_user.id)
        assert total_clean_days(history, relapse_at, "UTC") >= 10


class TestLengths:
    def test_calendar_days_not_elapsed_hours(self, db, make_user):
        late = T0 + timedelta(hours=23, minutes=50)
        u = make_user(signed_at=late)
        streak = ensure_streak_if_committed(db, u)
        assert current_streak_days(streak, late + timedelta(minutes=20), "UTC") == 1

    def test_never_negative(self, db, committed_user):
        streak = get_active_streak(db, committed_user.id)
        assert current_streak_days(streak, T0 - timedelta(days=3), "UTC") == 0
