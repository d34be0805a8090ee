"""
Tests for the store's commit handling.

A failed commit is rolled back and surfaced as PersistenceWriteError; the
session then reads the last committed state, so nothing optimistic
survives.
"""
from __future__ import annotations

import logging
from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from conftest import T0
from streak_engine.core.errors import PersistenceWriteError
from streak_engine.models.checkin import CheckIn
from streak_engine.services.checkin_ledger import Ratings, submit_checkin
from streak_engine.services.milestone_tracker import mark_celebrated
from streak_engine.services.streak_lifecycle import (
    get_active_streak,
    list_streaks,
    reset_streak,
)


@pytest.fixture()
def broken_commit(db, monkeypatch):
    def boom():
        raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
    monkeypatch.setattr(db, "commit", boom)


class TestFailedCommit:
    def test_reset_leaves_streak_untouched(self, db, committed_user, broken_commit, caplog):
        before_id = get_active_streak(db, committed_user.id).id

        with caplog.at_level(logging.ERROR):
            with pytest.raises(PersistenceWriteError) as exc_info:
                reset_streak(db, committed_user, "relapse", now=T0 + timedelta(days=3))

        assert exc_info.value.http_status == 503
        assert exc_info.value.details["reason"] == "OperationalError"
        assert any(r.exc_info for r in caplog.records if r.levelno == logging.ERROR)

        streaks = list_streaks(db, committed_user.id)
        assert [s.id for s in streaks] == [before_id]
        assert streaks[0].ended_at is None
        assert streaks[0].length_days is None

    def test_checkin_not_written(self, db, committed_user, broken_commit):
        with pytest.raises(PersistenceWriteError):
            submit_checkin(db, committed_user, Ratings(5, 5, 5, 5, 5),
                           now=T0 + timedelta(days=1), tz="UTC")
        assert db.query(CheckIn).filter(CheckIn.user_id == committed_user.id).count() == 0

    def test_celebration_not_recorded(self, db, committed_user, broken_commit):
        streak = get_active_streak(db, committed_user.id)
        with pytest.raises(PersistenceWriteError):
            mark_celebrated(db, streak, 1, now=T0 + timedelta(days=1), tz="UTC")
        assert streak.last_celebrated_milestone_day == 0
