"""
Tests for the static milestone catalog and its bisect lookups.
"""
from __future__ import annotations

import pytest

from streak_engine.services import milestone_catalog as catalog
from streak_engine.services.milestone_catalog import MilestoneDefinition


class TestCatalogShape:
    def test_days(self):
        assert catalog.DAYS == (1, 3, 7, 14, 30, 50, 60, 75, 90, 120, 150, 270, 365)

    def test_day_zero_is_not_a_milestone(self):
        assert catalog.definition_for(0) is None
        assert catalog.reached(0) == ()

    def test_every_entry_has_copy(self):
        for m in catalog.MILESTONES:
            assert m.title and m.display_name and m.meaning and m.icon
            assert len(m.colors) == 2

    def test_major_days_are_milestones(self):
        for day in catalog.MAJOR_DAYS:
            assert catalog.definition_for(day) is not None

    def test_definitions_are_immutable(self):
        with pytest.raises(Exception):
            catalog.MILESTONES[0].day = 2

    def test_misordered_catalog_rejected(self):
        a = catalog.MILESTONES[2]
        b = catalog.MILESTONES[1]
        with pytest.raises(ValueError):
            catalog._validate((a, b))

    def test_zero_day_entry_rejected(self):
        zero = MilestoneDefinition(0, "x", "x", "x", None, None, "star", ("#000", "#fff"))
        with pytest.raises(ValueError):
            catalog._validate((zero,))


class TestLookups:
    def test_reached_is_ascending_prefix(self):
        assert [m.day for m in catalog.reached(3)] == [1, 3]
        assert [m.day for m in catalog.reached(13)] == [1, 3, 7]

    def test_latest_reached(self):
        assert catalog.latest_reached(0) is None
        assert catalog.latest_reached(7).day == 7
        assert catalog.latest_reached(29).day == 14
        assert catalog.latest_reached(1000).day == 365

    def test_next_after(self):
        assert catalog.next_after(0).day == 1
        assert catalog.next_after(7).day == 14
        assert catalog.next_after(365) is None

    def test_previous_day(self):
        assert catalog.previous_day(1) == 0
        assert catalog.previous_day(30) == 14

    def test_definition_for_exact_only(self):
        assert catalog.definition_for(30).title == "One Month"
        assert catalog.definition_for(31) is None
