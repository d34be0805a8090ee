"""
Milestone catalog: the static table of streak thresholds.

MILESTONES is an immutable tuple sorted strictly ascending by `day`.
The ordering is checked at import time; every lookup relies on it
(bisect), so a mis-ordered edit fails loudly instead of silently
celebrating the wrong milestone.

Day 0 is not a milestone. It is the baseline used for progress
arithmetic before the first threshold (see previous_day()).
"""
from __future__ import annotations

from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MilestoneDefinition:
    day: int
    title: str
    display_name: str
    meaning: str
    verse: Optional[str]
    verse_reference: Optional[str]
    icon: str
    colors: tuple[str, str]


MILESTONES: tuple[MilestoneDefinition, ...] = (
    MilestoneDefinition(
        day=1,
        title="First Step",
        display_name="Tawbah",
        meaning=(
            "Repentance - Turning back to Allah with sincere intention. "
            "The first step on the path to purification."
        ),
        verse="Indeed, Allah loves those who are constantly repentant.",
        verse_reference="Quran 2:222",
        icon="leaf.fill",
        colors=("#74B886", "#5A9A6E"),
    ),
    MilestoneDefinition(
        day=3,
        title="Reborn",
        display_name="Tajdeed",
        meaning=(
            "Renewal - Refreshing your commitment and faith. "
            "A new beginning takes root."
        ),
        verse=None,
        verse_reference=None,
        icon="sunrise.fill",
        colors=("#F5D485", "#E8B86D"),
    ),
    MilestoneDefinition(
        day=7,
        title="First Week",
        display_name="Sabr",
        meaning=(
            "Patience - Steadfastness through difficulty. "
            "You've proven you can endure."
        ),
        verse="Indeed, Allah is with the patient.",
        verse_reference="Quran 2:153",
        icon="shield.fill",
        colors=("#60A5FA", "#3B82F6"),
    ),
    MilestoneDefinition(
        day=14,
        title="Two Weeks",
        display_name="Istiqamah",
        meaning=(
            "Steadfastness - Consistency on the straight path. "
            "Your habits are forming."
        ),
        verse="So remain on a right course as you have been commanded.",
        verse_reference="Quran 11:112",
        icon="arrow.up.circle.fill",
        colors=("#8B5CF6", "#7C3AED"),
    ),
    MilestoneDefinition(
        day=30,
        title="One Month",
        display_name="Mujahadah",
        meaning=(
            "Striving - The inner struggle against the self. "
            "A full month of victory."
        ),
        verse="And those who strive for Us, We will surely guide them to Our ways.",
        verse_reference="Quran 29:69",
        icon="flame.fill",
        colors=("#F97316", "#EA580C"),
    ),
    MilestoneDefinition(
        day=50,
        title="Fifty Days",
        display_name="Thiqah",
        meaning=(
            "Confidence - Growing trust in yourself and Allah's plan. "
            "You're building strength."
        ),
        verse=None,
        verse_reference=None,
        icon="hand.raised.fill",
        colors=("#EC4899", "#DB2777"),
    ),
    MilestoneDefinition(
        day=60,
        title="Two Months",
        display_name="Taqwa",
        meaning=(
            "God-consciousness - Awareness of Allah in all actions. "
            "Your heart is awakening."
        ),
        verse="And whoever fears Allah, He will make for him a way out.",
        verse_reference="Quran 65:2",
        icon="eye.fill",
        colors=("#5B9A9A", "#4A8585"),
    ),
    MilestoneDefinition(
        day=75,
        title="Seventy-Five Days",
        display_name="Tawakkul",
        meaning=(
            "Reliance - Complete trust and dependence on Allah. "
            "You've surrendered control."
        ),
        verse="Whoever relies upon Allah, then He is sufficient for him.",
        verse_reference="Quran 65:3",
        icon="hands.sparkles.fill",
        colors=("#A78BDA", "#8B5CF6"),
    ),
    MilestoneDefinition(
        day=90,
        title="Three Months",
        display_name="Ihsan",
        meaning=(
            "Excellence - Worshipping Allah as if you see Him. "
            "Mastery is within reach."
        ),
        verse="Indeed, Allah is with those who fear Him and those who do good.",
        verse_reference="Quran 16:128",
        icon="star.fill",
        colors=("#FBBF24", "#F59E0B"),
    ),
    MilestoneDefinition(
        day=120,
        title="Four Months",
        display_name="Quwwah",
        meaning=(
            "Strength - Inner power developed through perseverance. "
            "You are transformed."
        ),
        verse="Allah does not burden a soul beyond that it can bear.",
        verse_reference="Quran 2:286",
        icon="bolt.fill",
        colors=("#EF4444", "#DC2626"),
    ),
    MilestoneDefinition(
        day=150,
        title="Five Months",
        display_name="Shukr",
        meaning=(
            "Gratitude - Thankfulness for Allah's guidance and mercy. "
            "Blessings multiply."
        ),
        verse="If you are grateful, I will surely increase you.",
        verse_reference="Quran 14:7",
        icon="heart.fill",
        colors=("#F472B6", "#EC4899"),
    ),
    MilestoneDefinition(
        day=270,
        title="Nine Months",
        display_name="Noor",
        meaning=(
            "Light - The radiance of a purified heart. "
            "You shine with inner peace."
        ),
        verse="Allah is the Light of the heavens and the earth.",
        verse_reference="Quran 24:35",
        icon="sun.max.fill",
        colors=("#FDE047", "#FACC15"),
    ),
    MilestoneDefinition(
        day=365,
        title="One Year",
        display_name="Falah",
        meaning=(
            "Success - True triumph through spiritual victory. "
            "A complete transformation."
        ),
        verse="Indeed, the patient will be given their reward without account.",
        verse_reference="Quran 39:10",
        icon="crown.fill",
        colors=("#E8B86D", "#D4A056"),
    ),
)

MAJOR_DAYS: tuple[int, ...] = (7, 30, 60, 90)


def _validate(catalog: tuple[MilestoneDefinition, ...]) -> tuple[int, ...]:
    days = tuple(m.day for m in catalog)
    if not days:
        raise ValueError("milestone catalog is empty")
    if days[0] < 1:
        raise ValueError("milestone days start at 1")
    if any(a >= b for a, b in zip(days, days[1:])):
        raise ValueError(f"milestone catalog must be strictly ascending by day: {days}")
    return days


DAYS: tuple[int, ...] = _validate(MILESTONES)


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def definition_for(day: int) -> Optional[MilestoneDefinition]:
    """Exact-threshold lookup."""
    i = bisect_left(DAYS, day)
    if i < len(DAYS) and DAYS[i] == day:
        return MILESTONES[i]
    return None


def reached(days: int) -> tuple[MilestoneDefinition, ...]:
    """All milestones with day <= days, ascending."""
    return MILESTONES[: bisect_right(DAYS, days)]


def latest_reached(days: int) -> Optional[MilestoneDefinition]:
    i = bisect_right(DAYS, days)
    return MILESTONES[i - 1] if i else None


def next_after(day: int) -> Optional[MilestoneDefinition]:
    """First milestone strictly after `day`."""
    i = bisect_right(DAYS, day)
    return MILESTONES[i] if i < len(MILESTONES) else None


def previous_day(day: int) -> int:
    """Threshold before `day` in the catalog, 0 for the first milestone."""
    i = bisect_left(DAYS, day)
    return DAYS[i - 1] if i else 0
