"""Achievement badges derived from the current metrics.

Badges are never stored. They are recomputed from the metrics on every
read, and since none of the metrics goes down in normal use a badge
stays earned once its threshold is met.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from achievemate.models import Achievement, AchievementDef, Metrics

ACHIEVEMENTS: tuple[AchievementDef, ...] = (
    AchievementDef(id=1, name="Weekly Warrior", icon="\U0001f525", target=7, type="streak"),
    AchievementDef(id=2, name="First Steps", icon="\U0001f4bf", target=1, type="playlist"),
    AchievementDef(id=3, name="Focus Master", icon="\U0001f9e0", target=5, type="focus"),
    AchievementDef(id=4, name="Task Slayer", icon="⚔️", target=10, type="goals"),
)

RECENT_LIMIT = 4


def evaluate_achievements(
    metrics: Metrics,
    definitions: Sequence[AchievementDef] = ACHIEVEMENTS,
) -> list[Achievement]:
    """Tag each definition with earned = metric >= target, keeping definition order."""
    return [
        Achievement(
            id=d.id,
            name=d.name,
            icon=d.icon,
            target=d.target,
            type=d.type,
            earned=metrics.for_type(d.type) >= d.target,
        )
        for d in definitions
    ]


def recent_achievements(achievements: Iterable[Achievement], limit: int = RECENT_LIMIT) -> list[Achievement]:
    # Earning time is not tracked; "recent" is definition order.
    return [a for a in achievements if a.earned][:limit]


def newly_earned(before: Iterable[Achievement], after: Iterable[Achievement]) -> list[Achievement]:
    """Achievements earned in *after* that were not earned in *before*."""
    had = {a.id for a in before if a.earned}
    return [a for a in after if a.earned and a.id not in had]
