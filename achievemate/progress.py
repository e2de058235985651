"""Completion percentages and focus statistics.

Everything here is pure: inputs are snapshots, outputs are fresh values.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Sequence

from achievemate.models import FocusSession, Goal, Playlist


def percent(done: int, total: int) -> int:
    """Integer percentage of done/total, rounded half up; 0 for an empty total."""
    if total <= 0:
        return 0
    return (200 * done + total) // (2 * total)


def playlist_progress(playlist: Playlist) -> int:
    return percent(playlist.completed_count, playlist.total_count)


def overall_topic_progress(playlists: Iterable[Playlist]) -> int:
    """Share of completed videos across every playlist.

    Counts raw videos, so a long playlist weighs more than a short one.
    """
    done = total = 0
    for p in playlists:
        done += p.completed_count
        total += p.total_count
    return percent(done, total)


def today_goals(goals: Iterable[Goal], today: str) -> list[Goal]:
    return [g for g in goals if g.date == today]


def today_goal_progress(goals: Iterable[Goal], today: str) -> int:
    todays = today_goals(goals, today)
    return percent(sum(1 for g in todays if g.completed), len(todays))


def completed_goal_count(goals: Iterable[Goal]) -> int:
    return sum(1 for g in goals if g.completed)


def _parse_ts(value: str) -> datetime | None:
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def focus_summary(
    sessions: Sequence[FocusSession],
    days: int = 7,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Totals over the whole log plus the sessions of the last *days* days."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    total_minutes = sum(s.duration for s in sessions)
    cutoff = now - timedelta(days=days)
    recent = []
    for s in sessions:
        ts = _parse_ts(s.date)
        if ts is not None and ts >= cutoff:
            recent.append(s)

    return {
        "total_sessions": len(sessions),
        "total_minutes": total_minutes,
        "avg_session_minutes": round(total_minutes / len(sessions), 1) if sessions else 0,
        "recent_sessions": len(recent),
        "recent_minutes": sum(s.duration for s in recent),
        "days": days,
    }
