"""Application state container for Achieve-mate.

``AppState`` owns the four persisted slots (streak, playlists, goals and
focus history). It is built once at startup from the stored snapshots
with ``AppState.open`` and flushed with ``close`` at shutdown; surfaces get
it passed in rather than reaching for module globals.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Any, Callable

from achievemate import goals as goal_ops
from achievemate import playlists as playlist_ops
from achievemate.achievements import evaluate_achievements, newly_earned, recent_achievements
from achievemate.models import Achievement, FocusSession, Goal, Metrics, Playlist, Settings
from achievemate.persistence import PersistentField
from achievemate.progress import (
    completed_goal_count,
    focus_summary,
    overall_topic_progress,
    today_goal_progress,
    today_goals,
)
from achievemate.store import KeyValueStore
from achievemate.streak import StreakTracker
from achievemate.workspace import today_str

log = logging.getLogger(__name__)

STREAK_KEY = "streak"
PLAYLISTS_KEY = "playlists"
GOALS_KEY = "goals"
FOCUS_HISTORY_KEY = "focusHist"


def _decode_streak(raw: Any) -> int:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"streak must be a number, got {type(raw).__name__}")
    return max(0, int(raw))


def _list_codec(model: Any) -> tuple[Callable[[Any], list], Callable[[list], list]]:
    def decode(raw: Any) -> list:
        """Decode a stored list; a bad record is skipped, the rest are kept."""
        if not isinstance(raw, list):
            raise ValueError(f"expected a list, got {type(raw).__name__}")
        items = []
        for index, item in enumerate(raw):
            if not isinstance(item, dict):
                continue
            try:
                items.append(model.from_dict(item))
            except (TypeError, ValueError) as e:
                log.warning("Skipping unreadable %s record #%d: %s", model.__name__, index, e)
        return items

    def encode(items: list) -> list:
        return [item.to_dict() for item in items]

    return decode, encode


class AppState:
    def __init__(
        self,
        store: KeyValueStore,
        today: Callable[[], str] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.store = store
        self.settings = settings or Settings()
        self.today: Callable[[], str] = today or today_str

        dec, enc = _list_codec(Playlist)
        self.playlists_field: PersistentField[list[Playlist]] = PersistentField(
            store, PLAYLISTS_KEY, [], decode=dec, encode=enc
        )
        dec, enc = _list_codec(Goal)
        self.goals_field: PersistentField[list[Goal]] = PersistentField(
            store, GOALS_KEY, [], decode=dec, encode=enc
        )
        dec, enc = _list_codec(FocusSession)
        self.focus_field: PersistentField[list[FocusSession]] = PersistentField(
            store, FOCUS_HISTORY_KEY, [], decode=dec, encode=enc
        )
        self.streak_field: PersistentField[int] = PersistentField(
            store, STREAK_KEY, 0, decode=_decode_streak
        )
        self.streak_tracker = StreakTracker(self.streak_field)

        self.unlock_listeners: list[Callable[[Achievement], Any]] = []
        self._last_achievements: list[Achievement] = []

    @property
    def fields(self) -> tuple[PersistentField[Any], ...]:
        return (self.streak_field, self.playlists_field, self.goals_field, self.focus_field)

    # ── Lifecycle ─────────────────────────────────────────────

    @classmethod
    async def open(
        cls,
        store: KeyValueStore,
        today: Callable[[], str] | None = None,
        settings: Settings | None = None,
    ) -> AppState:
        state = cls(store, today=today, settings=settings)
        await state.load()
        return state

    async def load(self) -> None:
        """Load every slot; the slots are independent and load concurrently."""
        await asyncio.gather(*(f.load() for f in self.fields))
        self._last_achievements = self.achievements()
        log.info(
            "Loaded state: streak=%d playlists=%d goals=%d sessions=%d",
            self.streak, len(self.playlists), len(self.goals), len(self.focus_history),
        )

    async def close(self) -> None:
        """Final flush of every slot."""
        await asyncio.gather(*(f.flush() for f in self.fields))

    # ── Snapshots ─────────────────────────────────────────────

    @property
    def streak(self) -> int:
        return self.streak_field.value

    @property
    def playlists(self) -> list[Playlist]:
        return list(self.playlists_field.value)

    @property
    def goals(self) -> list[Goal]:
        return list(self.goals_field.value)

    @property
    def focus_history(self) -> list[FocusSession]:
        return list(self.focus_field.value)

    # ── Playlists ─────────────────────────────────────────────

    def add_playlist(self, name: str, source: str, raw_lines: str) -> tuple[Playlist | None, list[str]]:
        updated, errors = playlist_ops.add_playlist(
            self.playlists_field.value, name, source, raw_lines,
            default_source=self.settings.default_source,
        )
        if errors:
            return None, errors
        self.playlists_field.set(updated)
        self._changed()
        return updated[-1], []

    def toggle_video(self, playlist_id: str, video_id: str) -> Playlist | None:
        updated = playlist_ops.toggle_video(
            self.playlists_field.value, playlist_id, video_id,
            on_progress=self.streak_tracker.record_progress,
        )
        self.playlists_field.set(updated)
        self._changed()
        return playlist_ops.find_playlist(updated, playlist_id)

    def delete_playlist(self, playlist_id: str) -> bool:
        current = self.playlists_field.value
        updated = playlist_ops.delete_playlist(current, playlist_id)
        if len(updated) == len(current):
            return False
        self.playlists_field.set(updated)
        self._changed()
        return True

    # ── Goals ─────────────────────────────────────────────────

    def add_goal(self, title: str) -> tuple[Goal | None, list[str]]:
        updated, errors = goal_ops.add_goal(self.goals_field.value, title, self.today())
        if errors:
            return None, errors
        self.goals_field.set(updated)
        self._changed()
        return updated[-1], []

    def toggle_goal(self, goal_id: str) -> Goal | None:
        if goal_ops.find_goal(self.goals_field.value, goal_id) is None:
            return None
        updated = goal_ops.toggle_goal(self.goals_field.value, goal_id)
        self.goals_field.set(updated)
        self._changed()
        return goal_ops.find_goal(updated, goal_id)

    def delete_goal(self, goal_id: str) -> bool:
        current = self.goals_field.value
        updated = goal_ops.delete_goal(current, goal_id)
        if len(updated) == len(current):
            return False
        self.goals_field.set(updated)
        self._changed()
        return True

    # ── Focus history ─────────────────────────────────────────

    def record_session(self, session: FocusSession) -> None:
        self.focus_field.set([*self.focus_field.value, session])
        self._changed()

    # ── Derived views ─────────────────────────────────────────

    def today_goals(self) -> list[Goal]:
        return today_goals(self.goals_field.value, self.today())

    def metrics(self) -> Metrics:
        return Metrics(
            streak=self.streak,
            playlists=len(self.playlists_field.value),
            focus_sessions=len(self.focus_field.value),
            completed_goals=completed_goal_count(self.goals_field.value),
        )

    def achievements(self) -> list[Achievement]:
        return evaluate_achievements(self.metrics())

    def recent_achievements(self) -> list[Achievement]:
        return recent_achievements(self.achievements())

    def dashboard(self, now: datetime | None = None) -> dict[str, Any]:
        today = self.today()
        return {
            "today": today,
            "streak": self.streak,
            "topicProgress": overall_topic_progress(self.playlists_field.value),
            "goalProgress": today_goal_progress(self.goals_field.value, today),
            "recentAchievements": [a.to_dict() for a in self.recent_achievements()],
            "todayGoals": [g.to_dict() for g in today_goals(self.goals_field.value, today)],
            "focus": focus_summary(self.focus_field.value, now=now),
        }

    def _changed(self) -> None:
        current = self.achievements()
        for achievement in newly_earned(self._last_achievements, current):
            log.info("Achievement unlocked: %s", achievement.name)
            for listener in self.unlock_listeners:
                listener(achievement)
        self._last_achievements = current
