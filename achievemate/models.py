"""Typed dataclasses for the Achieve-mate data model.

All persisted models use from_dict/to_dict for JSON/YAML serialization.
camelCase in JSON is mapped to snake_case in Python.
Unknown keys are ignored; missing keys use defaults.

Entities are frozen: mutators build new instances with
``dataclasses.replace`` instead of editing in place.
"""

from __future__ import annotations

import math
import secrets
from dataclasses import dataclass, field
from typing import Any


def new_id() -> str:
    """Fresh random identifier for a playlist, video or goal."""
    return secrets.token_hex(8)


def _as_int(value: Any, default: int) -> int:
    """Stored number as int, halves rounded up; null or non-numeric yields default."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return default
    try:
        return math.floor(float(value) + 0.5)
    except (ValueError, OverflowError):
        return default


# ── Courses ───────────────────────────────────────────────────


@dataclass(frozen=True)
class Video:
    id: str = ""
    title: str = ""
    completed: bool = False

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Video:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            completed=bool(d.get("completed", False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "completed": self.completed}


@dataclass(frozen=True)
class Playlist:
    """A named course: an ordered run of videos plus its completion percent."""

    id: str = ""
    name: str = ""
    source: str = ""
    videos: tuple[Video, ...] = ()
    progress: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Playlist:
        if not d or not isinstance(d, dict):
            return cls()
        videos = tuple(
            Video.from_dict(v) for v in (d.get("videos") or []) if isinstance(v, dict)
        )
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            source=str(d.get("source", "")),
            videos=videos,
            progress=_as_int(d.get("progress"), 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "source": self.source,
            "videos": [v.to_dict() for v in self.videos],
            "progress": self.progress,
        }

    @property
    def completed_count(self) -> int:
        return sum(1 for v in self.videos if v.completed)

    @property
    def total_count(self) -> int:
        return len(self.videos)


# ── Goals ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Goal:
    id: str = ""
    title: str = ""
    completed: bool = False
    date: str = ""  # calendar day the goal belongs to, never changed

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Goal:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            completed=bool(d.get("completed", False)),
            date=str(d.get("date", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "completed": self.completed,
            "date": self.date,
        }


# ── Focus Session ─────────────────────────────────────────────


@dataclass(frozen=True)
class FocusSession:
    date: str = ""  # ISO timestamp of completion
    duration: int = 25  # minutes
    task: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FocusSession:
        if not d or not isinstance(d, dict):
            return cls()
        return cls(
            date=str(d.get("date", "")),
            duration=_as_int(d.get("duration", d.get("dur")), 25),
            task=str(d.get("task", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date, "duration": self.duration, "task": self.task}


# ── Achievements ──────────────────────────────────────────────


@dataclass(frozen=True)
class AchievementDef:
    id: int
    name: str
    icon: str
    target: int
    type: str  # streak, playlist, focus, goals


@dataclass(frozen=True)
class Achievement:
    id: int
    name: str
    icon: str
    target: int
    type: str
    earned: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "target": self.target,
            "type": self.type,
            "earned": self.earned,
        }


@dataclass(frozen=True)
class Metrics:
    """Current values of the four metrics achievements are measured against."""

    streak: int = 0
    playlists: int = 0
    focus_sessions: int = 0
    completed_goals: int = 0

    def for_type(self, kind: str) -> int:
        return {
            "streak": self.streak,
            "playlist": self.playlists,
            "focus": self.focus_sessions,
            "goals": self.completed_goals,
        }.get(kind, 0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "streak": self.streak,
            "playlists": self.playlists,
            "focusSessions": self.focus_sessions,
            "completedGoals": self.completed_goals,
        }


# ── Settings ──────────────────────────────────────────────────


DEFAULT_FOCUS_PRESETS = (25, 45, 60)


@dataclass
class Settings:
    timezone: str = "UTC"
    default_source: str = "YouTube"
    focus_presets: list[int] = field(default_factory=lambda: list(DEFAULT_FOCUS_PRESETS))
    default_focus_minutes: int = 25
    log_level: str = "WARNING"

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Settings:
        if not d or not isinstance(d, dict):
            return cls()
        presets = [int(m) for m in (d.get("focus_presets") or []) if int(m) > 0]
        default_minutes = int(d.get("default_focus_minutes", 25) or 25)
        return cls(
            timezone=str(d.get("timezone", "UTC")),
            default_source=str(d.get("default_source", "YouTube")),
            focus_presets=presets or list(DEFAULT_FOCUS_PRESETS),
            default_focus_minutes=default_minutes if default_minutes > 0 else 25,
            log_level=str(d.get("log_level", "WARNING")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timezone": self.timezone,
            "default_source": self.default_source,
            "focus_presets": list(self.focus_presets),
            "default_focus_minutes": self.default_focus_minutes,
            "log_level": self.log_level,
        }
