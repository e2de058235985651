"""Shared test fixtures for Achieve-mate tests."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

TODAY = "2026-02-11"


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with settings and one stored playlist."""
    root = tmp_path / "workspace"
    (root / "data").mkdir(parents=True)

    settings = {
        "timezone": "UTC",
        "default_source": "YouTube",
        "focus_presets": [25, 45, 60],
        "default_focus_minutes": 25,
        "log_level": "DEBUG",
    }
    (root / "settings.yaml").write_text(
        yaml.dump(settings, default_flow_style=False), encoding="utf-8"
    )

    playlists = [
        {
            "id": "pl-dsa",
            "name": "DSA",
            "source": "YouTube",
            "videos": [
                {"id": "v-arrays", "title": "Arrays", "completed": True},
                {"id": "v-stacks", "title": "Stacks", "completed": False},
            ],
            "progress": 50,
        }
    ]
    (root / "data" / "playlists.json").write_text(json.dumps(playlists), encoding="utf-8")
    (root / "data" / "streak.json").write_text("3", encoding="utf-8")

    os.environ["ACHIEVEMATE_ROOT"] = str(root)
    yield root
    if "ACHIEVEMATE_ROOT" in os.environ:
        del os.environ["ACHIEVEMATE_ROOT"]


class FakeHandle:
    def __init__(self, callback: Callable[[], Any]) -> None:
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Records scheduled ticks; ``fire`` runs the live one like a clock would."""

    def __init__(self) -> None:
        self.handles: list[FakeHandle] = []

    def schedule_repeating(self, interval: float, callback: Callable[[], Any]) -> FakeHandle:
        handle = FakeHandle(callback)
        self.handles.append(handle)
        return handle

    @property
    def live(self) -> list[FakeHandle]:
        return [h for h in self.handles if not h.cancelled]

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            for handle in self.live:
                handle.callback()


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()
