"""Workspace root, settings, clock and path helpers for Achieve-mate."""

from __future__ import annotations

import logging
import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from achievemate.fileio import read_yaml
from achievemate.models import Settings

log = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the workspace root directory (contains data/ and settings.yaml)."""
    return Path(
        os.environ.get("ACHIEVEMATE_ROOT", str(Path.home() / "achievemate"))
    ).expanduser().resolve()


def load_settings(root: Path | None = None) -> Settings:
    """Load settings.yaml, falling back to defaults when missing or malformed."""
    try:
        return Settings.from_dict(read_yaml(settings_path(root)))
    except (OSError, yaml.YAMLError, TypeError, ValueError) as e:
        log.warning("Ignoring unreadable settings file: %s", e)
        return Settings()


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get the user's timezone from settings.yaml, defaulting to UTC."""
    name = load_settings(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning("Unknown timezone %r, using UTC", name)
        return ZoneInfo("UTC")


def today_str(root: Path | None = None) -> str:
    """Get today's calendar-day string (YYYY-MM-DD) in the user's timezone."""
    return now_local(root).date().isoformat()


def now_local(root: Path | None = None) -> datetime:
    """Get current datetime in the user's timezone."""
    return datetime.now(get_user_timezone(root))


def configure_logging(settings: Settings, filename: Path | None = None) -> None:
    """Configure the root logger from settings; *filename* keeps a TUI's screen clean."""
    level = getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        filename=str(filename) if filename else None,
    )


# ── Path helpers ──────────────────────────────────────────────

def data_dir(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data"


def settings_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "settings.yaml"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"
