"""Achieve-mate core library — state, persistence and derived metrics.

Public API re-exports for convenient imports:
    from achievemate import AppState, FileStore, FocusTimer, ...
"""

# Workspace & settings
from achievemate.workspace import (
    workspace_root,
    load_settings,
    get_user_timezone,
    today_str,
    now_local,
    configure_logging,
    data_dir,
    settings_path,
    hooks_config_path,
)

# Storage
from achievemate.store import FileStore, KeyValueStore, MemoryStore
from achievemate.persistence import PersistentField

# Derived metrics
from achievemate.progress import (
    percent,
    playlist_progress,
    overall_topic_progress,
    today_goals,
    today_goal_progress,
    completed_goal_count,
    focus_summary,
)
from achievemate.achievements import (
    ACHIEVEMENTS,
    evaluate_achievements,
    recent_achievements,
    newly_earned,
)
from achievemate.streak import StreakTracker

# Mutators
from achievemate.playlists import (
    add_playlist,
    toggle_video,
    delete_playlist,
    find_playlist,
    parse_video_lines,
)
from achievemate.goals import add_goal, toggle_goal, delete_goal, find_goal

# Timer
from achievemate.timer import AsyncioScheduler, FocusTimer, TimerState

# Hooks
from achievemate.hooks import run_hooks, load_hooks_config

# State container
from achievemate.state import AppState

# Models
from achievemate.models import (
    Video,
    Playlist,
    Goal,
    FocusSession,
    Achievement,
    AchievementDef,
    Metrics,
    Settings,
)
