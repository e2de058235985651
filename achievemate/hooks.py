"""Lifecycle hooks for Achieve-mate.

Hooks run shell commands when focus sessions start, stop or complete and
when an achievement unlocks. Configured via hooks.yaml in the workspace:

    on_focus_complete:
      - notify-send "Focus done"
      - command: ./log-session.sh
        timeout: 5

Each command gets the event context as JSON on stdin and the hook point
name in ``ACHIEVEMATE_HOOK``.
"""

from __future__ import annotations

import json
import logging
import os
import subprocess
from pathlib import Path
from typing import Any

import yaml

from achievemate.fileio import read_yaml
from achievemate.workspace import hooks_config_path, workspace_root

log = logging.getLogger(__name__)

VALID_HOOK_POINTS = {
    "on_focus_start",
    "on_focus_stop",
    "on_focus_complete",
    "on_achievement_unlocked",
}

DEFAULT_TIMEOUT = 30
OUTPUT_CAP = 4096


def load_hooks_config(root: Path | None = None) -> dict[str, Any]:
    """Read hooks.yaml; an unreadable or malformed file configures no hooks."""
    path = hooks_config_path(root)
    try:
        return read_yaml(path)
    except (OSError, yaml.YAMLError) as e:
        log.warning("Ignoring unreadable %s: %s", path, e)
        return {}


def _parse_entry(entry: Any) -> tuple[str, float] | None:
    """A hook entry is a bare command string or a {command, timeout} mapping."""
    if isinstance(entry, str):
        command, timeout = entry, DEFAULT_TIMEOUT
    elif isinstance(entry, dict):
        command = str(entry.get("command", "") or "")
        timeout = entry.get("timeout", DEFAULT_TIMEOUT)
    else:
        return None
    if not command.strip():
        return None
    return command, timeout


def _run_one(command: str, timeout: float, payload: str, hook_point: str, root: Path) -> dict[str, Any]:
    result: dict[str, Any] = {"command": command, "hook_point": hook_point}
    env = {**os.environ, "ACHIEVEMATE_HOOK": hook_point}
    try:
        proc = subprocess.run(
            command,
            shell=True,
            input=payload,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=str(root),
            env=env,
        )
    except subprocess.TimeoutExpired:
        log.warning("Hook %r timed out after %ss", command, timeout)
        result.update(exit_code=-1, error=f"Hook timed out after {timeout}s")
        return result
    except OSError as e:
        log.warning("Hook %r failed: %s", command, e)
        result.update(exit_code=-1, error=str(e))
        return result

    if proc.returncode != 0:
        log.warning("Hook %r exited with %d", command, proc.returncode)
    result.update(
        exit_code=proc.returncode,
        stdout=proc.stdout[:OUTPUT_CAP],
        stderr=proc.stderr[:OUTPUT_CAP],
    )
    return result


def run_hooks(
    hook_point: str,
    context: dict[str, Any],
    root: Path | None = None,
) -> list[dict[str, Any]]:
    """Run every command registered for ``hook_point``, in order.

    Returns one result dict per command: exit code plus capped stdout and
    stderr, or exit code -1 and an error message. Unknown hook points and a
    missing config run nothing.
    """
    if hook_point not in VALID_HOOK_POINTS:
        log.warning("Unknown hook point %r", hook_point)
        return []
    if root is None:
        root = workspace_root()

    entries = load_hooks_config(root).get(hook_point) or []
    if not isinstance(entries, list):
        log.warning("hooks.yaml: %s should be a list", hook_point)
        return []

    payload = json.dumps(context, ensure_ascii=False)
    parsed = [p for p in map(_parse_entry, entries) if p is not None]
    return [_run_one(command, timeout, payload, hook_point, root) for command, timeout in parsed]
