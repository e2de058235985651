"""Tests for achievemate/hooks.py — hook system."""

import json

import yaml

from achievemate.hooks import run_hooks


def test_run_hooks_no_config(workspace):
    """No hooks.yaml -> no hooks run."""
    results = run_hooks("on_focus_complete", {"task": "Write essay"}, workspace)
    assert results == []


def test_run_hooks_with_echo(workspace):
    """Hook receives the context JSON on stdin."""
    config = {"on_focus_complete": ["cat"]}
    (workspace / "hooks.yaml").write_text(yaml.dump(config), encoding="utf-8")

    results = run_hooks("on_focus_complete", {"task": "Write essay", "duration": 25}, workspace)
    assert len(results) == 1
    assert results[0]["exit_code"] == 0
    output = json.loads(results[0]["stdout"])
    assert output["task"] == "Write essay"


def test_run_hooks_invalid_hook_point(workspace):
    results = run_hooks("post_finalize", {}, workspace)
    assert results == []


def test_run_hooks_nonzero_exit(workspace):
    config = {"on_focus_stop": ["exit 3"]}
    (workspace / "hooks.yaml").write_text(yaml.dump(config), encoding="utf-8")

    results = run_hooks("on_focus_stop", {}, workspace)
    assert results[0]["exit_code"] == 3


def test_run_hooks_timeout(workspace):
    config = {"on_achievement_unlocked": [{"command": "sleep 10", "timeout": 1}]}
    (workspace / "hooks.yaml").write_text(yaml.dump(config), encoding="utf-8")

    results = run_hooks("on_achievement_unlocked", {"name": "First Steps"}, workspace)
    assert len(results) == 1
    assert results[0]["exit_code"] == -1
    assert "timed out" in results[0].get("error", "").lower()


def test_run_hooks_sets_hook_point_env(workspace):
    config = {"on_focus_start": ['echo "$ACHIEVEMATE_HOOK"']}
    (workspace / "hooks.yaml").write_text(yaml.dump(config), encoding="utf-8")

    results = run_hooks("on_focus_start", {}, workspace)
    assert results[0]["stdout"].strip() == "on_focus_start"


def test_run_hooks_skips_blank_and_malformed_entries(workspace):
    config = {"on_focus_stop": ["", 42, {"timeout": 3}, "true"]}
    (workspace / "hooks.yaml").write_text(yaml.dump(config), encoding="utf-8")

    results = run_hooks("on_focus_stop", {}, workspace)
    assert [r["command"] for r in results] == ["true"]


def test_run_hooks_malformed_config(workspace):
    (workspace / "hooks.yaml").write_text("on_focus_stop: [unclosed\n", encoding="utf-8")

    assert run_hooks("on_focus_stop", {}, workspace) == []
