"""Daily goal mutations for Achieve-mate."""

from __future__ import annotations

from dataclasses import replace

from achievemate.models import Goal, new_id


def find_goal(goals: list[Goal], goal_id: str) -> Goal | None:
    for g in goals:
        if g.id == goal_id:
            return g
    return None


def add_goal(goals: list[Goal], title: str, today: str) -> tuple[list[Goal], list[str]]:
    """Append a goal stamped with *today*. Returns (goals, errors)."""
    title = (title or "").strip()
    if not title:
        return list(goals), ["Goal title is required"]
    goal = Goal(id=new_id(), title=title, completed=False, date=today)
    return [*goals, goal], []


def toggle_goal(goals: list[Goal], goal_id: str) -> list[Goal]:
    # Goal completion does not feed the streak.
    return [replace(g, completed=not g.completed) if g.id == goal_id else g for g in goals]


def delete_goal(goals: list[Goal], goal_id: str) -> list[Goal]:
    return [g for g in goals if g.id != goal_id]
