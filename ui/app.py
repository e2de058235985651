from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status

from achievemate import (
    AppState,
    AsyncioScheduler,
    FileStore,
    FocusSession,
    FocusTimer,
    configure_logging,
    data_dir,
    find_playlist,
    focus_summary,
    load_settings,
    run_hooks,
    today_str,
    workspace_root,
)
from achievemate.models import Achievement

log = logging.getLogger(__name__)


def _fire_hook(hook_point: str, context: dict[str, Any]) -> None:
    """Run hooks in the default executor so the event loop keeps ticking."""
    root = workspace_root()
    future = asyncio.get_running_loop().run_in_executor(None, run_hooks, hook_point, context, root)
    future.add_done_callback(_log_hook_failure)


def _log_hook_failure(future: asyncio.Future) -> None:
    if not future.cancelled() and future.exception() is not None:
        log.error("Hook runner failed", exc_info=future.exception())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    root = workspace_root()
    settings = load_settings(root)
    configure_logging(settings)

    state = await AppState.open(
        FileStore(data_dir(root)),
        today=lambda: today_str(root),
        settings=settings,
    )

    def on_unlock(achievement: Achievement) -> None:
        _fire_hook("on_achievement_unlocked", achievement.to_dict())

    def on_complete(session: FocusSession) -> None:
        state.record_session(session)
        _fire_hook("on_focus_complete", session.to_dict())

    state.unlock_listeners.append(on_unlock)
    timer = FocusTimer(
        duration=settings.default_focus_minutes,
        scheduler=AsyncioScheduler(),
        on_complete=on_complete,
    )
    app.state.achievemate = state
    app.state.timer = timer
    try:
        yield
    finally:
        timer.close()
        await state.close()
        log.info("State flushed")


app = FastAPI(title="Achieve-mate API", version="0.1.0", lifespan=lifespan)


def get_state(request: Request) -> AppState:
    return request.app.state.achievemate


def get_timer(request: Request) -> FocusTimer:
    return request.app.state.timer


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"ok": "true"}


@app.get("/api/dashboard")
async def api_dashboard(state: AppState = Depends(get_state)) -> dict[str, Any]:
    """Topic and goal percentages, streak, recent badges, today's goals."""
    return state.dashboard()


# ── Playlists ─────────────────────────────────────────────────

@app.get("/api/playlists")
async def api_list_playlists(state: AppState = Depends(get_state)) -> dict[str, Any]:
    return {"playlists": [p.to_dict() for p in state.playlists]}


@app.post("/api/playlists")
async def api_create_playlist(payload: dict[str, Any] = Body(...), state: AppState = Depends(get_state)) -> dict[str, Any]:
    """Create a playlist; ``videos`` is either newline-separated text or a list of titles."""
    videos = payload.get("videos", "") or ""
    if isinstance(videos, list):
        videos = "\n".join(str(v) for v in videos)
    playlist, errors = state.add_playlist(
        str(payload.get("name", "")),
        str(payload.get("source", "") or ""),
        str(videos),
    )
    if errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="; ".join(errors))
    return {"ok": True, "playlist": playlist.to_dict()}


@app.delete("/api/playlists/{playlist_id}")
async def api_delete_playlist(playlist_id: str, state: AppState = Depends(get_state)) -> dict[str, Any]:
    if not state.delete_playlist(playlist_id):
        raise HTTPException(status_code=404, detail=f"Playlist not found: {playlist_id}")
    return {"ok": True, "playlist_id": playlist_id}


@app.post("/api/playlists/{playlist_id}/videos/{video_id}/toggle")
async def api_toggle_video(playlist_id: str, video_id: str, state: AppState = Depends(get_state)) -> dict[str, Any]:
    playlist = find_playlist(state.playlists, playlist_id)
    if playlist is None or not any(v.id == video_id for v in playlist.videos):
        raise HTTPException(status_code=404, detail=f"Video not found: {playlist_id}/{video_id}")
    updated = state.toggle_video(playlist_id, video_id)
    return {"ok": True, "playlist": updated.to_dict(), "streak": state.streak}


# ── Goals ─────────────────────────────────────────────────────

@app.get("/api/goals")
async def api_list_goals(state: AppState = Depends(get_state)) -> dict[str, Any]:
    """Today's goals only; older goals stay stored but are not listed."""
    dash = state.dashboard()
    return {"today": dash["today"], "goals": dash["todayGoals"], "progress": dash["goalProgress"]}


@app.post("/api/goals")
async def api_create_goal(payload: dict[str, Any] = Body(...), state: AppState = Depends(get_state)) -> dict[str, Any]:
    goal, errors = state.add_goal(str(payload.get("title", "")))
    if errors:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="; ".join(errors))
    return {"ok": True, "goal": goal.to_dict()}


@app.post("/api/goals/{goal_id}/toggle")
async def api_toggle_goal(goal_id: str, state: AppState = Depends(get_state)) -> dict[str, Any]:
    goal = state.toggle_goal(goal_id)
    if goal is None:
        raise HTTPException(status_code=404, detail=f"Goal not found: {goal_id}")
    return {"ok": True, "goal": goal.to_dict()}


@app.delete("/api/goals/{goal_id}")
async def api_delete_goal(goal_id: str, state: AppState = Depends(get_state)) -> dict[str, Any]:
    if not state.delete_goal(goal_id):
        raise HTTPException(status_code=404, detail=f"Goal not found: {goal_id}")
    return {"ok": True, "goal_id": goal_id}


# ── Achievements ──────────────────────────────────────────────

@app.get("/api/achievements")
async def api_achievements(state: AppState = Depends(get_state)) -> dict[str, Any]:
    return {
        "metrics": state.metrics().to_dict(),
        "achievements": [a.to_dict() for a in state.achievements()],
        "recent": [a.to_dict() for a in state.recent_achievements()],
    }


# ── Focus ─────────────────────────────────────────────────────

@app.get("/api/focus/current")
async def api_focus_current(timer: FocusTimer = Depends(get_timer), state: AppState = Depends(get_state)) -> dict[str, Any]:
    return {"timer": timer.to_dict(), "presets": state.settings.focus_presets}


@app.post("/api/focus/start")
async def api_focus_start(payload: dict[str, Any] = Body(...), timer: FocusTimer = Depends(get_timer)) -> dict[str, Any]:
    """Start a countdown; rejected with 409 without a task name or while one is active."""
    try:
        duration = payload.get("duration")
        timer.start(
            task=str(payload.get("task", "") or ""),
            duration=None if duration is None else int(duration),
        )
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    _fire_hook("on_focus_start", timer.to_dict())
    return {"ok": True, "timer": timer.to_dict()}


@app.post("/api/focus/pause")
async def api_focus_pause(timer: FocusTimer = Depends(get_timer)) -> dict[str, Any]:
    return {"ok": timer.pause(), "timer": timer.to_dict()}


@app.post("/api/focus/resume")
async def api_focus_resume(timer: FocusTimer = Depends(get_timer)) -> dict[str, Any]:
    return {"ok": timer.resume(), "timer": timer.to_dict()}


@app.post("/api/focus/stop")
async def api_focus_stop(timer: FocusTimer = Depends(get_timer)) -> dict[str, Any]:
    context = timer.to_dict()
    stopped = timer.stop()
    if stopped:
        _fire_hook("on_focus_stop", context)
    return {"ok": stopped, "timer": timer.to_dict()}


@app.get("/api/focus/history")
async def api_focus_history(days: int = 7, state: AppState = Depends(get_state)) -> dict[str, Any]:
    sessions = state.focus_history
    return {
        "sessions": [s.to_dict() for s in sessions],
        "summary": focus_summary(sessions, days=days),
    }
