#!/usr/bin/env python3
"""Achieve-mate TUI — courses, goals and focus sessions powered by Textual."""

from __future__ import annotations

import sys
from typing import Any, Callable

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.reactive import reactive
from textual.timer import Timer
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Label,
    Static,
    TextArea,
)

from achievemate import (
    AppState,
    FileStore,
    FocusSession,
    FocusTimer,
    configure_logging,
    data_dir,
    find_playlist,
    focus_summary,
    load_settings,
    overall_topic_progress,
    run_hooks,
    today_goal_progress,
    today_str,
    workspace_root,
)
from achievemate.models import Achievement


# ── Stylesheet ─────────────────────────────────────────────────

CSS = """
Screen {
    background: $surface;
}

.view {
    height: 1fr;
    padding: 0 2;
}

.section-title {
    text-style: bold;
    color: $text;
    margin: 1 0 0 0;
}

.muted {
    color: $text-muted;
}

#dash-stats {
    height: auto;
    padding: 1 2;
    border: tall $primary-background-darken-2;
}

#dash-achievements, #dash-goals {
    height: auto;
    padding: 0 1;
}

#playlists-table {
    height: 1fr;
    min-height: 6;
}

#videos-table {
    height: 1fr;
    min-height: 6;
}

#playlist-form {
    height: auto;
}

#playlist-form Input {
    width: 1fr;
}

#pl-videos {
    height: 6;
}

#goal-row {
    height: auto;
}

#goal-input {
    width: 1fr;
}

#goals-table {
    height: 1fr;
}

#focus-clock {
    content-align: center middle;
    text-style: bold;
    height: 5;
    border: tall $primary-background-darken-2;
}

.button-row {
    height: auto;
}

.preset {
    min-width: 8;
}

.preset.-selected {
    background: $primary;
}
"""

VIEWS = ("dashboard", "courses", "goals", "focus")


class TextualScheduler:
    """Adapts ``App.set_interval`` to the timer's scheduler seam."""

    def __init__(self, app: App, after_tick: Callable[[], Any]) -> None:
        self.app = app
        self.after_tick = after_tick

    def schedule_repeating(self, interval: float, callback: Callable[[], Any]) -> _IntervalHandle:
        def fire() -> None:
            callback()
            self.after_tick()

        return _IntervalHandle(self.app.set_interval(interval, fire))


class _IntervalHandle:
    def __init__(self, timer: Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.stop()


# ── Views ──────────────────────────────────────────────────────


class DashboardView(VerticalScroll):
    def compose(self) -> ComposeResult:
        yield Label("Dashboard", classes="section-title")
        yield Static(id="dash-stats")
        yield Label("Recent Achievements", classes="section-title")
        yield Static(id="dash-achievements")
        yield Label("Today's Focus", classes="section-title")
        yield Static(id="dash-goals")


class CoursesView(Vertical):
    def compose(self) -> ComposeResult:
        yield Label("Courses", classes="section-title")
        yield DataTable(id="playlists-table")
        yield Label("Videos (select to toggle)", classes="section-title", id="videos-title")
        yield DataTable(id="videos-table")
        yield Label("New playlist", classes="section-title")
        yield Vertical(
            Horizontal(
                Input(placeholder="Name", id="pl-name"),
                Input(placeholder="Source", id="pl-source"),
            ),
            TextArea(id="pl-videos"),
            Horizontal(
                Button("Save", id="pl-add", variant="primary"),
                Button("Delete selected", id="pl-delete", variant="error"),
                classes="button-row",
            ),
            id="playlist-form",
        )

    def on_mount(self) -> None:
        for table_id, columns in (
            ("#playlists-table", ("Name", "Source", "Done", "Progress")),
            ("#videos-table", ("", "Title")),
        ):
            table = self.query_one(table_id, DataTable)
            table.cursor_type = "row"
            table.add_columns(*columns)


class GoalsView(Vertical):
    def compose(self) -> ComposeResult:
        yield Label("Goals", classes="section-title")
        yield Label("", id="goals-date", classes="muted")
        yield Horizontal(
            Input(placeholder="New Goal...", id="goal-input"),
            Button("+", id="goal-add", variant="warning"),
            id="goal-row",
        )
        yield DataTable(id="goals-table")
        yield Label("enter: toggle · x: delete", classes="muted")

    def on_mount(self) -> None:
        table = self.query_one("#goals-table", DataTable)
        table.cursor_type = "row"
        table.add_columns("", "Goal")


class FocusView(Vertical):
    def __init__(self, presets: list[int], **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.presets = presets

    def compose(self) -> ComposeResult:
        yield Label("Focus", classes="section-title")
        yield Input(placeholder="Task Name", id="focus-task")
        yield Horizontal(
            *[Button(f"{m}m", id=f"preset-{m}", classes="preset") for m in self.presets],
            classes="button-row",
        )
        yield Static("", id="focus-clock")
        yield Horizontal(
            Button("Start", id="focus-toggle", variant="success"),
            Button("Stop", id="focus-stop", variant="error"),
            classes="button-row",
        )


# ── Main app ───────────────────────────────────────────────────


class AchieveMateApp(App):
    """Achieve-mate — learning playlists, daily goals and focus sessions."""

    TITLE = "Achieve-mate"
    CSS = CSS

    BINDINGS = [
        Binding("d", "show('dashboard')", "Home"),
        Binding("c", "show('courses')", "Courses"),
        Binding("g", "show('goals')", "Goals"),
        Binding("f", "show('focus')", "Focus"),
        Binding("x", "delete_goal", "Delete goal", show=False),
        Binding("escape", "blur_focus", "Back", show=False),
        Binding("q", "quit_app", "Quit"),
    ]

    current_view: reactive[str] = reactive("dashboard")

    def __init__(self) -> None:
        super().__init__()
        self.root_dir = workspace_root()
        self.settings = load_settings(self.root_dir)
        self.state: AppState | None = None
        self.focus_timer = FocusTimer(
            duration=self.settings.default_focus_minutes,
            scheduler=TextualScheduler(self, after_tick=self._refresh_focus),
            on_complete=self._on_focus_complete,
            notify=self._on_focus_alert,
        )
        self._selected_playlist: str | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield DashboardView(id="dashboard-view", classes="view")
        yield CoursesView(id="courses-view", classes="view")
        yield GoalsView(id="goals-view", classes="view")
        yield FocusView(self.settings.focus_presets, id="focus-view", classes="view")
        yield Footer()

    async def on_mount(self) -> None:
        self.state = await AppState.open(
            FileStore(data_dir(self.root_dir)),
            today=lambda: today_str(self.root_dir),
            settings=self.settings,
        )
        self.state.unlock_listeners.append(self._on_unlock)
        self._switch_to("dashboard")
        self._refresh_all()

    async def on_unmount(self) -> None:
        # Final flush also covers ctrl+c, which skips action_quit_app.
        self.focus_timer.close()
        if self.state is not None:
            await self.state.close()

    # ── Rendering ──────────────────────────────────────────────

    def _refresh_all(self) -> None:
        if self.state is None:
            return
        self.sub_title = f"\U0001f525 {self.state.streak} Days"
        self._refresh_dashboard()
        self._refresh_courses()
        self._refresh_goals()
        self._refresh_focus()

    def _refresh_dashboard(self) -> None:
        state = self.state
        today = state.today()
        topic = overall_topic_progress(state.playlists)
        goal = today_goal_progress(state.goals, today)
        stats = focus_summary(state.focus_history)
        self.query_one("#dash-stats", Static).update(
            f"Topics Done: {topic}%    Goals Done: {goal}%\n"
            f"Focus: {stats['total_sessions']} sessions, {stats['total_minutes']} min"
        )

        earned = state.recent_achievements()
        self.query_one("#dash-achievements", Static).update(
            "\n".join(f"{a.icon}  {a.name}" for a in earned) if earned else "No achievements yet."
        )

        todays = state.today_goals()
        self.query_one("#dash-goals", Static).update(
            "\n".join(f"[{'x' if g.completed else ' '}] {g.title}" for g in todays)
            if todays else "No goals set."
        )

    def _refresh_courses(self) -> None:
        playlists = self.state.playlists
        table = self.query_one("#playlists-table", DataTable)
        table.clear()
        for p in playlists:
            table.add_row(p.name, p.source, f"{p.completed_count}/{p.total_count}", f"{p.progress}%", key=p.id)

        videos = self.query_one("#videos-table", DataTable)
        videos.clear()
        selected = find_playlist(playlists, self._selected_playlist or "")
        title = self.query_one("#videos-title", Label)
        if selected is None:
            self._selected_playlist = None
            title.update("Videos (select a playlist)")
            return
        title.update(f"{selected.name} · {selected.progress}% (select to toggle)")
        for v in selected.videos:
            videos.add_row("✓" if v.completed else " ", v.title, key=v.id)

    def _refresh_goals(self) -> None:
        self.query_one("#goals-date", Label).update(self.state.today())
        table = self.query_one("#goals-table", DataTable)
        table.clear()
        for g in self.state.today_goals():
            table.add_row("✓" if g.completed else " ", g.title, key=g.id)

    def _refresh_focus(self) -> None:
        timer = self.focus_timer
        label = timer.task if timer.is_active else ""
        self.query_one("#focus-clock", Static).update(f"{label}\n{timer.display()}")
        self.query_one("#focus-task", Input).disabled = timer.is_active
        self.query_one("#focus-toggle", Button).label = "Pause" if timer.is_running else "Start" if timer.is_idle else "Resume"
        self.query_one("#focus-stop", Button).disabled = not timer.is_active
        for button in self.query(".preset"):
            button.set_class(button.id == f"preset-{timer.duration}", "-selected")
            button.disabled = timer.is_active

    # ── Courses ────────────────────────────────────────────────

    @on(DataTable.RowSelected, "#playlists-table")
    def _on_playlist_selected(self, event: DataTable.RowSelected) -> None:
        self._selected_playlist = event.row_key.value
        self._refresh_courses()

    @on(DataTable.RowSelected, "#videos-table")
    def _on_video_selected(self, event: DataTable.RowSelected) -> None:
        if self._selected_playlist is None:
            return
        self.state.toggle_video(self._selected_playlist, event.row_key.value)
        self._refresh_all()

    @on(Button.Pressed, "#pl-add")
    def _on_add_playlist(self) -> None:
        name = self.query_one("#pl-name", Input)
        source = self.query_one("#pl-source", Input)
        videos = self.query_one("#pl-videos", TextArea)
        playlist, errors = self.state.add_playlist(name.value, source.value, videos.text)
        if errors:
            self.notify("; ".join(errors), title="Cannot add playlist", severity="warning")
            return
        name.value = ""
        source.value = ""
        videos.load_text("")
        self._selected_playlist = playlist.id
        self._refresh_all()

    @on(Button.Pressed, "#pl-delete")
    def _on_delete_playlist(self) -> None:
        if self._selected_playlist and self.state.delete_playlist(self._selected_playlist):
            self._selected_playlist = None
            self._refresh_all()

    # ── Goals ──────────────────────────────────────────────────

    @on(Button.Pressed, "#goal-add")
    @on(Input.Submitted, "#goal-input")
    def _on_add_goal(self) -> None:
        box = self.query_one("#goal-input", Input)
        _goal, errors = self.state.add_goal(box.value)
        if errors:
            self.notify("; ".join(errors), severity="warning")
            return
        box.value = ""
        self._refresh_all()

    @on(DataTable.RowSelected, "#goals-table")
    def _on_goal_selected(self, event: DataTable.RowSelected) -> None:
        self.state.toggle_goal(event.row_key.value)
        self._refresh_all()

    def action_delete_goal(self) -> None:
        if self.current_view != "goals":
            return
        table = self.query_one("#goals-table", DataTable)
        if table.row_count == 0:
            return
        row_key = table.coordinate_to_cell_key(table.cursor_coordinate).row_key
        if self.state.delete_goal(row_key.value):
            self._refresh_all()

    # ── Focus ──────────────────────────────────────────────────

    @on(Input.Changed, "#focus-task")
    def _on_task_changed(self, event: Input.Changed) -> None:
        if self.focus_timer.is_idle:
            self.focus_timer.set_task(event.value)

    @on(Button.Pressed, ".preset")
    def _on_preset(self, event: Button.Pressed) -> None:
        minutes = int((event.button.id or "").removeprefix("preset-"))
        if self.focus_timer.is_idle:
            self.focus_timer.set_duration(minutes)
            self._refresh_focus()

    @on(Button.Pressed, "#focus-toggle")
    def _on_focus_toggle(self) -> None:
        was_idle = self.focus_timer.is_idle
        try:
            self.focus_timer.toggle()
        except ValueError as e:
            self.notify(str(e), title="Task?", severity="warning")
            return
        if was_idle:
            self._run_hook("on_focus_start", self.focus_timer.to_dict())
        self._refresh_focus()

    @on(Button.Pressed, "#focus-stop")
    def _on_focus_stop(self) -> None:
        context = self.focus_timer.to_dict()
        if self.focus_timer.stop():
            self._run_hook("on_focus_stop", context)
        self._refresh_focus()

    def _on_focus_alert(self, session: FocusSession) -> None:
        self.bell()
        self.notify(f"{session.task} · {session.duration} min", title="Done!")

    def _on_focus_complete(self, session: FocusSession) -> None:
        self.state.record_session(session)
        self._run_hook("on_focus_complete", session.to_dict())
        self._refresh_all()

    def _on_unlock(self, achievement: Achievement) -> None:
        self.notify(f"{achievement.icon} {achievement.name}", title="Achievement unlocked")
        self._run_hook("on_achievement_unlocked", achievement.to_dict())

    @work(thread=True)
    def _run_hook(self, hook_point: str, context: dict[str, Any]) -> None:
        run_hooks(hook_point, context, self.root_dir)

    # ── Navigation ─────────────────────────────────────────────

    def action_show(self, view: str) -> None:
        self._switch_to(view)

    def action_blur_focus(self) -> None:
        self.set_focus(None)

    def action_quit_app(self) -> None:
        self.exit()

    def _switch_to(self, view: str) -> None:
        for name in VIEWS:
            self.query_one(f"#{name}-view").display = name == view
        self.current_view = view


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        print(f"Cannot create workspace {root}: {e}")
        print("Set ACHIEVEMATE_ROOT to a writable directory.")
        sys.exit(1)

    configure_logging(load_settings(root), filename=root / "achievemate.log")
    AchieveMateApp().run()


if __name__ == "__main__":
    main()
