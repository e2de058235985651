"""Playlist and video mutations for Achieve-mate.

Every function takes the current playlist list and returns a new one; the
input list and its playlists are left untouched.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable

from achievemate.models import Playlist, Video, new_id
from achievemate.progress import playlist_progress


def parse_video_lines(raw_lines: str) -> list[str]:
    """One title per non-blank line, trimmed."""
    return [line.strip() for line in raw_lines.splitlines() if line.strip()]


def find_playlist(playlists: list[Playlist], playlist_id: str) -> Playlist | None:
    for p in playlists:
        if p.id == playlist_id:
            return p
    return None


def add_playlist(
    playlists: list[Playlist],
    name: str,
    source: str,
    raw_lines: str,
    default_source: str = "YouTube",
) -> tuple[list[Playlist], list[str]]:
    """Append a playlist built from pasted video titles. Returns (playlists, errors)."""
    name = (name or "").strip()
    if not name:
        return list(playlists), ["Playlist name is required"]

    videos = tuple(
        Video(id=new_id(), title=title, completed=False)
        for title in parse_video_lines(raw_lines or "")
    )
    playlist = Playlist(
        id=new_id(),
        name=name,
        source=(source or "").strip() or default_source,
        videos=videos,
        progress=0,
    )
    return [*playlists, playlist], []


def toggle_video(
    playlists: list[Playlist],
    playlist_id: str,
    video_id: str,
    on_progress: Callable[[], object] | None = None,
) -> list[Playlist]:
    """Flip one video and recompute its playlist's progress.

    ``on_progress`` runs once when the new percentage is strictly above the
    stored one; unchecking a video or a flip that leaves the rounded
    percentage where it was does not call it.
    """
    result = []
    for p in playlists:
        if p.id != playlist_id or not any(v.id == video_id for v in p.videos):
            result.append(p)
            continue
        videos = tuple(
            replace(v, completed=not v.completed) if v.id == video_id else v
            for v in p.videos
        )
        updated = replace(p, videos=videos)
        updated = replace(updated, progress=playlist_progress(updated))
        if on_progress is not None and updated.progress > p.progress:
            on_progress()
        result.append(updated)
    return result


def delete_playlist(playlists: list[Playlist], playlist_id: str) -> list[Playlist]:
    return [p for p in playlists if p.id != playlist_id]
