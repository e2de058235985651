"""String-keyed asynchronous key-value stores.

The persistence layer only needs two operations, ``get`` and ``set``, both
awaitable and both dealing in already-serialized strings.
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Protocol

from achievemate.fileio import read_text, write_text_atomic

log = logging.getLogger(__name__)

_KEY_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_key(key: str) -> str:
    if not _KEY_RE.match(key or ""):
        raise ValueError(f"Invalid store key: {key!r}")
    return key


class KeyValueStore(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str) -> None: ...


class FileStore:
    """One ``<key>.json`` document per key inside *directory*."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, key: str) -> Path:
        return self.directory / f"{validate_key(key)}.json"

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(read_text, self.path_for(key))

    async def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        await asyncio.to_thread(write_text_atomic, path, value)
        log.debug("Wrote %s (%d bytes)", path, len(value))


class MemoryStore:
    """Dict-backed store; nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self.data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self.data.get(validate_key(key))

    async def set(self, key: str, value: str) -> None:
        self.data[validate_key(key)] = value
