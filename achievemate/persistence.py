"""Binding of one named slot of application state to a key-value store.

Each slot (streak, playlists, goals, focus history) is its own
``PersistentField``: loaded once at startup, written behind every change.
Slots never share a transaction, so a crash between two writes can leave
them mutually inconsistent (for example a completed video whose streak
increment never reached disk). That is accepted; nothing reconciles it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable, Generic, TypeVar

from achievemate.store import KeyValueStore

log = logging.getLogger(__name__)

T = TypeVar("T")


def _identity(x: Any) -> Any:
    return x


class PersistentField(Generic[T]):
    def __init__(
        self,
        store: KeyValueStore,
        key: str,
        default: T,
        decode: Callable[[Any], T] = _identity,
        encode: Callable[[T], Any] = _identity,
    ) -> None:
        self.store = store
        self.key = key
        self.default = default
        self.decode = decode
        self.encode = encode
        self._value: T = default
        self._dirty = False
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def value(self) -> T:
        return self._value

    @property
    def dirty(self) -> bool:
        """True when the in-memory value changed since the last load or flush."""
        return self._dirty

    async def load(self) -> T:
        """Read the slot, falling back to the default on any failure.

        A missing key, an unavailable store and an undecodable document all
        yield the default; the failure is logged, never raised.
        """
        try:
            raw = await self.store.get(self.key)
            value = self.default if raw is None else self.decode(json.loads(raw))
        except Exception as e:
            log.warning("Could not load %r, using default: %s", self.key, e)
            value = self.default
        self._value = value
        self._dirty = False
        return value

    async def save(self, value: T) -> None:
        await self.store.set(self.key, json.dumps(self.encode(value), ensure_ascii=False))

    def set(self, value: T) -> asyncio.Task[None] | None:
        """Replace the value now and write it behind.

        The write is scheduled on the running loop and not awaited; with no
        running loop the field just stays dirty until ``flush``.
        """
        self._value = value
        self._dirty = True
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return None
        task = loop.create_task(self._write_behind(value))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write_behind(self, value: T) -> None:
        try:
            await self.save(value)
        except Exception:
            log.exception("Background save of %r failed", self.key)

    async def flush(self) -> None:
        """Wait for outstanding writes, then persist the latest value.

        Write-behind tasks may finish out of order, so the current value is
        written once more whenever anything changed since the last load.
        """
        if self._pending:
            await asyncio.gather(*list(self._pending))
        if self._dirty:
            await self.save(self._value)
            self._dirty = False
