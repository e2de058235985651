"""Progress streak counter.

The streak counts progress-making actions, not days: every call to
``record_progress`` adds exactly one. Which actions qualify is decided by
the callers (today only a playlist whose percentage went up).
"""

from __future__ import annotations

import logging

from achievemate.persistence import PersistentField

log = logging.getLogger(__name__)


class StreakTracker:
    def __init__(self, field: PersistentField[int]) -> None:
        self.field = field

    @property
    def count(self) -> int:
        return self.field.value

    def record_progress(self) -> int:
        new = self.field.value + 1
        self.field.set(new)
        log.debug("Streak now %d", new)
        return new
