from __future__ import annotations

from typing import Protocol, Sequence

from .model import ActivityEntry


class ActivityRepository(Protocol):
    def append(self, entry: ActivityEntry) -> int:
        raise NotImplementedError

    def recent(self, limit: int) -> Sequence[ActivityEntry]:
        raise NotImplementedError
