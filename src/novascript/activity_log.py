"""Bounded, human-readable status log shown under the topic input."""

from __future__ import annotations

from collections import deque
from typing import Iterable, Iterator

ACTIVITY_LOG_CAPACITY = 4
LOG_PREFIX = "> "
DEFAULT_ENTRIES: tuple[str, ...] = ("System Ready.", "Awaiting Vector Input...")


class ActivityLog:
    """Sliding window of the most recent status lines; oldest lines fall off."""

    def __init__(
        self,
        entries: Iterable[str] = DEFAULT_ENTRIES,
        capacity: int = ACTIVITY_LOG_CAPACITY,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1.")
        self._entries: deque[str] = deque(entries, maxlen=capacity)

    def append(self, message: str) -> str:
        line = f"{LOG_PREFIX}{message}"
        self._entries.append(line)
        return line

    def entries(self) -> tuple[str, ...]:
        return tuple(self._entries)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.entries())
