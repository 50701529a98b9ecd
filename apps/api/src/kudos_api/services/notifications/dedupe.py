"""Time-bounded memory of notifications that were already sent."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Hashable

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationDedupeCache:
    """Map of dedupe keys to the moment they were first marked.

    Owned by the composition root and injected into notification senders.
    Entries live until :meth:`evict_older_than` drops them, normally from
    ``NotificationDedupeSweeper``.
    """

    def __init__(self, *, clock: Clock | None = None) -> None:
        self._clock = clock or _utcnow
        self._entries: dict[Hashable, datetime] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._entries

    def seen(self, key: Hashable) -> bool:
        return key in self._entries

    def mark(self, key: Hashable) -> None:
        self._entries.setdefault(key, self._clock())

    def check_and_mark(self, key: Hashable) -> bool:
        """Mark ``key``; ``True`` only the first time it is seen."""

        if key in self._entries:
            return False
        self._entries[key] = self._clock()
        return True

    def evict_older_than(self, duration: timedelta) -> int:
        """Drop entries marked more than ``duration`` ago; returns how many went."""

        cutoff = self._clock() - duration
        stale = [key for key, marked_at in self._entries.items() if marked_at < cutoff]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()


__all__ = ["Clock", "NotificationDedupeCache"]
