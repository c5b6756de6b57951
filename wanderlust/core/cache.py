"""Small in-memory cache with lazily checked expiry."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

V = TypeVar("V")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TTLCache(Generic[V]):
    """Keyed map whose entries expire ``ttl`` after they were written.

    Expired entries are only dropped when they are read; there is no
    background eviction.
    """

    def __init__(self, ttl: timedelta, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self.ttl = ttl
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[V, datetime]] = {}

    def get(self, key: Hashable) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at > self.ttl:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: V) -> None:
        self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def ttl_from_env(raw: Optional[str], default_hours: float) -> timedelta:
    """Parse an hours value from the environment, tolerating bad input."""

    if not raw:
        return timedelta(hours=default_hours)
    try:
        return timedelta(hours=float(raw))
    except ValueError:
        return timedelta(hours=default_hours)


__all__ = ["TTLCache", "ttl_from_env"]
