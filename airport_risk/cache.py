"""
Time-bounded in-memory cache.

Entries are immutable and replaced per key, so a reader either sees the old
entry or the new one, never a partially written value.
"""
import datetime
from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Optional, TypeVar

T = TypeVar("T")

Clock = Callable[[], datetime.datetime]


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass(frozen=True)
class TTLPolicy:
    """Expiry rule: an entry is fresh while its age is below ``ttl``."""
    ttl: datetime.timedelta
    clock: Clock = field(default=utc_now)

    def now(self) -> datetime.datetime:
        return self.clock()

    def is_fresh(self, created_at: datetime.datetime) -> bool:
        return self.clock() - created_at < self.ttl


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    value: T
    created_at: datetime.datetime


class TTLCache(Generic[T]):
    """Mapping of key -> CacheEntry governed by a TTLPolicy."""

    def __init__(self, policy: TTLPolicy):
        self.policy = policy
        self._entries: Dict[str, CacheEntry[T]] = {}

    def get(self, key: str) -> Optional[T]:
        """Return the cached value if present and fresh, else None."""
        entry = self._entries.get(key)
        if entry is None or not self.policy.is_fresh(entry.created_at):
            return None
        return entry.value

    def put(self, key: str, value: T) -> CacheEntry[T]:
        # Overwrite, never merge
        entry = CacheEntry(value=value, created_at=self.policy.now())
        self._entries[key] = entry
        return entry

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries = {}
        else:
            self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
