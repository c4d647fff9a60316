import threading
import time
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

V = TypeVar("V")

DEFAULT_TTL_SECONDS = 60.0


@dataclass
class CacheEntry(Generic[V]):
    value: V
    expires_at: float

    def is_fresh(self, now: float) -> bool:
        return now <= self.expires_at


class ResultCache(Generic[V]):
    """In-process TTL cache shared by concurrent request handlers

    Entries are never evicted proactively; a stale entry is dropped when a
    lookup finds it.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry[V]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> V | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if not entry.is_fresh(self._clock()):
                del self._entries[key]
                return None
            return entry.value

    def put(self, key: str, value: V) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(value, self._clock() + self.ttl_seconds)

    def __len__(self) -> int:
        return len(self._entries)
