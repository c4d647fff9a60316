import hashlib
import json
import time
from typing import Callable

from app.cache import DEFAULT_TTL_SECONDS
from app.client.storage import DeviceStorage
from app.models import EstimateResult

CACHE_KEY = "gemini_tax_cache_v1"


def payload_cache_key(payload: dict) -> str:
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class PersistentResultCache:
    """Client-side TTL cache of estimate results kept in device storage

    Same contract as the server's ResultCache: stale entries are skipped and
    dropped lazily, put overwrites and restarts the TTL.
    """

    def __init__(
        self,
        storage: DeviceStorage,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.ttl_seconds = ttl_seconds
        self._clock = clock

    def _load(self) -> dict:
        entries = self.storage.load_json(CACHE_KEY, {})
        return entries if isinstance(entries, dict) else {}

    def get(self, key: str) -> EstimateResult | None:
        entries = self._load()
        entry = entries.get(key)
        if not isinstance(entry, dict):
            return None
        expires_at = entry.get("exp")
        if not isinstance(expires_at, (int, float)) or self._clock() > expires_at:
            del entries[key]
            self.storage.save_json(CACHE_KEY, entries)
            return None
        try:
            return EstimateResult.model_validate(entry.get("value"))
        except ValueError:
            return None

    def put(self, key: str, value: EstimateResult) -> None:
        entries = self._load()
        entries[key] = {"value": value.model_dump(mode="json"), "exp": self._clock() + self.ttl_seconds}
        self.storage.save_json(CACHE_KEY, entries)
