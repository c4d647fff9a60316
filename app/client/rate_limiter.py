import time
from typing import Callable

from app.client.storage import DeviceStorage
from app.errors import RateLimitError

RATE_KEY = "gemini_device_rate_history_v1"
MAX_CALLS_PER_WINDOW = 5
WINDOW_SECONDS = 60.0


class RateLimiter:
    """Sliding-window limit on estimate calls per device, persisted across sessions"""

    def __init__(
        self,
        storage: DeviceStorage,
        max_calls: int = MAX_CALLS_PER_WINDOW,
        window_seconds: float = WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.storage = storage
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self._clock = clock

    def _history(self) -> list[float]:
        history = self.storage.load_json(RATE_KEY, [])
        if not isinstance(history, list):
            return []
        return [t for t in history if isinstance(t, (int, float)) and not isinstance(t, bool)]

    def check_and_record(self) -> None:
        now = self._clock()
        window_start = now - self.window_seconds
        recent = [t for t in self._history() if t > window_start]
        if len(recent) >= self.max_calls:
            self.storage.save_json(RATE_KEY, recent)
            raise RateLimitError("Too many requests. Please wait a moment.")
        recent.append(now)
        self.storage.save_json(RATE_KEY, recent)
