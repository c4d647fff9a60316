import json
import logging
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_PATH = Path.home() / ".tax_refund_estimator" / "device_storage.json"


class DeviceStorage:
    """Best-effort string key/value store persisted to one JSON file

    A missing, empty or corrupt file reads as empty; it is never fatal.
    """

    def __init__(self, path: Path | str = DEFAULT_STORAGE_PATH):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable device storage %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get_item(self, name: str) -> str | None:
        value = self._read_all().get(name)
        return value if isinstance(value, str) else None

    def set_item(self, name: str, value: str) -> None:
        with self._lock:
            data = self._read_all()
            data[name] = value
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data), encoding="utf-8")

    def remove_item(self, name: str) -> None:
        with self._lock:
            data = self._read_all()
            if data.pop(name, None) is not None:
                self.path.write_text(json.dumps(data), encoding="utf-8")

    def load_json(self, name: str, default):
        raw = self.get_item(name)
        if not raw:
            return default
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding corrupt %s entry", name)
            return default

    def save_json(self, name: str, value) -> None:
        self.set_item(name, json.dumps(value))
