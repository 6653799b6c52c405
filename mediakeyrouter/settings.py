# mediakeyrouter/settings.py

import json
import logging
from pathlib import Path
from threading import Lock


class EnableSwitch:
    """User-controlled on/off switch for media key capture, persisted across restarts.

    The value is cached in memory so the event tap callback never reads disk.
    """

    def __init__(self, path: Path):
        self._path = path
        self._lock = Lock()
        self._enabled = self._load()

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _load(self) -> bool:
        if not self._path.exists():
            # First run: default to enabled
            logging.info(f"Settings: no settings at {self._path}, media keys enabled by default")
            self._save(True)
            return True
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return bool(data.get("enabled", True))
        except (OSError, ValueError, AttributeError) as e:
            logging.error(f"Settings: could not read {self._path}, keeping media keys enabled: {e}")
            return True

    def _save(self, enabled: bool) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps({"enabled": enabled}), encoding="utf-8")
        except OSError as e:
            logging.error(f"Settings: could not write {self._path}: {e}")

    def toggle(self) -> bool:
        with self._lock:
            self._enabled = not self._enabled
            self._save(self._enabled)
            enabled = self._enabled
        logging.info(f"Settings: media key capture toggled: {enabled}")
        return enabled

    def reload(self) -> bool:
        """Re-reads the persisted value, e.g. after another process toggled it."""
        with self._lock:
            self._enabled = self._load()
            enabled = self._enabled
        logging.info(f"Settings: media key capture reloaded: {enabled}")
        return enabled
