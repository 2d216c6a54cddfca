"""Durable key-value storage for pseudoshell.

The only durable value is the puzzle best time. Reads fall back to
"nothing stored" on a missing or unreadable store; write failures are
logged and otherwise ignored.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Dict, Optional

LOGGER = logging.getLogger(__name__)


class KeyValueStore:
    """String-keyed store of string values."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store, mostly for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore(KeyValueStore):
    """Store backed by a JSON object in a single file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        """Load the whole object. Missing or invalid files are empty."""
        try:
            raw = self.path.read_text(encoding="utf-8")
            if not raw.strip():
                return {}
            data = json.loads(raw)
        except (OSError, ValueError):
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            LOGGER.warning("Could not write %s: %s", self.path, e)


class BestTimeRecord:
    """The persisted best (minimum) puzzle completion time in milliseconds."""

    def __init__(self, store: KeyValueStore, key: str = "ctf_best_time_ms"):
        self.store = store
        self.key = key

    def load(self) -> Optional[float]:
        """Return the stored best time, or None if absent or unparsable."""
        try:
            raw = self.store.get(self.key)
        except Exception as e:
            LOGGER.warning("Could not read best time: %s", e)
            return None
        if raw is None:
            return None
        try:
            value = float(raw)
        except ValueError:
            LOGGER.debug("Ignoring unparsable best time %r", raw)
            return None
        if math.isnan(value) or value < 0:
            return None
        return value

    def save(self, elapsed_ms: float) -> None:
        try:
            self.store.set(self.key, repr(float(elapsed_ms)))
        except Exception as e:
            LOGGER.warning("Could not save best time: %s", e)


__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "JsonFileStore",
    "BestTimeRecord",
]
