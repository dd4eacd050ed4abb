"""
Key-Value Store - Small settings persisted between games.

The engine keeps two values here:
- the high score (HIGH_SCORE_KEY)
- the last difficulty chosen (DIFFICULTY_KEY)

Design decisions:
- Simple file-based storage, one JSON document
- Directory created on demand
- A missing or corrupt file reads as empty
- The in-memory store is the default (tests, ephemeral API servers)
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

HIGH_SCORE_KEY = "grinddeck.high_score"
DIFFICULTY_KEY = "grinddeck.difficulty"


class KeyValueStore(Protocol):
    """Anything with get/set over JSON-compatible values."""

    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed store. Nothing survives the process."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value


class JsonFileKeyValueStore:
    """
    Store backed by a single JSON file.

    Usage:
        store = JsonFileKeyValueStore("~/.grinddeck/settings.json")
        store.set(HIGH_SCORE_KEY, 120)
        store.get(HIGH_SCORE_KEY, 0)
    """

    def __init__(self, path: str | Path | None = None):
        if path is None:
            path = Path.home() / ".grinddeck" / "settings.json"
        self.path = Path(path).expanduser()

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def clear(self):
        self.path.unlink(missing_ok=True)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict[str, Any]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump(data, f, indent=2)
