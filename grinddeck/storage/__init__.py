"""
Storage - The engine's persistence collaborators.

- Key-value store: high score and last difficulty
- Match history: one summary per completed game

Both have an in-memory form (default) and a JSON file form.
"""

from .kv_store import (
    KeyValueStore,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    HIGH_SCORE_KEY,
    DIFFICULTY_KEY,
)
from .history import MatchHistory, MAX_HISTORY_ENTRIES

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "HIGH_SCORE_KEY",
    "DIFFICULTY_KEY",
    "MatchHistory",
    "MAX_HISTORY_ENTRIES",
]
