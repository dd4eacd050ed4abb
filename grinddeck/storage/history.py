"""
Match History - Append-only log of completed games.

- Newest game first
- Capped at MAX_HISTORY_ENTRIES (oldest dropped)
- Optional JSON file backing, rewritten on every append
"""

from __future__ import annotations
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..engine_core.state import SessionSummary

logger = logging.getLogger(__name__)

MAX_HISTORY_ENTRIES = 100


class MatchHistory:
    """
    Stores one SessionSummary per completed game.

    Usage:
        history = MatchHistory()                      # in memory
        history = MatchHistory("~/.grinddeck/history.json")
        history.add(summary)
        history.recent(10)
    """

    def __init__(self, path: str | Path | None = None, max_entries: int = MAX_HISTORY_ENTRIES):
        self.path = Path(path).expanduser() if path is not None else None
        self.max_entries = max_entries
        self._entries: list[SessionSummary] = self._load()

    def add(self, summary: SessionSummary):
        """Prepend a summary. Ids already present are ignored."""
        if any(e.session_id == summary.session_id for e in self._entries):
            logger.debug("Session %s already in history", summary.session_id)
            return
        self._entries.insert(0, summary)
        del self._entries[self.max_entries:]
        self._save()

    def get(self, session_id: str) -> SessionSummary | None:
        for entry in self._entries:
            if entry.session_id == session_id:
                return entry
        return None

    def recent(self, count: int | None = None) -> list[SessionSummary]:
        """Newest first. All entries when count is None."""
        if count is None:
            return list(self._entries)
        return self._entries[:max(0, count)]

    def total_games(self) -> int:
        return len(self._entries)

    def total_time_played(self) -> int:
        return sum(e.time_played for e in self._entries)

    def highest_score(self) -> float:
        return max((e.score for e in self._entries), default=0)

    def clear(self):
        self._entries = []
        self._save()

    def __len__(self) -> int:
        return len(self._entries)

    def _load(self) -> list[SessionSummary]:
        from ..engine_core.state import SessionSummary

        if self.path is None or not self.path.exists():
            return []
        try:
            with open(self.path) as f:
                raw = json.load(f)
            entries = [SessionSummary.from_dict(item) for item in raw]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable history file %s: %s", self.path, e)
            return []
        return entries[:self.max_entries]

    def _save(self):
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            json.dump([e.to_dict() for e in self._entries], f, indent=2)
