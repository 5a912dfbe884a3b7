"""Most-recent-first history of the patterns a user has filtered with."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from .config import HISTORY_SIZE_MAX, HISTORY_SIZE_MIN
from .core.errors import ConfigError
from .core.log import get_logger


class PatternHistory:
    """
    Pattern lists keyed by kind ('inputStr', 'inputRegex').

    The history is loaded once, passed explicitly to whoever needs it, and
    written back to its YAML file every time a list changes.
    """

    def __init__(
        self,
        entries: Optional[Dict[str, List[str]]] = None,
        *,
        max_size: int = 10,
        path: Optional[Path] = None,
    ):
        if not HISTORY_SIZE_MIN <= max_size <= HISTORY_SIZE_MAX:
            raise ConfigError(f"history size out of range: {max_size}")
        self._entries: Dict[str, List[str]] = {k: list(v) for k, v in (entries or {}).items()}
        self.max_size = max_size
        self.path = Path(path) if path else None
        self.logger = get_logger("filterline.history")

    @classmethod
    def load(cls, path: Optional[Path], *, max_size: int = 10) -> "PatternHistory":
        """Loads a history file; a missing file yields an empty history."""
        if not path or not os.path.exists(path):
            return cls(max_size=max_size, path=path)

        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigError(f"History file '{path}' must contain a mapping")
        entries = {str(k): [str(p) for p in (v or [])] for k, v in data.items()}
        return cls(entries, max_size=max_size, path=path)

    def keys(self) -> List[str]:
        return list(self._entries)

    def get(self, key: str) -> List[str]:
        return list(self._entries.get(key, []))

    def ensure_key(self, key: str) -> None:
        if key not in self._entries:
            self._entries[key] = []
            self.save()

    def add(self, key: str, pattern: str) -> None:
        """Puts `pattern` at the front of `key`'s list, trimming to `max_size`."""
        if key not in self._entries:
            self.logger.warning("history_key_missing", key=key)
            return

        patterns = self._entries[key]
        if pattern in patterns:
            patterns.remove(pattern)
        patterns.insert(0, pattern)
        del patterns[self.max_size:]
        self.save()

    def save(self) -> bool:
        """Writes the history file. A failed write is logged, not raised."""
        if self.path is None:
            return False
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump(self._entries, f, default_flow_style=False, allow_unicode=True)
        except OSError as e:
            self.logger.warning("history_not_saved", path=str(self.path), error=str(e))
            return False
        return True

    def __repr__(self) -> str:
        return f"PatternHistory(max_size={self.max_size}, entries={self._entries})"
