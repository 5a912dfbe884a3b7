from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Dict, Optional

from .log import get_logger

if TYPE_CHECKING:
    from ..config import Settings


class Context:
    """
    A dict-like context for sharing counters between the stages of one run.

    Each pipeline run builds its own Context, so nothing leaks between
    concurrent runs.
    """

    def __init__(
        self,
        initial_data: Optional[Dict[str, Any]] = None,
        settings: Optional["Settings"] = None,
        *,
        pipeline_name: Optional[str] = None,
    ):
        self.logger = get_logger("filterline.context")
        self.settings = settings
        self.pipeline_name = pipeline_name
        self._data: Dict[str, Any] = {}
        self._lock = threading.Lock()

        if initial_data:
            self.update(initial_data)

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value

    def update(self, other: Dict[str, Any]) -> None:
        with self._lock:
            for k, v in other.items():
                self._data[k] = v

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return dict(self._data)

    def inc(self, key: str, amount: int = 1) -> int:
        with self._lock:
            new_value = int(self._data.get(key, 0)) + amount
            self._data[key] = new_value
            return new_value

    def __repr__(self) -> str:
        return f"Context(pipeline={self.pipeline_name!r}, data={self.to_dict()})"
