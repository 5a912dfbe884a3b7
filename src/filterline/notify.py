from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

from .core.log import get_logger

Display = Callable[[str, str], None]


@dataclass(frozen=True)
class Message:
    level: str
    text: str


class Notifier:
    """
    User-facing notifications.

    Every message is logged first, then handed to `display` (the host's
    info/warning/error popup, or stderr for the CLI). Messages are also
    kept in `messages`.
    """

    def __init__(self, display: Optional[Display] = None):
        self.logger = get_logger("filterline.notify")
        self._display = display
        self.messages: List[Message] = []

    def _emit(self, level: str, text: str) -> None:
        self.messages.append(Message(level, text))
        if self._display is not None:
            self._display(level, text)

    def info(self, text: str) -> None:
        self.logger.info(text)
        self._emit("info", text)

    def warning(self, text: str) -> None:
        self.logger.warning(text)
        self._emit("warning", text)

    def error(self, text: str) -> None:
        self.logger.error(text)
        self._emit("error", text)

    def of_level(self, level: str) -> List[str]:
        return [m.text for m in self.messages if m.level == level]
