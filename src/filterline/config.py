"""
Configuration loading and management.

Settings live in a YAML file under a `filter_line` section:

.. code-block:: yaml

    filter_line:
      save_after_filtering: false
      history_size: 10
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from .core.errors import ConfigError

LARGE_FILE_THRESHOLD = 30 * 1024 * 1024
EDITOR_CHUNK_SIZE = 100 * 1024
READ_CHUNK_SIZE = 64 * 1024

HISTORY_SIZE_MIN = 1
HISTORY_SIZE_MAX = 50


class Config:
    """
    A wrapper around a dictionary for managing configuration.

    It provides a `get` method that allows accessing nested values using
    dot-notation (e.g., 'filter_line.history_size').
    """

    def __init__(self, config_data: Optional[Dict[str, Any]]):
        self._config = config_data or {}

    def get(self, key: str, default: Any = None) -> Any:
        """
        Access a config value using dot notation.

        Example:
            >>> config = Config({'a': {'b': 1}})
            >>> config.get('a.b')
            1
            >>> config.get('a.c', 'default_value')
            'default_value'
        """
        value = self._config
        for k in key.split("."):
            if not isinstance(value, dict) or k not in value:
                return default
            value = value[k]
        return value

    def __repr__(self) -> str:
        return f"Config(config_data={self._config})"


def load_config(path: Optional[str]) -> Config:
    """
    Loads a YAML configuration file from the given path.

    If the path is None or does not exist, it returns an empty Config object.
    """
    if not path or not os.path.exists(path):
        return Config({})

    with open(path, "r", encoding="utf-8") as f:
        config_data = yaml.safe_load(f)

    return Config(config_data)


@dataclass(frozen=True)
class Settings:
    """Read-only settings consumed by the filter command and the result placer."""

    save_after_filtering: bool = False
    history_size: int = 10
    large_file_threshold: int = LARGE_FILE_THRESHOLD
    editor_chunk_size: int = EDITOR_CHUNK_SIZE
    read_chunk_size: int = READ_CHUNK_SIZE

    def __post_init__(self):
        if not HISTORY_SIZE_MIN <= self.history_size <= HISTORY_SIZE_MAX:
            raise ConfigError(
                f"history_size must be between {HISTORY_SIZE_MIN} and "
                f"{HISTORY_SIZE_MAX}, got {self.history_size}"
            )
        if self.editor_chunk_size <= 0 or self.read_chunk_size <= 0:
            raise ConfigError("chunk sizes must be positive")

    @classmethod
    def from_config(cls, config: Config) -> "Settings":
        try:
            return cls(
                save_after_filtering=bool(config.get("filter_line.save_after_filtering", False)),
                history_size=int(config.get("filter_line.history_size", 10)),
            )
        except ConfigError:
            raise
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid filter_line settings: {e}") from e


def load_settings(path: Optional[str]) -> Settings:
    """Loads `Settings` from a YAML file; defaults apply when it is missing."""
    return Settings.from_config(load_config(path))
