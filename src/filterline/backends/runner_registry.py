from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Dict, Type

if TYPE_CHECKING:
    from .base import BaseRunner

# Backend names map to fully qualified class paths; classes are imported lazily.
_runner_registry: Dict[str, str] = {
    "serial": "filterline.backends.serial.SerialRunner",
    "async": "filterline.backends.asyncio.AsyncioRunner",
}

_runner_class_cache: Dict[str, Type["BaseRunner"]] = {}


class MissingBackendError(Exception):
    """Raised when a requested backend is not registered."""

    pass


def get_runner(name: str) -> "BaseRunner":
    """
    Returns a new runner instance for the backend `name`.

    Raises:
        MissingBackendError: If the requested name is not in the registry.
        ImportError: If the runner class cannot be imported.
    """
    if name in _runner_class_cache:
        return _runner_class_cache[name]()

    class_path = _runner_registry.get(name)
    if class_path is None:
        raise MissingBackendError(f"No backend registered with the name: '{name}'")

    try:
        module_path, class_name = class_path.rsplit(".", 1)
        module = importlib.import_module(module_path)
        runner_class = getattr(module, class_name)
    except (ImportError, AttributeError) as e:
        raise ImportError(f"Could not import runner for backend '{name}': {e}") from e

    _runner_class_cache[name] = runner_class
    return runner_class()
