from .runner_registry import MissingBackendError, get_runner

__all__ = ["get_runner", "MissingBackendError"]
