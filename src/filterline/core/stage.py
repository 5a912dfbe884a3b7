"""
This module defines the `Stage` class and the `@stage` decorators.

A `Stage` is the building block of a `Pipeline`. It wraps a Python function
and records how that function should be driven by a runner: once per item
(`itemwise`), once over the whole input stream (`stream`), or with no input
at all (`source`).
"""
from __future__ import annotations

import inspect
from typing import Any, Callable, Optional, Union

from typeguard import typechecked

from .context import Context
from .log import get_logger

STAGE_TYPES = ("itemwise", "stream", "source")


def _count_inputs(func: Callable[..., Any]) -> int:
    """Counts the positional parameters of `func`, ignoring `context`."""
    try:
        sig = inspect.signature(func)
    except (ValueError, TypeError):
        return 1
    return sum(
        1
        for name, param in sig.parameters.items()
        if name != "context"
        and param.kind in (param.POSITIONAL_ONLY, param.POSITIONAL_OR_KEYWORD)
    )


class Stage:
    """A single, executable step in a pipeline.

    Attributes:
        func: The callable object that this stage executes.
        name: The name of the stage, used for logging and metrics.
        stage_type: 'itemwise', 'stream' or 'source'.
        backend: The name of the runner that drives this stage.
        is_async: True if the wrapped function is a coroutine or async generator.
        metrics: Per-stage counters updated by the runners.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        *,
        name: Optional[str] = None,
        stage_type: str = "itemwise",
        backend: str = "serial",
    ):
        if stage_type not in STAGE_TYPES:
            raise ValueError(f"stage_type must be one of {STAGE_TYPES}")

        self.func = func
        self.name = name or getattr(func, "__name__", "Stage")
        self.logger = get_logger(f"filterline.stage.{self.name}")
        self.stage_type = stage_type
        self.backend = backend
        self.is_async = inspect.iscoroutinefunction(func) or inspect.isasyncgenfunction(func)
        self._inject_context = "context" in inspect.signature(func).parameters

        if _count_inputs(func) == 0:
            self.stage_type = "source"

        self.reset_metrics()

    def reset_metrics(self) -> None:
        """Zeroes the counters; pipelines call this when a run starts."""
        self.metrics: dict[str, Any] = {
            "items_in": 0, "items_out": 0, "errors": 0, "time_total": 0.0,
        }

    def __repr__(self) -> str:
        return f"Stage(name='{self.name}', type='{self.stage_type}', backend='{self.backend}')"

    def __or__(self, other: Union["Stage", "Pipeline"]) -> "Pipeline":
        """Composes this stage with another using the `|` operator."""
        from .pipeline import Pipeline
        return Pipeline([self]) | other

    def _invoke(self, context: Context, *args: Any) -> Any:
        """Invokes the wrapped function, injecting context if required."""
        if self._inject_context:
            return self.func(context, *args)
        return self.func(*args)


def stage(
    _func: Optional[Callable[..., Any]] = None,
    *,
    name: Optional[str] = None,
    stage_type: str = "itemwise",
    backend: str = "serial",
) -> Union[Stage, Callable[[Callable[..., Any]], Stage]]:
    """A decorator to create a pipeline Stage from a function.

    It can be used with or without arguments:

    Example:
        .. code-block:: python

            @stage
            def upper(line: str) -> str:
                return line.upper()

            @stage(backend="async")
            async def slow_upper(line: str) -> str:
                await asyncio.sleep(0)
                return line.upper()

    The wrapped function is instrumented with `typeguard`, so a stage that
    yields a value of the wrong type fails loudly instead of corrupting the
    output.
    """
    def wrapper(func: Callable[..., Any]) -> Stage:
        return Stage(
            typechecked(func),
            name=name,
            stage_type=stage_type,
            backend=backend,
        )

    if _func is not None:
        return wrapper(_func)
    return wrapper


def stream_stage(
    _func: Optional[Callable[..., Any]] = None,
    *,
    name: Optional[str] = None,
    backend: str = "serial",
) -> Union[Stage, Callable[[Callable[..., Any]], Stage]]:
    """A decorator to create a stage that receives the whole input stream.

    The function gets the upstream iterator (an async iterator on the async
    backend) and is expected to consume it lazily, so memory stays bounded.
    """
    return stage(_func, name=name, stage_type="stream", backend=backend)
