"""
This module defines the Pipeline class, which chains Stages together.

Data flows through the pipeline one item at a time. Every stage pulls from
the stage before it, so a slow sink naturally slows down the source: nothing
is read ahead of what the last stage has consumed.
"""

from __future__ import annotations

import time
from typing import (
    TYPE_CHECKING,
    Any,
    AsyncIterable,
    AsyncIterator,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
    Union,
)

from ..backends.runner_registry import get_runner
from .context import Context
from .log import get_logger
from .stage import Stage
from .utils import to_async

if TYPE_CHECKING:
    from ..config import Settings


class Pipeline:
    """A sequence of stages that process data.

    Attributes:
        stages: A list of Stage objects that make up the pipeline.
        name: The name of the pipeline, used for logging.
        logger: A logger instance for the pipeline.
    """

    def __init__(
        self, stages: Optional[List[Stage]] = None, *, name: Optional[str] = None
    ):
        self.stages: List[Stage] = stages or []
        self.name = name or "Pipeline"
        self.logger = get_logger(f"filterline.pipeline.{self.name}")

    def __or__(self, other: Union[Stage, "Pipeline"]) -> "Pipeline":
        """Composes this pipeline with a Stage or another Pipeline using `|`.

        Raises:
            TypeError: If `other` is not a Stage or Pipeline, or if a source
                stage would receive input from another stage.
        """
        if isinstance(other, Stage):
            new_stages = [other]
        elif isinstance(other, Pipeline):
            new_stages = list(other.stages)
        else:
            raise TypeError(f"Unsupported type for pipeline composition: {type(other)}")

        if self.stages and new_stages and new_stages[0].stage_type == "source":
            raise TypeError(
                f"Cannot pipe into source stage '{new_stages[0].name}'."
            )

        return Pipeline(self.stages + new_stages, name=self.name)

    def __rshift__(self, other: Union[Stage, "Pipeline"]) -> "Pipeline":
        """Provides an alternative `>>` operator for pipeline composition."""
        return self.__or__(other)

    def _build_context(self, settings: Optional["Settings"] = None) -> Context:
        return Context(settings=settings, pipeline_name=self.name)

    def _check_input(self, data: Any, method: str) -> Any:
        if data is None:
            if not self.stages or self.stages[0].stage_type != "source":
                raise TypeError(
                    f"Pipeline.{method}() requires a data argument unless the first stage is a source stage."
                )
            return []
        return data

    def run(
        self,
        data: Optional[Iterable[Any]] = None,
        *,
        settings: Optional["Settings"] = None,
    ) -> Tuple[Iterator[Any], Context]:
        """Runs the pipeline synchronously and lazily.

        Only stages on synchronous backends can take part; use `run_async`
        for pipelines that contain async stages.

        Returns:
            A tuple of the output iterator and the run's Context.
        """
        data = self._check_input(data, "run")
        for stage_obj in self.stages:
            if stage_obj.is_async:
                raise TypeError(
                    f"Stage '{stage_obj.name}' is async; use Pipeline.run_async() instead."
                )

        context = self._build_context(settings)
        stream: Iterable[Any] = data
        for stage_obj in self.stages:
            stage_obj.reset_metrics()
            stream = get_runner(stage_obj.backend).run(stage_obj, context, stream)
        return self._timed(stream), context

    def collect(
        self,
        data: Optional[Iterable[Any]] = None,
        *,
        settings: Optional["Settings"] = None,
    ) -> Tuple[List[Any], Context]:
        """Runs the pipeline and collects all results into a list."""
        stream, context = self.run(data, settings=settings)
        return list(stream), context

    async def run_async(
        self,
        data: Optional[Union[Iterable[Any], AsyncIterable[Any]]] = None,
        *,
        settings: Optional["Settings"] = None,
    ) -> Tuple[AsyncIterator[Any], Context]:
        """Builds the asynchronous form of the pipeline.

        Nothing runs until the returned iterator is consumed; each item that
        the consumer pulls is pulled through every stage in turn.

        Returns:
            A tuple of the output async iterator and the run's Context.
        """
        data = self._check_input(data, "run_async")
        context = self._build_context(settings)

        stream: AsyncIterable[Any]
        if hasattr(data, "__aiter__"):
            stream = data  # type: ignore[assignment]
        else:
            stream = to_async(data)

        for stage_obj in self.stages:
            stage_obj.reset_metrics()
            stream = get_runner(stage_obj.backend).run_async(stage_obj, context, stream)
        return self._timed_async(stream), context

    async def collect_async(
        self,
        data: Optional[Union[Iterable[Any], AsyncIterable[Any]]] = None,
        *,
        settings: Optional["Settings"] = None,
    ) -> Tuple[List[Any], Context]:
        """Runs the pipeline asynchronously and collects all results into a list."""
        stream, context = await self.run_async(data, settings=settings)
        return [item async for item in stream], context

    def _timed(self, stream: Iterable[Any]) -> Iterator[Any]:
        self.logger.info("pipeline_started", stages=len(self.stages))
        start_time = time.perf_counter()
        try:
            yield from stream
        finally:
            self.logger.info(
                "pipeline_finished",
                duration=round(time.perf_counter() - start_time, 4),
            )

    async def _timed_async(self, stream: AsyncIterable[Any]) -> AsyncIterator[Any]:
        self.logger.info("pipeline_started", stages=len(self.stages), backend="async")
        start_time = time.perf_counter()
        try:
            async for item in stream:
                yield item
        finally:
            self.logger.info(
                "pipeline_finished",
                duration=round(time.perf_counter() - start_time, 4),
            )

    @property
    def metrics(self) -> dict[str, Any]:
        """A dictionary containing metrics for each stage in the pipeline.

        Counters cover the most recent run only.
        """
        return {"stages": {s.name: s.metrics for s in self.stages}}

    def __repr__(self) -> str:
        stage_names = " | ".join(s.name for s in self.stages)
        return f"Pipeline(name='{self.name}', stages=[{stage_names}])"
