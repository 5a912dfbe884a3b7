from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, AsyncIterable, AsyncIterator, Iterable, Iterator

from ..core.utils import ensure_iterable

if TYPE_CHECKING:
    from ..core.context import Context
    from ..core.stage import Stage


class BaseRunner(ABC):
    """
    Abstract base class for all stage runners.

    A runner is responsible for driving a single Stage: pulling items from
    the upstream iterator, calling the stage function and yielding whatever
    it produces. Runners never buffer more than the item being processed.
    """

    def run(
        self, stage: "Stage", context: "Context", iterable: Iterable[Any]
    ) -> Iterator[Any]:
        """Synchronous entry point; dispatches on the stage type."""
        if stage.stage_type == "source":
            return self._run_source(stage, context)
        if stage.stage_type == "stream":
            return self._run_stream(stage, context, iterable)
        return self._run_itemwise(stage, context, iterable)

    def run_async(
        self, stage: "Stage", context: "Context", iterable: AsyncIterable[Any]
    ) -> AsyncIterator[Any]:
        """Asynchronous entry point; dispatches on the stage type."""
        if stage.stage_type == "source":
            return self._run_source_async(stage, context)
        if stage.stage_type == "stream":
            return self._run_stream_async(stage, context, iterable)
        return self._run_itemwise_async(stage, context, iterable)

    @abstractmethod
    def _run_itemwise(
        self, stage: "Stage", context: "Context", iterable: Iterable[Any]
    ) -> Iterator[Any]:
        """Processes a synchronous iterable item by item."""
        raise NotImplementedError

    @abstractmethod
    def _run_itemwise_async(
        self, stage: "Stage", context: "Context", iterable: AsyncIterable[Any]
    ) -> AsyncIterator[Any]:
        """Processes an async iterable item by item."""
        raise NotImplementedError

    def _run_source(self, stage: "Stage", context: "Context") -> Iterator[Any]:
        with _StreamLog(stage) as log:
            for res in ensure_iterable(stage._invoke(context)):
                log.produced()
                yield res

    async def _run_source_async(
        self, stage: "Stage", context: "Context"
    ) -> AsyncIterator[Any]:
        with _StreamLog(stage, backend="async") as log:
            results = stage._invoke(context)
            if hasattr(results, "__aiter__"):
                async for res in results:
                    log.produced()
                    yield res
            else:
                for res in ensure_iterable(results):
                    log.produced()
                    yield res

    def _run_stream(
        self, stage: "Stage", context: "Context", iterable: Iterable[Any]
    ) -> Iterator[Any]:
        """Hands the whole upstream iterator to the stage function.

        The iterator is wrapped, not materialized: the stage pulls items as
        it needs them.
        """
        with _StreamLog(stage) as log:
            counted = _count_sync(iterable, log)
            for res in ensure_iterable(stage._invoke(context, counted)):
                log.produced()
                yield res

    async def _run_stream_async(
        self, stage: "Stage", context: "Context", iterable: AsyncIterable[Any]
    ) -> AsyncIterator[Any]:
        if not stage.is_async:
            raise TypeError(
                f"Stream stage '{stage.name}' must be an async generator to run asynchronously."
            )
        with _StreamLog(stage, backend="async") as log:
            counted = _count_async(iterable, log)
            async for res in stage._invoke(context, counted):
                log.produced()
                yield res


class _StreamLog:
    """Keeps the per-stage counters and emits the start/finish log lines."""

    def __init__(self, stage: "Stage", backend: str = "serial"):
        self.stage = stage
        self.backend = backend
        self.items_in = 0
        self.items_out = 0

    def __enter__(self) -> "_StreamLog":
        self.stage.logger.info("stream_started", backend=self.backend)
        self._start = time.perf_counter()
        return self

    def consumed(self) -> None:
        self.items_in += 1
        self.stage.metrics["items_in"] += 1

    def produced(self) -> None:
        self.items_out += 1
        self.stage.metrics["items_out"] += 1

    def __exit__(self, exc_type, exc, tb) -> None:
        duration = time.perf_counter() - self._start
        self.stage.metrics["time_total"] += duration
        if exc is not None and not isinstance(exc, GeneratorExit):
            self.stage.metrics["errors"] += 1
            self.stage.logger.warning(
                "stream_error", error=str(exc), items_in=self.items_in
            )
        self.stage.logger.info(
            "stream_finished",
            items_in=self.items_in,
            items_out=self.items_out,
            errors=self.stage.metrics["errors"],
            duration=round(duration, 4),
        )


def _count_sync(iterable: Iterable[Any], log: _StreamLog) -> Iterator[Any]:
    for item in iterable:
        log.consumed()
        yield item


async def _count_async(iterable: AsyncIterable[Any], log: _StreamLog) -> AsyncIterator[Any]:
    async for item in iterable:
        log.consumed()
        yield item
