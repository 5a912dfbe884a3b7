from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, AsyncIterable, AsyncIterator, Iterable, Iterator

from ..core.utils import ensure_iterable
from .base import BaseRunner, _StreamLog

if TYPE_CHECKING:
    from ..core.context import Context
    from ..core.stage import Stage


class AsyncioRunner(BaseRunner):
    """
    A runner for stages whose functions are coroutines or async generators.

    Each item is awaited before the next one is pulled from upstream, which
    is what gives the pipeline its back-pressure.
    """

    def run(self, stage: "Stage", context: "Context", iterable: Iterable[Any]) -> Iterator[Any]:
        raise TypeError(
            f"Stage '{stage.name}' uses the async backend; use Pipeline.run_async() instead."
        )

    def _run_itemwise(
        self, stage: "Stage", context: "Context", iterable: Iterable[Any]
    ) -> Iterator[Any]:
        return self.run(stage, context, iterable)

    async def _run_itemwise_async(
        self, stage: "Stage", context: "Context", iterable: AsyncIterable[Any]
    ) -> AsyncIterator[Any]:
        with _StreamLog(stage, backend="async") as log:
            async for item in iterable:
                log.consumed()
                result_obj = stage._invoke(context, item)
                if inspect.isasyncgen(result_obj):
                    async for res in result_obj:
                        log.produced()
                        yield res
                    continue
                if inspect.isawaitable(result_obj):
                    result_obj = await result_obj
                for res in ensure_iterable(result_obj):
                    log.produced()
                    yield res
