from __future__ import annotations

from typing import TYPE_CHECKING, Any, AsyncIterable, AsyncIterator, Iterable, Iterator

from ..core.utils import ensure_iterable
from .base import BaseRunner, _StreamLog

if TYPE_CHECKING:
    from ..core.context import Context
    from ..core.stage import Stage


class SerialRunner(BaseRunner):
    """
    A runner that calls a synchronous stage function inline, one item at a time.

    Inside an async pipeline the function is still called inline, between
    two awaits of the upstream iterator. Line predicates are far too cheap
    to be worth a thread hop per line.
    """

    def _run_itemwise(
        self, stage: "Stage", context: "Context", iterable: Iterable[Any]
    ) -> Iterator[Any]:
        with _StreamLog(stage) as log:
            for item in iterable:
                log.consumed()
                for res in ensure_iterable(stage._invoke(context, item)):
                    log.produced()
                    yield res

    async def _run_itemwise_async(
        self, stage: "Stage", context: "Context", iterable: AsyncIterable[Any]
    ) -> AsyncIterator[Any]:
        if stage.is_async:
            raise TypeError(
                f"Stage '{stage.name}' is async but declares the serial backend."
            )
        with _StreamLog(stage, backend="async") as log:
            async for item in iterable:
                log.consumed()
                for res in ensure_iterable(stage._invoke(context, item)):
                    log.produced()
                    yield res
