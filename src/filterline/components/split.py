"""
This module provides the `split_lines` component, which turns a stream of
text chunks of arbitrary size into a stream of lines.
"""
from __future__ import annotations

from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, List, Optional

from ..core.stage import Stage, stream_stage

LINE_SEPARATOR = "\n"


class LineSplitter:
    """Incremental line splitter.

    Lines keep their trailing '\\n'. At most one partial line is held between
    calls, so memory is bounded by the longest line, not by the input size.

    Example:
        >>> splitter = LineSplitter()
        >>> splitter.feed("app")
        []
        >>> splitter.feed("le\\nban")
        ['apple\\n']
        >>> splitter.flush()
        'ban'
    """

    def __init__(self):
        self._partial = ""

    @property
    def pending(self) -> str:
        """The buffered text since the last line separator."""
        return self._partial

    def feed(self, chunk: str) -> List[str]:
        """Adds a chunk and returns the lines it completed."""
        if LINE_SEPARATOR not in chunk:
            self._partial += chunk
            return []

        lines = (self._partial + chunk).split(LINE_SEPARATOR)
        self._partial = lines.pop()
        return [line + LINE_SEPARATOR for line in lines]

    def flush(self) -> Optional[str]:
        """Returns the unterminated tail of the input, if any, and resets."""
        tail, self._partial = self._partial, ""
        return tail or None


def iter_lines(chunks: Iterable[str]) -> Iterator[str]:
    """Yields the lines of a chunk stream; the last one may lack a separator."""
    splitter = LineSplitter()
    for chunk in chunks:
        yield from splitter.feed(chunk)
    tail = splitter.flush()
    if tail is not None:
        yield tail


async def aiter_lines(chunks: AsyncIterable[str]) -> AsyncIterator[str]:
    """Async counterpart of `iter_lines`."""
    splitter = LineSplitter()
    async for chunk in chunks:
        for line in splitter.feed(chunk):
            yield line
    tail = splitter.flush()
    if tail is not None:
        yield tail


def split_lines(*, backend: str = "serial", name: str = "split_lines") -> Stage:
    """
    Creates a stream stage that splits incoming text chunks into lines.

    Args:
        backend: 'serial' for synchronous pipelines, 'async' for async ones.
        name: An optional name for the stage.
    """
    if backend == "async":
        @stream_stage(name=name, backend="async")
        async def _split_lines_async(chunks: AsyncIterable[str]) -> AsyncIterator[str]:
            async for line in aiter_lines(chunks):
                yield line

        return _split_lines_async

    @stream_stage(name=name, backend=backend)
    def _split_lines(chunks: Iterable[str]) -> Iterator[str]:
        yield from iter_lines(chunks)

    return _split_lines
