"""
This module provides the terminal component that writes a line stream to a
file.
"""
from __future__ import annotations

from pathlib import Path
from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, List

import aiofiles

from ..core.stage import Stage, stream_stage

WRITE_BATCH_SIZE = 64 * 1024


class _WriteBatch:
    """Groups small lines into one write call of about `limit` characters."""

    def __init__(self, limit: int):
        self.limit = limit
        self.lines: List[str] = []
        self.size = 0
        self.bytes_written = 0

    def add(self, line: str) -> bool:
        """Adds a line; returns True once the batch should be written."""
        self.lines.append(line)
        self.size += len(line)
        return self.size >= self.limit

    def take(self) -> str:
        data = "".join(self.lines)
        self.lines = []
        self.size = 0
        self.bytes_written += len(data.encode("utf-8"))
        return data


def write_to_file(
    filepath: Path,
    *,
    name: str = "write_to_file",
    backend: str = "serial",
    batch_size: int = WRITE_BATCH_SIZE,
) -> Stage:
    """Creates a terminal stage that writes every incoming line to `filepath`.

    The file is created exclusively (an existing file is an error) and lines
    are written verbatim, with no separator added and no newline
    translation. Lines are grouped into writes of about `batch_size`
    characters. Once the input is exhausted the stage yields a single item:
    the number of bytes written.

    Args:
        filepath: The path of the file to create.
        name: An optional name for the stage.
        backend: 'serial' for synchronous pipelines, 'async' for async ones.
        batch_size: Approximate number of characters per write call.
    """
    if backend == "async":
        @stream_stage(name=name, backend="async")
        async def _write_to_file_async(lines: AsyncIterable[str]) -> AsyncIterator[int]:
            batch = _WriteBatch(batch_size)
            async with aiofiles.open(filepath, "x", encoding="utf-8", newline="") as f:
                async for line in lines:
                    if batch.add(line):
                        await f.write(batch.take())
                if batch.lines:
                    await f.write(batch.take())
            yield batch.bytes_written

        return _write_to_file_async

    @stream_stage(name=name, backend=backend)
    def _write_to_file(lines: Iterable[str]) -> Iterator[int]:
        batch = _WriteBatch(batch_size)
        with open(filepath, "x", encoding="utf-8", newline="") as f:
            for line in lines:
                if batch.add(line):
                    f.write(batch.take())
            if batch.lines:
                f.write(batch.take())
        yield batch.bytes_written

    return _write_to_file
