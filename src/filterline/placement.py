"""
Decides where a filtered result ends up once the temp file is complete.

Placement never loses data: every failure here degrades to keeping the temp
file and reporting a warning.
"""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

import aiofiles
import aiofiles.os

from .config import Settings
from .core.errors import (
    BufferDisposed,
    FilterLineError,
    HostTeardownDuringPlacement,
    PlacementMoveFailure,
)
from .core.log import get_logger
from .filtering import FilterRun
from .host import EditorBuffer, EditorHost

NO_DESTINATION_WARNING = "Don't know where to save file. Saved into temporary folder"
MOVE_FAILED_WARNING = "Error occurred on save file to origin folder. Saved into temporary folder"
TOO_LARGE_WARNING = "Filtered content is larger than the editor can open. Saved into temporary folder"
STREAM_FAILED_WARNING = "Error occurred on opening the filtered content. Saved into temporary folder"


class PlacementDecision(Enum):
    MOVE_ADJACENT_TO_SOURCE = "move"
    KEEP_TEMP = "keep"
    STREAM_INTO_EDITOR = "stream"


def decide_placement(
    save_flag: bool,
    source_has_path: bool,
    output_byte_count: int,
    size_threshold: int,
) -> PlacementDecision:
    """Picks the destination of a filtered result; first matching rule wins."""
    if save_flag:
        if source_has_path:
            return PlacementDecision.MOVE_ADJACENT_TO_SOURCE
        return PlacementDecision.KEEP_TEMP
    if output_byte_count > size_threshold:
        return PlacementDecision.KEEP_TEMP
    return PlacementDecision.STREAM_INTO_EDITOR


@dataclass
class Placement:
    """Where the result of a run ended up.

    `location` is the file holding the result, or None once the result has
    been streamed into a buffer and the temp file deleted.
    """

    decision: PlacementDecision
    location: Optional[Path]
    warnings: List[str] = field(default_factory=list)
    buffer: Optional[EditorBuffer] = None
    move_failure: Optional[PlacementMoveFailure] = None
    teardown: Optional[HostTeardownDuringPlacement] = None

    @property
    def state(self) -> str:
        return "DoneWithWarning" if self.warnings else "Done"


class ResultPlacer:
    """Moves, keeps or streams the temp output of a `FilterRun`."""

    def __init__(self, host: EditorHost, settings: Optional[Settings] = None):
        self.host = host
        self.settings = settings or Settings()
        self.logger = get_logger("filterline.placement")

    async def place(self, run: FilterRun) -> Placement:
        temp_path = run.temp_output_path
        size = (await aiofiles.os.stat(temp_path)).st_size
        source_dir = run.source.disk_path.parent if run.source.disk_path else None

        decision = decide_placement(
            self.settings.save_after_filtering,
            source_dir is not None,
            size,
            self.settings.large_file_threshold,
        )
        self.logger.info("placement_decided", decision=decision.value, size=size, output=str(temp_path))

        if decision is PlacementDecision.MOVE_ADJACENT_TO_SOURCE:
            placement = await self._move(temp_path, source_dir / temp_path.name)
        elif decision is PlacementDecision.KEEP_TEMP:
            warning = NO_DESTINATION_WARNING if self.settings.save_after_filtering else TOO_LARGE_WARNING
            placement = Placement(decision, temp_path, [warning])
        else:
            placement = await self._stream(temp_path)

        if placement.buffer is None:
            try:
                await self.host.open_for_viewing(placement.location)
            except OSError as e:
                self.logger.warning("open_for_viewing_failed", output=str(placement.location), error=str(e))
        return placement

    async def _move(self, temp_path: Path, destination: Path) -> Placement:
        decision = PlacementDecision.MOVE_ADJACENT_TO_SOURCE
        try:
            await asyncio.to_thread(shutil.move, str(temp_path), str(destination))
        except OSError as e:
            failure = PlacementMoveFailure(temp_path, destination, e.strerror or str(e))
            self.logger.warning("move_failed", error=str(failure))
            return Placement(decision, temp_path, [MOVE_FAILED_WARNING], move_failure=failure)

        self.logger.info("moved", destination=str(destination))
        return Placement(decision, destination)

    async def _stream(self, temp_path: Path) -> Placement:
        """Appends the temp file to a new buffer, one bounded chunk at a time.

        If the buffer goes away midway the remaining chunks are dropped and
        the temp file is left on disk. Any other failure keeps the temp file
        too, and reports it with a warning.
        """
        decision = PlacementDecision.STREAM_INTO_EDITOR
        buffer: Optional[EditorBuffer] = None
        chunks_written = 0

        try:
            buffer = await self.host.create_buffer()
            async with aiofiles.open(temp_path, "r", encoding="utf-8", newline="") as f:
                while True:
                    chunk = await f.read(self.settings.editor_chunk_size)
                    if not chunk:
                        break
                    if not buffer.is_live:
                        raise BufferDisposed("buffer closed before insert")
                    await buffer.insert(chunk)
                    chunks_written += 1
        except BufferDisposed:
            teardown = HostTeardownDuringPlacement(temp_path, chunks_written)
            self.logger.info("buffer_disposed", chunks_written=chunks_written, output=str(temp_path))
            return Placement(decision, temp_path, buffer=buffer, teardown=teardown)
        except (OSError, FilterLineError) as e:
            self.logger.warning(
                "stream_failed", error=str(e), chunks_written=chunks_written, output=str(temp_path)
            )
            return Placement(decision, temp_path, [STREAM_FAILED_WARNING])

        try:
            await aiofiles.os.remove(temp_path)
        except OSError as e:
            self.logger.warning("temp_not_removed", output=str(temp_path), error=str(e))
        self.logger.info("streamed_into_buffer", chunks=chunks_written)
        return Placement(decision, None, buffer=buffer)
