"""
The filter command: resolve a pattern, run the pipeline, place the result.

Errors that end a run (missing source, unreadable file, invalid regex, I/O
failure mid-stream) become an error notification and a failed
`CommandResult`; they are never raised to the caller.
"""

from __future__ import annotations

import asyncio
import re
import tempfile
from dataclasses import dataclass
from typing import Optional, Union

from .components.source import Source, source_for_document
from .config import Settings
from .core.errors import FilterLineError
from .core.log import get_logger
from .filtering import FilterPipeline, FilterRun
from .history import PatternHistory
from .host import EditorHost
from .notify import Notifier
from .patterns import Polarity, resolve_predicate
from .placement import Placement, ResultPlacer

NO_SOURCE_ERROR = (
    "No file selected or file is too large. "
    "For large files, pass the file path explicitly."
)
COMPLETED_INFO = "Filtering completed :)"


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    run: Optional[FilterRun] = None
    placement: Optional[Placement] = None
    error: Optional[BaseException] = None


class FilterCommand:
    """One filter command, e.g. "filter lines not containing a string".

    Args:
        polarity: Which kind of pattern and whether matches are kept or dropped.
        settings: Read-only settings (save flag, thresholds, chunk sizes).
        history: The pattern history, updated with every accepted pattern.
        host: The editor host that results are delivered to.
        notifier: Sink for user-facing messages.
    """

    def __init__(
        self,
        polarity: Polarity,
        *,
        settings: Settings,
        history: PatternHistory,
        host: EditorHost,
        notifier: Optional[Notifier] = None,
        pipeline: Optional[FilterPipeline] = None,
    ):
        self.polarity = polarity
        self.settings = settings
        self.history = history
        self.host = host
        self.notifier = notifier or Notifier()
        self.pipeline = pipeline or FilterPipeline(host.workspace, settings=settings)
        self.placer = ResultPlacer(host, settings)
        self.logger = get_logger(f"filterline.command.{polarity.value}")

        self.history.ensure_key(polarity.history_key)
        self.logger.info("temp_path", path=tempfile.gettempdir())

    def _source(self, source: Optional[Source]) -> Optional[Source]:
        if source is not None:
            return source
        document = self.host.active_document
        if document is None:
            return None
        return source_for_document(document)

    async def filter(
        self,
        pattern: Union[str, "re.Pattern[str]", None],
        source: Optional[Source] = None,
    ) -> CommandResult:
        """Filters `source` (default: the active document) with `pattern`."""
        src = self._source(source)
        if src is None:
            self.notifier.error(NO_SOURCE_ERROR)
            return CommandResult(ok=False)
        self.logger.info("will_filter", source=src.display_name)

        resolution = resolve_predicate(self.polarity, pattern)
        self.logger.info("pattern_resolved", ok=resolution.ok)
        if not resolution.ok:
            if resolution.error is not None:
                self.notifier.error(str(resolution.error))
            else:
                self.logger.info("empty_pattern")
            return CommandResult(ok=False, error=resolution.error)

        if isinstance(pattern, str):
            await asyncio.to_thread(self.history.add, self.polarity.history_key, pattern)

        try:
            run = await self.pipeline.execute(src, resolution.predicate)
        except FilterLineError as e:
            self.notifier.error(str(e))
            return CommandResult(ok=False, error=e)

        placement = await self.placer.place(run)
        for warning in placement.warnings:
            self.notifier.warning(warning)
        if placement.teardown is not None:
            self.logger.info("placement_interrupted", detail=str(placement.teardown))

        self.notifier.info(COMPLETED_INFO)
        return CommandResult(ok=True, run=run, placement=placement)
