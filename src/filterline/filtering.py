"""
The filter pipeline: source → lines → kept lines → temp file.

Each call to `FilterPipeline.execute` builds a fresh stage pipeline and a
fresh `FilterRun`; nothing is shared between runs except the temp directory,
where every run writes to its own uniquely named file.
"""

from __future__ import annotations

import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Callable, Optional

from .components.filter import Predicate, filter_lines
from .components.io import write_to_file
from .components.source import Source, open_source, read_source, source_name_parts
from .components.split import split_lines
from .config import Settings
from .core.errors import PipelineIOFailure
from .core.log import get_logger
from .core.pipeline import Pipeline
from .host import Workspace

TAIL = "filterline"


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def temp_output_path(
    source: Source,
    *,
    millis: Optional[int] = None,
    temp_dir: Optional[Path] = None,
) -> Path:
    """Returns `<temp dir>/<base>.filterline-<epoch millis><ext>` for `source`.

    Files moved next to their source keep this exact name.
    """
    base, ext = source_name_parts(source)
    if millis is None:
        millis = _epoch_millis()
    directory = Path(temp_dir) if temp_dir else Path(tempfile.gettempdir())
    return directory / f"{base}.{TAIL}-{millis}{ext}"


@dataclass(frozen=True)
class FilterRun:
    """One completed filter pass, handed from the pipeline to the placer."""

    source: Source
    predicate: Predicate
    temp_output_path: Path
    byte_count: int


class FilterPipeline:
    """Filters a source into a new temp file.

    Attributes:
        workspace: The open documents, used to resolve document sources and
            to prefer unsaved edits over disk content.
        settings: Chunk sizes for reading.
    """

    def __init__(
        self,
        workspace: Optional[Workspace] = None,
        *,
        settings: Optional[Settings] = None,
        temp_dir: Optional[Path] = None,
        clock: Callable[[], int] = _epoch_millis,
    ):
        self.workspace = workspace or Workspace()
        self.settings = settings or Settings()
        self.temp_dir = temp_dir
        self._clock = clock
        self.logger = get_logger("filterline.filtering")

    def build(
        self, chunks: AsyncIterator[str], predicate: Predicate, output_path: Path
    ) -> Pipeline:
        """Assembles the stage pipeline for one run."""
        return (
            Pipeline(name="filterline")
            | read_source(chunks)
            | split_lines(backend="async")
            | filter_lines(predicate)
            | write_to_file(output_path, backend="async")
        )

    async def run(self, source: Source, predicate: Predicate) -> Path:
        """Filters `source` and returns the path of the temp output file."""
        return (await self.execute(source, predicate)).temp_output_path

    async def execute(self, source: Source, predicate: Predicate) -> FilterRun:
        """Filters `source` into a new temp file.

        Raises:
            SourceNotFound: A document source is not open.
            SourceUnreadable: The source file cannot be opened.
            PipelineIOFailure: Reading or writing failed mid-stream. The
                partial output file has been removed.
        """
        output_path = temp_output_path(
            source, millis=self._clock(), temp_dir=self.temp_dir
        )
        self.logger.info(
            "filter_started", source=source.display_name, output=str(output_path)
        )

        chunks = await open_source(source, self.workspace, self.settings.read_chunk_size)
        pipeline = self.build(chunks, predicate, output_path)
        try:
            results, context = await pipeline.collect_async(settings=self.settings)
        except FileExistsError as e:
            raise PipelineIOFailure(
                f"Output file already exists: {output_path}", output_path
            ) from e
        except (OSError, UnicodeError) as e:
            self._discard(output_path)
            raise PipelineIOFailure(
                f"Filtering '{source.display_name}' failed: {e}", output_path
            ) from e
        except BaseException:
            self._discard(output_path)
            raise
        finally:
            await chunks.aclose()

        byte_count = results[0] if results else 0
        self.logger.info(
            "filter_finished",
            output=str(output_path),
            lines_kept=context.get("lines_kept", 0),
            bytes=byte_count,
        )
        return FilterRun(source, predicate, output_path, byte_count)

    def _discard(self, output_path: Path) -> None:
        try:
            output_path.unlink(missing_ok=True)
        except OSError as e:
            self.logger.warning("partial_output_not_removed", output=str(output_path), error=str(e))
