from __future__ import annotations

from pathlib import Path
from typing import Optional


class FilterLineError(Exception):
    """Base class for all exceptions raised by filterline."""

    pass


class ConfigError(FilterLineError, ValueError):
    """Raised when a configuration value is missing or out of range."""

    pass


class SourceNotFound(FilterLineError):
    """Raised when a document reference cannot be resolved to an open document."""

    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"TextDocument not found: {uri}")


class SourceUnreadable(FilterLineError):
    """Raised when an on-disk source cannot be opened for reading."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to read '{path}': {reason}")


class InvalidPredicate(FilterLineError, ValueError):
    """Raised when a pattern cannot be turned into a line predicate.

    This is always raised while the predicate is being built, before any
    stream processing starts.
    """

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Regex incorrect: {pattern!r}: {reason}")


class PipelineIOFailure(FilterLineError):
    """Raised when reading, filtering or writing fails mid-stream."""

    def __init__(self, message: str, output_path: Optional[Path] = None):
        self.output_path = output_path
        super().__init__(message)


class PlacementMoveFailure(FilterLineError):
    """The filtered output could not be moved next to its source.

    Never fatal: the placer keeps the temp file and reports a warning.
    """

    def __init__(self, src: Path, dst: Path, reason: str):
        self.src = src
        self.dst = dst
        self.reason = reason
        super().__init__(f"Cannot move '{src}' to '{dst}': {reason}")


class BufferDisposed(FilterLineError):
    """Raised by an editor buffer that was closed while it was being written."""

    pass


class HostTeardownDuringPlacement(FilterLineError):
    """The destination buffer went away while output was streamed into it.

    Treated as a completed run; the temp file is left for manual recovery.
    """

    def __init__(self, temp_path: Path, chunks_written: int):
        self.temp_path = temp_path
        self.chunks_written = chunks_written
        super().__init__(
            f"Editor closed after {chunks_written} chunk(s); "
            f"full output kept at '{temp_path}'"
        )
