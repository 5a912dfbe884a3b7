"""
This module provides the `filter_lines` component, which keeps the lines of
a stream whose content satisfies a predicate.
"""

from __future__ import annotations

from typing import Callable, Iterator, Optional

from ..core.context import Context
from ..core.stage import Stage, stage

Predicate = Callable[[str], bool]

_TERMINATORS = ("\r\n", "\n")


def split_terminator(line: str) -> tuple[str, str]:
    """Splits a line into (content, terminator).

    A '\\r' right before the '\\n' belongs to the terminator; a lone '\\r' is
    content. The final line of a stream may have no terminator at all.
    """
    for terminator in _TERMINATORS:
        if line.endswith(terminator):
            return line[: -len(terminator)], terminator
    return line, ""


def match_line(line: str, predicate: Predicate) -> Optional[str]:
    """Returns `line` unchanged if its content satisfies `predicate`, else None."""
    content, terminator = split_terminator(line)
    if predicate(content):
        return content + terminator
    return None


def filter_lines(
    predicate: Predicate, *, name: str = "filter_lines", backend: str = "serial"
) -> Stage:
    """
    Creates an itemwise stage that keeps the lines matching `predicate`.

    Polarity is the caller's business: build a negated predicate to drop
    lines instead of keeping them.

    Args:
        predicate: A pure function of the line content (terminator excluded).
        name: An optional name for the stage.
        backend: The backend that drives the stage.
    """

    @stage(name=name, backend=backend)
    def _filter_lines(context: Context, line: str) -> Iterator[str]:
        kept = match_line(line, predicate)
        if kept is not None:
            context.inc("lines_kept")
            yield kept

    return _filter_lines
