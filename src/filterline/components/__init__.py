from .source import (
    FileSource,
    DocumentSource,
    Source,
    open_source,
    iter_source,
    read_source,
    source_for_document,
)
from .split import LineSplitter, split_lines, iter_lines, aiter_lines
from .filter import Predicate, filter_lines, match_line, split_terminator
from .io import write_to_file

__all__ = [
    "FileSource",
    "DocumentSource",
    "Source",
    "open_source",
    "iter_source",
    "read_source",
    "source_for_document",
    "LineSplitter",
    "split_lines",
    "iter_lines",
    "aiter_lines",
    "Predicate",
    "filter_lines",
    "match_line",
    "split_terminator",
    "write_to_file",
]
