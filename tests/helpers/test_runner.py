from typing import Any, Iterable, Iterator, List, Tuple

from filterline.core import Context, Pipeline

# Backends a plain (non-async) stage function can run on.
BACKENDS = ["serial", "async"]

SAMPLE_LINES = ["apple\n", "banana\n", "grape\n"]


async def run_pipeline(
    pipeline: Pipeline, data: Iterable[Any]
) -> Tuple[List[Any], Context]:
    """
    Runs a pipeline and collects its results, using the async path whenever a
    stage needs it.
    """
    if any(s.is_async or s.backend == "async" for s in pipeline.stages):
        return await pipeline.collect_async(data)
    return pipeline.collect(data)


def chunked(text: str, size: int) -> Iterator[str]:
    """Cuts `text` into pieces of `size` characters, ignoring line boundaries."""
    for start in range(0, len(text), size):
        yield text[start:start + size]


def write_source(directory, name: str, text: str):
    """Writes `text` verbatim (no newline translation) and returns the path."""
    path = directory / name
    path.write_bytes(text.encode("utf-8"))
    return path
