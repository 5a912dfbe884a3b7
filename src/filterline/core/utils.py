import types
from typing import Any, AsyncIterator, Iterable


def ensure_iterable(obj: Any) -> Iterable[Any]:
    """
    Ensures that the given object is an iterable of stage results.

    Lists and generators are returned as is, `None` becomes an empty list
    (a filtered-out item) and anything else, strings included, is wrapped as
    a single result.
    """
    if obj is None:
        return []
    if isinstance(obj, (list, types.GeneratorType, types.AsyncGeneratorType)):
        return obj
    return [obj]


async def to_async(iterable: Iterable[Any]) -> AsyncIterator[Any]:
    """Adapts a plain iterable into an async iterator."""
    for item in iterable:
        yield item
