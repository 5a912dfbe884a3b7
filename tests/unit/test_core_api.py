import asyncio
from typing import AsyncIterator, Iterable, Iterator

import pytest

from filterline.backends import MissingBackendError, get_runner
from filterline.core.context import Context
from filterline.core.pipeline import Pipeline
from filterline.core.stage import Stage, stage, stream_stage
from tests.helpers.test_runner import BACKENDS, run_pipeline

# --- Test Stages ---


@stage
def add_one(x: int) -> int:
    return x + 1


@stage
def to_string(x: int) -> str:
    return str(x)


@stage
def context_incrementer(context: Context, x: int) -> int:
    context.inc("my_counter")
    return x


@stage
def drop_odd(x: int) -> Iterator[int]:
    if x % 2 == 0:
        yield x


@stage(backend="async")
async def add_one_async(x: int) -> int:
    await asyncio.sleep(0)
    return x + 1


@stream_stage
def running_total(numbers: Iterable[int]) -> Iterator[int]:
    total = 0
    for n in numbers:
        total += n
        yield total


def double(x: int) -> int:
    return x * 2


@stage
def numbers() -> Iterator[int]:
    yield from range(3)


# --- Core Tests ---


def test_pipeline_creation():
    p = Pipeline()
    assert p.stages == []


def test_decorator_creation():
    assert isinstance(add_one, Stage)
    assert add_one.stage_type == "itemwise"
    assert running_total.stage_type == "stream"


def test_stage_without_inputs_is_a_source():
    assert numbers.stage_type == "source"


def test_invalid_stage_type():
    with pytest.raises(ValueError):
        Stage(lambda x: x, stage_type="aggregator")


def test_pipeline_composition():
    p = Pipeline() | add_one | to_string
    assert [s.name for s in p.stages] == ["add_one", "to_string"]
    assert repr(p) == "Pipeline(name='Pipeline', stages=[add_one | to_string])"


def test_stage_composition_with_operator():
    p = Pipeline() >> add_one >> to_string
    assert isinstance(p, Pipeline)
    assert len(p.stages) == 2


def test_cannot_pipe_into_source():
    with pytest.raises(TypeError, match="Cannot pipe into source stage 'numbers'"):
        _ = add_one | numbers


def test_composition_rejects_other_types():
    with pytest.raises(TypeError):
        _ = Pipeline() | 42


def test_simple_pipeline_execution():
    results, _ = (Pipeline() | add_one | add_one).collect([1, 2, 3])
    assert results == [3, 4, 5]


def test_none_results_are_dropped_and_generators_flattened():
    results, _ = (Pipeline() | drop_odd).collect(range(6))
    assert results == [0, 2, 4]


def test_stream_stage_sees_whole_stream():
    results, _ = (Pipeline() | running_total).collect([1, 2, 3])
    assert results == [1, 3, 6]


def test_source_stage_needs_no_data():
    results, _ = (numbers | add_one).collect()
    assert results == [1, 2, 3]


def test_run_without_data_or_source_fails():
    with pytest.raises(TypeError, match="requires a data argument"):
        (Pipeline() | add_one).run()


def test_context_is_used_in_pipeline():
    _, context = (Pipeline() | context_incrementer).collect([1, 2, 3])
    assert context.get("my_counter") == 3


def test_context_inc_and_update():
    ctx = Context({"a": 1})
    ctx.inc("a", 5)
    ctx.update({"b": 2})
    assert ctx.to_dict() == {"a": 6, "b": 2}


def test_metrics_are_recorded():
    pipeline = Pipeline() | add_one
    pipeline.collect([1, 2])
    assert pipeline.metrics["stages"]["add_one"]["items_in"] == 2
    assert pipeline.metrics["stages"]["add_one"]["items_out"] == 2


def test_metrics_cover_the_latest_run_only():
    pipeline = Pipeline() | add_one
    pipeline.collect([1, 2, 3, 4, 5])
    other = Pipeline() | add_one | to_string
    other.collect([1, 2])
    assert pipeline.metrics["stages"]["add_one"]["items_in"] == 2
    assert other.metrics["stages"]["to_string"]["items_out"] == 2


def test_sync_run_rejects_async_stage():
    with pytest.raises(TypeError, match="run_async"):
        (Pipeline() | add_one_async).run([1])


def test_unknown_backend():
    with pytest.raises(MissingBackendError):
        get_runner("gpu")


@pytest.mark.parametrize("backend", BACKENDS)
@pytest.mark.asyncio
async def test_itemwise_stage_on_every_backend(backend):
    s = stage(double, backend=backend)
    results, _ = await run_pipeline(Pipeline([s]), [1, 2, 3])
    assert results == [2, 4, 6]


@pytest.mark.asyncio
async def test_async_pipeline_mixes_sync_and_async_stages():
    pipeline = Pipeline() | add_one_async | add_one
    results, _ = await pipeline.collect_async([1, 2, 3])
    assert results == [3, 4, 5]


@pytest.mark.asyncio
async def test_async_stream_stage():
    @stream_stage(backend="async")
    async def pairwise_sum(items: AsyncIterator[int]) -> AsyncIterator[int]:
        previous = 0
        async for item in items:
            yield previous + item
            previous = item

    results, _ = await (Pipeline() | pairwise_sum).collect_async([1, 2, 3])
    assert results == [1, 3, 5]


@pytest.mark.asyncio
async def test_sync_stream_stage_cannot_run_async():
    with pytest.raises(TypeError, match="must be an async generator"):
        await (Pipeline() | running_total).collect_async([1, 2])


@pytest.mark.asyncio
async def test_async_errors_propagate():
    def boom(x):
        raise ValueError("Boom!")

    pipeline = Pipeline([stage(boom, backend="async")])
    with pytest.raises(ValueError, match="Boom!"):
        await pipeline.collect_async([1])
    assert pipeline.stages[0].metrics["errors"] == 1
