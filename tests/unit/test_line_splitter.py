import random
import re

import pytest

from filterline.components.split import LineSplitter, aiter_lines, iter_lines, split_lines
from filterline.core.pipeline import Pipeline
from filterline.core.utils import to_async
from tests.helpers.test_runner import chunked

TEXT = "first line\nsecond\r\n\nlast without newline"
EXPECTED = ["first line\n", "second\r\n", "\n", "last without newline"]


def test_feed_returns_completed_lines_only():
    splitter = LineSplitter()
    assert splitter.feed("app") == []
    assert splitter.pending == "app"
    assert splitter.feed("le\nban") == ["apple\n"]
    assert splitter.feed("ana\ngrape\n") == ["banana\n", "grape\n"]
    assert splitter.pending == ""
    assert splitter.flush() is None


def test_flush_returns_unterminated_tail():
    splitter = LineSplitter()
    splitter.feed("tail")
    assert splitter.flush() == "tail"
    assert splitter.flush() is None


def test_only_one_partial_line_is_buffered():
    splitter = LineSplitter()
    for chunk in chunked("x" * 1000 + "\n" + "y" * 10, 7):
        splitter.feed(chunk)
        assert "\n" not in splitter.pending
    assert splitter.pending == "y" * 10


@pytest.mark.parametrize("size", [1, 2, 3, 5, 8, 13, 1000])
def test_chunk_boundaries_do_not_change_lines(size):
    assert list(iter_lines(chunked(TEXT, size))) == EXPECTED


def test_random_chunking_matches_reference_split():
    rng = random.Random(1234)
    text = "".join(
        rng.choice(["a", "b", " ", "\r", "\n", "\r\n", "ab\n"]) for _ in range(2000)
    )
    reference = re.findall(r"[^\n]*\n|[^\n]+\Z", text)
    for _ in range(20):
        cuts = sorted(rng.sample(range(1, len(text)), 30))
        pieces = [text[a:b] for a, b in zip([0] + cuts, cuts + [len(text)])]
        assert list(iter_lines(pieces)) == reference


def test_empty_input_has_no_lines():
    assert list(iter_lines([])) == []
    assert list(iter_lines(["", ""])) == []


def test_trailing_newline_gives_no_empty_last_line():
    assert list(iter_lines(["a\nb\n"])) == ["a\n", "b\n"]


@pytest.mark.asyncio
async def test_async_lines_match_sync_lines():
    lines = [line async for line in aiter_lines(to_async(chunked(TEXT, 4)))]
    assert lines == EXPECTED


def test_split_lines_stage_serial():
    results, _ = (Pipeline() | split_lines()).collect(chunked(TEXT, 3))
    assert results == EXPECTED


@pytest.mark.asyncio
async def test_split_lines_stage_async():
    results, _ = await (Pipeline() | split_lines(backend="async")).collect_async(
        chunked(TEXT, 3)
    )
    assert results == EXPECTED
