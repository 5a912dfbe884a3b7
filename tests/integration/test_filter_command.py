import pytest

from filterline.commands import COMPLETED_INFO, NO_SOURCE_ERROR, FilterCommand
from filterline.components.source import FileSource
from filterline.config import Settings
from filterline.core.errors import InvalidPredicate, SourceUnreadable
from filterline.filtering import FilterPipeline
from filterline.history import PatternHistory
from filterline.host import Document, MemoryBuffer, MemoryEditorHost, Workspace
from filterline.notify import Notifier
from filterline.patterns import Polarity
from filterline.placement import MOVE_FAILED_WARNING, STREAM_FAILED_WARNING, PlacementDecision
from tests.helpers.test_runner import write_source

FRUIT = "apple\nbanana\ngrape\n"


@pytest.fixture
def temp_dir(tmp_path):
    directory = tmp_path / "tmp"
    directory.mkdir()
    return directory


def make_command(polarity, temp_dir, *, host=None, settings=None, history=None):
    settings = settings or Settings()
    host = host or MemoryEditorHost()
    return FilterCommand(
        polarity,
        settings=settings,
        history=history or PatternHistory(),
        host=host,
        notifier=Notifier(),
        pipeline=FilterPipeline(host.workspace, settings=settings, temp_dir=temp_dir),
    )


@pytest.mark.asyncio
async def test_contains_streams_result_into_new_buffer(tmp_path, temp_dir):
    path = write_source(tmp_path, "fruit.txt", FRUIT)
    command = make_command(Polarity.CONTAINS, temp_dir)

    result = await command.filter("an", FileSource(path))

    assert result.ok
    assert result.placement.decision is PlacementDecision.STREAM_INTO_EDITOR
    assert command.host.buffers[0].text == "banana\n"
    assert list(temp_dir.iterdir()) == []
    assert command.notifier.of_level("info") == [COMPLETED_INFO]


@pytest.mark.asyncio
async def test_not_matches_with_save_moves_file_next_to_source(tmp_path, temp_dir):
    path = write_source(tmp_path, "fruit.txt", FRUIT)
    command = make_command(
        Polarity.NOT_MATCHES, temp_dir, settings=Settings(save_after_filtering=True)
    )

    result = await command.filter("^b", FileSource(path))

    saved = tmp_path / result.run.temp_output_path.name
    assert result.placement.location == saved
    assert saved.read_bytes() == b"apple\ngrape\n"
    assert saved.name.startswith("fruit.filterline-") and saved.suffix == ".txt"
    assert command.host.viewed == [saved]


@pytest.mark.asyncio
async def test_invalid_regex_reports_error_before_reading(tmp_path, temp_dir):
    path = write_source(tmp_path, "fruit.txt", FRUIT)
    history = PatternHistory()
    command = make_command(Polarity.MATCHES, temp_dir, history=history)

    result = await command.filter("(unclosed", FileSource(path))

    assert not result.ok
    assert isinstance(result.error, InvalidPredicate)
    assert command.notifier.of_level("error")[0].startswith("Regex incorrect")
    assert list(temp_dir.iterdir()) == []
    assert history.get("inputRegex") == []


@pytest.mark.asyncio
async def test_move_failure_is_a_warning(tmp_path, temp_dir, monkeypatch):
    def refuse(src, dst):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr("filterline.placement.shutil.move", refuse)
    path = write_source(tmp_path, "fruit.txt", FRUIT)
    command = make_command(
        Polarity.CONTAINS, temp_dir, settings=Settings(save_after_filtering=True)
    )

    result = await command.filter("an", FileSource(path))

    assert result.ok
    assert result.placement.location.parent == temp_dir
    assert result.placement.location.read_bytes() == b"banana\n"
    assert command.notifier.of_level("warning") == [MOVE_FAILED_WARNING]
    assert command.notifier.of_level("info") == [COMPLETED_INFO]


@pytest.mark.asyncio
async def test_empty_pattern_does_nothing(tmp_path, temp_dir):
    path = write_source(tmp_path, "fruit.txt", FRUIT)
    command = make_command(Polarity.CONTAINS, temp_dir)

    result = await command.filter("", FileSource(path))

    assert not result.ok
    assert result.error is None
    assert command.notifier.messages == []
    assert list(temp_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_active_document_is_the_default_source(tmp_path, temp_dir):
    workspace = Workspace()
    document = workspace.open(Document(uri="untitled:Untitled-1", text="one\ntwo\n"))
    host = MemoryEditorHost(workspace, active=document)
    command = make_command(Polarity.NOT_CONTAINS, temp_dir, host=host)

    result = await command.filter("one")

    assert result.ok
    assert result.run.temp_output_path.name.startswith("Untitled-1.filterline-")
    assert host.buffers[0].text == "two\n"


@pytest.mark.asyncio
async def test_no_source_is_an_error(temp_dir):
    command = make_command(Polarity.CONTAINS, temp_dir)

    result = await command.filter("an")

    assert not result.ok
    assert command.notifier.of_level("error") == [NO_SOURCE_ERROR]


@pytest.mark.asyncio
async def test_unreadable_source_is_an_error(tmp_path, temp_dir):
    command = make_command(Polarity.CONTAINS, temp_dir)

    result = await command.filter("an", FileSource(tmp_path / "absent.txt"))

    assert not result.ok
    assert isinstance(result.error, SourceUnreadable)
    assert len(command.notifier.of_level("error")) == 1
    assert list(temp_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_patterns_are_recorded_in_history(tmp_path, temp_dir):
    path = write_source(tmp_path, "fruit.txt", FRUIT)
    history = PatternHistory(max_size=2, path=tmp_path / "history.yml")
    command = make_command(Polarity.CONTAINS, temp_dir, history=history)

    for pattern in ["an", "ap", "gr", "an"]:
        await command.filter(pattern, FileSource(path))

    assert history.get("inputStr") == ["an", "gr"]
    assert PatternHistory.load(tmp_path / "history.yml").get("inputStr") == ["an", "gr"]


class FullDiskBuffer(MemoryBuffer):
    async def insert(self, text: str) -> None:
        raise OSError(28, "No space left on device")


class FullDiskHost(MemoryEditorHost):
    async def create_buffer(self) -> MemoryBuffer:
        return FullDiskBuffer()


@pytest.mark.asyncio
async def test_failed_streaming_completes_with_warning(tmp_path, temp_dir):
    path = write_source(tmp_path, "fruit.txt", FRUIT)
    host = FullDiskHost()
    command = make_command(Polarity.CONTAINS, temp_dir, host=host)

    result = await command.filter("an", FileSource(path))

    assert result.ok
    assert result.placement.location.read_bytes() == b"banana\n"
    assert host.viewed == [result.placement.location]
    assert command.notifier.of_level("warning") == [STREAM_FAILED_WARNING]
    assert command.notifier.of_level("info") == [COMPLETED_INFO]


@pytest.mark.asyncio
async def test_unwritable_history_does_not_stop_filtering(tmp_path, temp_dir):
    path = write_source(tmp_path, "fruit.txt", FRUIT)
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("")
    history = PatternHistory(path=blocker / "history.yml")
    command = make_command(Polarity.CONTAINS, temp_dir, history=history)

    result = await command.filter("an", FileSource(path))

    assert result.ok
    assert command.host.buffers[0].text == "banana\n"
    assert history.get("inputStr") == ["an"]
