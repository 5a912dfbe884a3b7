"""
Readers that turn a `Source` into a stream of text chunks.

A source is either a file on disk or a document that is open in the host.
When a file is open *and* has unsaved edits, the edits win: filtering acts on
what the user currently sees, not on stale disk content.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import AsyncIterator, Iterator, Optional, Union
from urllib.parse import unquote, urlparse

import aiofiles

from ..core.errors import SourceNotFound, SourceUnreadable
from ..core.log import get_logger
from ..core.stage import Stage, stage
from ..host import Document, Workspace

logger = get_logger("filterline.source")


@dataclass(frozen=True)
class FileSource:
    """A file on disk, possibly also open (and edited) in the host."""

    path: Path

    @property
    def disk_path(self) -> Optional[Path]:
        return Path(self.path)

    @property
    def display_name(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class DocumentSource:
    """A reference to an open document that has no file of its own."""

    uri: str

    @property
    def disk_path(self) -> Optional[Path]:
        return None

    @property
    def raw_path(self) -> str:
        """The path component of the URI, e.g. 'Untitled-1' for 'untitled:Untitled-1'."""
        parsed = urlparse(self.uri)
        return unquote(parsed.path or parsed.netloc or self.uri)

    @property
    def display_name(self) -> str:
        return self.uri


Source = Union[FileSource, DocumentSource]


def source_for_document(document: Document) -> Source:
    """Builds the Source that refers to `document`."""
    if document.path is not None:
        return FileSource(Path(document.path))
    return DocumentSource(document.uri)


def source_name_parts(source: Source) -> tuple[str, str]:
    """Returns the (base, extension) used to name the filtered output.

    Disk files lose their last extension from the base and keep it as the
    extension. Other documents keep their raw name as the base, and fall
    back to '.txt' when the name has no extension.
    """
    if isinstance(source, FileSource):
        path = Path(source.path)
        return path.stem, path.suffix
    raw = PurePosixPath(source.raw_path).name or "untitled"
    return raw, PurePosixPath(raw).suffix or ".txt"


def _resolve_document(source: Source, workspace: Workspace) -> Optional[Document]:
    if isinstance(source, FileSource):
        document = workspace.find_by_path(source.path)
        if document is not None and document.is_dirty:
            return document
        return None

    document = workspace.find_by_uri(source.uri)
    if document is None:
        logger.error("document_not_found", uri=source.uri)
        raise SourceNotFound(source.uri)
    return document


def _document_chunks(document: Document, chunk_size: int) -> Iterator[str]:
    text = document.text
    for start in range(0, len(text), chunk_size):
        yield text[start:start + chunk_size]


async def _open_disk(path: Path, chunk_size: int) -> AsyncIterator[str]:
    try:
        handle = await aiofiles.open(path, "r", encoding="utf-8", newline="")
    except OSError as e:
        raise SourceUnreadable(path, e.strerror or str(e)) from e
    logger.info("reading_from_disk", path=str(path))

    async def _from_disk() -> AsyncIterator[str]:
        try:
            while True:
                chunk = await handle.read(chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            await handle.close()

    return _from_disk()


async def open_source(
    source: Source, workspace: Workspace, chunk_size: int
) -> AsyncIterator[str]:
    """Opens `source` and returns an async iterator over its text chunks.

    The source is resolved and opened before this coroutine returns, so a
    missing document or an unreadable file is reported before anything is
    written.

    Raises:
        SourceNotFound: The source is a document reference with no open document.
        SourceUnreadable: The file cannot be opened.
    """
    document = _resolve_document(source, workspace)
    if document is None:
        return await _open_disk(Path(source.path), chunk_size)

    logger.info("reading_from_document", uri=document.uri, dirty=document.is_dirty)
    if document.spool is not None:
        return await _open_disk(Path(document.spool), chunk_size)

    async def _from_document() -> AsyncIterator[str]:
        for chunk in _document_chunks(document, chunk_size):
            yield chunk

    return _from_document()


def _iter_disk(path: Path, chunk_size: int) -> Iterator[str]:
    try:
        handle = open(path, "r", encoding="utf-8", newline="")
    except OSError as e:
        raise SourceUnreadable(path, e.strerror or str(e)) from e

    def _from_disk() -> Iterator[str]:
        with handle:
            while True:
                chunk = handle.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    return _from_disk()


def iter_source(source: Source, workspace: Workspace, chunk_size: int) -> Iterator[str]:
    """Synchronous counterpart of `open_source`, for serial pipelines."""
    document = _resolve_document(source, workspace)
    if document is None:
        return _iter_disk(Path(source.path), chunk_size)
    if document.spool is not None:
        return _iter_disk(Path(document.spool), chunk_size)
    return _document_chunks(document, chunk_size)


def read_source(chunks, *, name: str = "read_source") -> Stage:
    """Creates a source stage that yields the chunks of an opened source.

    `chunks` comes from `open_source` (async) or `iter_source` (sync); the
    stage's backend follows it.
    """
    if hasattr(chunks, "__aiter__"):
        @stage(name=name, stage_type="source", backend="async")
        async def _read_source_async() -> AsyncIterator[str]:
            async for chunk in chunks:
                yield chunk

        return _read_source_async

    @stage(name=name, stage_type="source")
    def _read_source() -> Iterator[str]:
        yield from chunks

    return _read_source
