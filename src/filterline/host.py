"""
The editor/session host that filter results are delivered to.

The core only needs a handful of operations from its host: find the open
documents, create an empty buffer and append text to it, and open a file for
viewing. `MemoryEditorHost` keeps everything in process (embedding, tests);
`ConsoleEditorHost` backs the command-line tool, where the "buffer" is stdout.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, List, Optional

from .core.errors import BufferDisposed
from .core.log import get_logger


@dataclass
class Document:
    """A live, possibly unsaved, text document.

    `path` is None for untitled or virtual documents that have no file on
    disk. `spool` names a scratch file holding the text of a document too
    large to keep in memory, such as piped standard input; it is read in
    place of `text`.
    """

    uri: str
    text: str = ""
    is_dirty: bool = False
    path: Optional[Path] = None
    spool: Optional[Path] = None

    @classmethod
    def for_file(cls, path: Path, text: str, *, is_dirty: bool = False) -> "Document":
        path = Path(path)
        return cls(uri=path.resolve().as_uri(), text=text, is_dirty=is_dirty, path=path)


@dataclass
class Workspace:
    """The set of documents currently open in the host."""

    documents: List[Document] = field(default_factory=list)

    def open(self, document: Document) -> Document:
        self.documents.append(document)
        return document

    def close(self, document: Document) -> None:
        self.documents.remove(document)

    def find_by_uri(self, uri: str) -> Optional[Document]:
        return next((d for d in self.documents if d.uri == uri), None)

    def find_by_path(self, path: Path) -> Optional[Document]:
        target = Path(path).resolve()
        return next(
            (d for d in self.documents if d.path is not None and Path(d.path).resolve() == target),
            None,
        )


class EditorBuffer(ABC):
    """An editable buffer that filtered output is appended to."""

    @property
    @abstractmethod
    def is_live(self) -> bool:
        """False once the host has disposed of the buffer."""
        raise NotImplementedError

    @abstractmethod
    async def insert(self, text: str) -> None:
        """Appends `text` at the current end of the document.

        Raises:
            BufferDisposed: If the buffer was closed by the host.
        """
        raise NotImplementedError


class EditorHost(ABC):
    """The operations the filter command needs from its host."""

    def __init__(self, workspace: Optional[Workspace] = None):
        self.workspace = workspace or Workspace()

    @property
    def active_document(self) -> Optional[Document]:
        return None

    @abstractmethod
    async def create_buffer(self) -> EditorBuffer:
        raise NotImplementedError

    @abstractmethod
    async def open_for_viewing(self, path: Path) -> None:
        raise NotImplementedError


class MemoryBuffer(EditorBuffer):
    """An in-memory buffer. `dispose_after` simulates the host closing it."""

    def __init__(self, dispose_after: Optional[int] = None):
        self.chunks: List[str] = []
        self._disposed = False
        self._dispose_after = dispose_after

    @property
    def is_live(self) -> bool:
        return not self._disposed

    @property
    def text(self) -> str:
        return "".join(self.chunks)

    def dispose(self) -> None:
        self._disposed = True

    async def insert(self, text: str) -> None:
        if self._disposed:
            raise BufferDisposed("buffer was disposed")
        self.chunks.append(text)
        if self._dispose_after is not None and len(self.chunks) >= self._dispose_after:
            self.dispose()


class MemoryEditorHost(EditorHost):
    def __init__(
        self,
        workspace: Optional[Workspace] = None,
        *,
        active: Optional[Document] = None,
        dispose_buffers_after: Optional[int] = None,
    ):
        super().__init__(workspace)
        self._active = active
        self._dispose_buffers_after = dispose_buffers_after
        self.buffers: List[MemoryBuffer] = []
        self.viewed: List[Path] = []

    @property
    def active_document(self) -> Optional[Document]:
        return self._active

    async def create_buffer(self) -> MemoryBuffer:
        buffer = MemoryBuffer(dispose_after=self._dispose_buffers_after)
        self.buffers.append(buffer)
        return buffer

    async def open_for_viewing(self, path: Path) -> None:
        self.viewed.append(Path(path))


class StreamBuffer(EditorBuffer):
    """A buffer that appends to a text stream such as stdout."""

    def __init__(self, stream: IO[str]):
        self._stream = stream
        self._closed = False

    @property
    def is_live(self) -> bool:
        return not self._closed and not self._stream.closed

    async def insert(self, text: str) -> None:
        if not self.is_live:
            raise BufferDisposed("output stream is closed")
        try:
            self._stream.write(text)
            self._stream.flush()
        except BrokenPipeError as e:
            self._closed = True
            raise BufferDisposed("output stream was closed by the reader") from e


class ConsoleEditorHost(EditorHost):
    """Host used by the CLI: buffers go to `out`, viewed files are announced on it."""

    def __init__(self, out: IO[str], workspace: Optional[Workspace] = None):
        super().__init__(workspace)
        self._out = out
        self.logger = get_logger("filterline.host.console")

    async def create_buffer(self) -> StreamBuffer:
        return StreamBuffer(self._out)

    async def open_for_viewing(self, path: Path) -> None:
        self.logger.info("open_for_viewing", path=str(path))
        self._out.write(f"{path}\n")
        self._out.flush()
