from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum


class EntryType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    BLOCK_DEVICE = "blockDevice"
    CHARACTER_DEVICE = "characterDevice"
    NAMED_PIPE = "namedPipe"
    SOCKET = "socket"
    OTHER = "other"

    @classmethod
    def parse(cls, value: str) -> "EntryType":
        """Map a backend-reported type, treating unknown kinds as ``other``."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class DirectoryEntry:
    """One child of a directory as reported by the backend."""

    name: str
    type: EntryType

    @property
    def is_directory(self) -> bool:
        return self.type is EntryType.DIRECTORY


@dataclass(frozen=True)
class DirectoryListing:
    entries: tuple[DirectoryEntry, ...] = ()


async def _no_op() -> None:
    return None


@dataclass
class Blob:
    """A raw value streamed from the backend.

    ``close`` releases whatever the backend holds open for the body, and must be
    awaited for any blob that is not fully consumed.
    """

    body: AsyncIterator[bytes]
    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    close: Callable[[], Awaitable[None]] = _no_op

    async def read(self) -> bytes:
        try:
            return b"".join([chunk async for chunk in self.body])
        finally:
            await self.close()

    async def discard(self) -> None:
        """Drain and release the body without keeping it."""
        try:
            async for _ in self.body:
                pass
        finally:
            await self.close()


FetchResult = DirectoryListing | Blob


class BlobNotFound(Exception):
    """Raised when nothing exists at a requested path."""

    def __init__(self, path: str):
        super().__init__(f"Blob not found: {path}")
        self.path = path


class BlobStore(ABC):
    """Opaque backend addressed by path, with no ordering or range queries."""

    @abstractmethod
    async def fetch(self, path: str) -> FetchResult:
        """Fetch a path. Returns a listing for directories, a blob otherwise.

        Raises:
            BlobNotFound: If nothing exists at ``path``
        """
        pass

    async def aclose(self) -> None:
        """Release backend connections."""
        return None
