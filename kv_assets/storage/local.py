"""Local filesystem blob store."""

import asyncio
import os
from collections.abc import AsyncIterator
from pathlib import Path

from kv_assets.errors import InvalidPath
from kv_assets.logging_config import get_logger
from kv_assets.storage.base import (
    Blob,
    BlobNotFound,
    BlobStore,
    DirectoryEntry,
    DirectoryListing,
    EntryType,
    FetchResult,
)

logger = get_logger("storage.local")

CHUNK_SIZE = 64 * 1024


def _entry_type(entry: os.DirEntry) -> EntryType:
    # Symlinks are reported as such, never followed.
    if entry.is_symlink():
        return EntryType.SYMLINK
    if entry.is_dir(follow_symlinks=False):
        return EntryType.DIRECTORY
    if entry.is_file(follow_symlinks=False):
        return EntryType.FILE
    return EntryType.OTHER


def _is_utf8(name: str) -> bool:
    # Names that are not valid UTF-8 come back from the OS with lone surrogates.
    try:
        name.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _scan(directory: Path) -> DirectoryListing:
    entries = []
    with os.scandir(directory) as it:
        for entry in it:
            if not _is_utf8(entry.name):
                logger.warning(
                    "Skipping entry whose name is not valid UTF-8",
                    extra={"directory": str(directory), "entry": repr(entry.name)},
                )
                continue
            entries.append(DirectoryEntry(name=entry.name, type=_entry_type(entry)))
    return DirectoryListing(entries=tuple(entries))


async def _stream_file(handle) -> AsyncIterator[bytes]:
    while True:
        chunk = await asyncio.to_thread(handle.read, CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


class LocalBlobStore(BlobStore):
    """Serve a directory tree on the local filesystem."""

    def __init__(self, base_path: str = "./public"):
        self.base_path = Path(base_path).resolve()

    def _resolve_path(self, path: str) -> Path:
        """Resolve path relative to base path, preventing directory traversal."""
        resolved = (self.base_path / path).resolve()
        if not resolved.is_relative_to(self.base_path):
            raise InvalidPath(f"Path traversal attempt detected: {path}")
        return resolved

    async def fetch(self, path: str) -> FetchResult:
        full_path = self._resolve_path(path)
        if full_path.is_dir():
            try:
                return await asyncio.to_thread(_scan, full_path)
            except FileNotFoundError:
                raise BlobNotFound(path)
        try:
            handle = await asyncio.to_thread(full_path.open, "rb")
        except (FileNotFoundError, NotADirectoryError):
            raise BlobNotFound(path)

        size = os.fstat(handle.fileno()).st_size

        async def close() -> None:
            handle.close()

        return Blob(
            body=_stream_file(handle),
            headers={
                "Content-Type": "application/octet-stream",
                "Content-Length": str(size),
            },
            close=close,
        )
