"""Recursive leaf enumeration over a blob store's directory listings."""

import asyncio
from collections.abc import AsyncIterator

from kv_assets.logging_config import get_logger
from kv_assets.storage.base import Blob, BlobNotFound, BlobStore, FetchResult

logger = get_logger("services.walker")


def join_path(parent: str, name: str) -> str:
    return f"{parent}/{name}" if parent else name


class DirectoryWalker:
    """Yield every leaf path under a root, depth first in listing order.

    Pending entries live on an explicit stack, so depth is bounded only by the
    backend tree. With ``concurrency > 1``, fetching a directory also fetches up
    to ``concurrency - 1`` of the next pending directories. Their results are
    held until the traversal reaches them, so the output order is the same for
    any concurrency.
    """

    def __init__(self, store: BlobStore, concurrency: int = 1):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.store = store
        self.concurrency = concurrency

    async def _fetch(self, path: str) -> FetchResult | None:
        try:
            return await self.store.fetch(path)
        except BlobNotFound:
            return None

    async def _fetch_batch(self, paths: list[str]) -> list[FetchResult | None]:
        if len(paths) == 1:
            return [await self._fetch(paths[0])]
        return list(await asyncio.gather(*(self._fetch(path) for path in paths)))

    async def walk(self, root: str = "") -> AsyncIterator[str]:
        # (path, is_directory); the top of the stack is the next entry in order.
        stack = [(root, True)]
        prefetched: dict[str, FetchResult | None] = {}
        try:
            while stack:
                path, is_directory = stack.pop()
                if not is_directory:
                    yield path
                    continue

                if path not in prefetched:
                    upcoming = [
                        p for p, d in reversed(stack) if d and p not in prefetched
                    ][: self.concurrency - 1]
                    batch = [path, *upcoming]
                    prefetched.update(zip(batch, await self._fetch_batch(batch)))
                result = prefetched.pop(path)

                if result is None or isinstance(result, Blob):
                    # Listed as a directory but no longer one: report it as a leaf.
                    if result is not None:
                        await result.discard()
                    logger.debug("Treating path as leaf", extra={"path": path})
                    if path:
                        yield path
                    continue

                stack.extend(
                    (join_path(path, entry.name), entry.is_directory)
                    for entry in reversed(result.entries)
                )
        finally:
            # Release bodies fetched ahead of a walk that was abandoned early.
            for result in prefetched.values():
                if isinstance(result, Blob):
                    await result.close()
