"""Read-only KV namespace over a blob store."""

import time

from kv_assets.errors import MethodNotAllowed
from kv_assets.keys import validate_key
from kv_assets.logging_config import get_logger
from kv_assets.services.listing import ListOptions, ListPage, list_keys
from kv_assets.services.walker import DirectoryWalker
from kv_assets.storage.base import Blob, BlobNotFound, BlobStore

logger = get_logger("services.namespace")

READ_METHODS = {"GET"}


def check_method(method: str) -> None:
    """Only reads are permitted on an assets namespace."""
    if method.upper() not in READ_METHODS:
        raise MethodNotAllowed(method)


class AssetsNamespace:
    def __init__(self, store: BlobStore, max_list_keys: int = 1000, walk_concurrency: int = 1):
        self.store = store
        self.max_list_keys = max_list_keys
        self.walker = DirectoryWalker(store, concurrency=walk_concurrency)

    def parse_list_options(
        self, limit: str | None, prefix: str | None, cursor: str | None
    ) -> ListOptions:
        return ListOptions.parse(limit, prefix, cursor, max_list_keys=self.max_list_keys)

    async def list_keys(self, options: ListOptions) -> ListPage:
        start_time = time.perf_counter()
        page = await list_keys(self.walker, options)
        duration_ms = int((time.perf_counter() - start_time) * 1000)
        logger.info(
            "Listed keys",
            extra={
                "returned": len(page.keys),
                "list_complete": page.list_complete,
                "duration_ms": duration_ms,
            },
        )
        return page

    async def get(self, path: str) -> Blob:
        """Fetch the value stored at a storage path.

        ``path`` is already decoded from its external key; decoding it again
        would strip an escaped marker that belongs to the stored name.

        Raises:
            IllegalKeyName, KeyTooLong: If the path can never address a value
            BlobNotFound: If no value is stored at the path
        """
        validate_key(path)
        result = await self.store.fetch(path)
        if not isinstance(result, Blob):
            # Directories are not values.
            raise BlobNotFound(path)
        return result
