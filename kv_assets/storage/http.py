"""Blob store backed by a remote blob HTTP service.

The service answers ``GET /<path>`` with a JSON array of
``{"name": ..., "type": ...}`` entries for directories, and with the raw
file contents otherwise. Every non-listing response, a 404 included, is
handed back as a blob so its status, headers and body reach the client as
the service sent them.
"""

from urllib.parse import quote

import httpx

from kv_assets.logging_config import get_logger
from kv_assets.retry import retry_blob_store
from kv_assets.storage.base import (
    Blob,
    BlobStore,
    DirectoryEntry,
    DirectoryListing,
    EntryType,
    FetchResult,
)

logger = get_logger("storage.http")


def parse_directory_listing(payload: list[dict]) -> DirectoryListing:
    """Parse a directory listing body into entries."""
    return DirectoryListing(
        entries=tuple(
            DirectoryEntry(name=item["name"], type=EntryType.parse(item.get("type", "other")))
            for item in payload
        )
    )


class HttpBlobStore(BlobStore):
    def __init__(self, base_url: str, client: httpx.AsyncClient | None = None):
        self.base_url = base_url.rstrip("/") + "/"
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None

    def _url(self, path: str) -> str:
        return self.base_url + quote(path, safe="/")

    @retry_blob_store
    async def _send(self, path: str) -> httpx.Response:
        request = self._client.build_request("GET", self._url(path))
        return await self._client.send(request, stream=True)

    async def fetch(self, path: str) -> FetchResult:
        response = await self._send(path)

        content_type = response.headers.get("Content-Type", "").lower()
        if response.is_success and content_type.startswith("application/json"):
            await response.aread()
            await response.aclose()
            return parse_directory_listing(response.json())

        if not response.is_success:
            logger.debug(
                "Passing through backend error",
                extra={"path": path, "status": response.status_code},
            )

        return Blob(
            body=response.aiter_raw(),
            status_code=response.status_code,
            headers=dict(response.headers),
            close=response.aclose,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
