import asyncio
from collections.abc import AsyncIterator

import boto3
from botocore.exceptions import ClientError

from kv_assets.storage.base import (
    Blob,
    BlobNotFound,
    BlobStore,
    DirectoryEntry,
    DirectoryListing,
    EntryType,
    FetchResult,
)
from kv_assets.retry import retry_blob_store

CHUNK_SIZE = 64 * 1024


async def _stream_body(body) -> AsyncIterator[bytes]:
    while True:
        chunk = await asyncio.to_thread(body.read, CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


class S3BlobStore(BlobStore):
    """Treat ``/``-separated object keys in a bucket as a directory tree."""

    def __init__(
        self,
        bucket_name: str,
        aws_access_key_id: str = "",
        aws_secret_access_key: str = "",
        region: str = "us-east-1",
        prefix: str = "",
        s3_client=None,
    ):
        self.bucket_name = bucket_name
        self.prefix = prefix.strip("/")
        self.s3_client = s3_client or boto3.client(
            "s3",
            aws_access_key_id=aws_access_key_id or None,
            aws_secret_access_key=aws_secret_access_key or None,
            region_name=region,
        )

    def _get_key(self, path: str) -> str:
        """Get full S3 key with prefix."""
        if self.prefix:
            return f"{self.prefix}/{path}" if path else self.prefix
        return path

    @retry_blob_store
    async def _list_directory(self, path: str) -> DirectoryListing | None:
        key = self._get_key(path)
        search_prefix = f"{key}/" if key else ""
        entries = []

        def collect() -> None:
            paginator = self.s3_client.get_paginator("list_objects_v2")
            pages = paginator.paginate(
                Bucket=self.bucket_name, Prefix=search_prefix, Delimiter="/"
            )
            for page in pages:
                for common in page.get("CommonPrefixes", []):
                    name = common["Prefix"][len(search_prefix):].rstrip("/")
                    entries.append(DirectoryEntry(name=name, type=EntryType.DIRECTORY))
                for obj in page.get("Contents", []):
                    name = obj["Key"][len(search_prefix):]
                    if name:
                        entries.append(DirectoryEntry(name=name, type=EntryType.FILE))

        await asyncio.to_thread(collect)
        if not entries and path:
            return None
        return DirectoryListing(entries=tuple(entries))

    @retry_blob_store
    async def _get_object(self, path: str) -> dict:
        try:
            return await asyncio.to_thread(
                self.s3_client.get_object, Bucket=self.bucket_name, Key=self._get_key(path)
            )
        except ClientError as e:
            if e.response["Error"]["Code"] in ("NoSuchKey", "404"):
                raise BlobNotFound(path)
            raise

    async def fetch(self, path: str) -> FetchResult:
        listing = await self._list_directory(path)
        if listing is not None:
            return listing

        response = await self._get_object(path)
        body = response["Body"]
        headers = {"Content-Length": str(response["ContentLength"])}
        if response.get("ContentType"):
            headers["Content-Type"] = response["ContentType"]
        if response.get("ETag"):
            headers["ETag"] = response["ETag"]

        async def close() -> None:
            body.close()

        return Blob(body=_stream_body(body), headers=headers, close=close)
