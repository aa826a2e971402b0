from kv_assets.storage.base import (
    Blob,
    BlobNotFound,
    BlobStore,
    DirectoryEntry,
    DirectoryListing,
    EntryType,
)
from kv_assets.storage.http import HttpBlobStore
from kv_assets.storage.local import LocalBlobStore
from kv_assets.storage.s3 import S3BlobStore

__all__ = [
    "Blob",
    "BlobNotFound",
    "BlobStore",
    "DirectoryEntry",
    "DirectoryListing",
    "EntryType",
    "HttpBlobStore",
    "LocalBlobStore",
    "S3BlobStore",
]
