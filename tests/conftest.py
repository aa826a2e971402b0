"""Shared fixtures for namespace tests."""

from collections.abc import AsyncIterator, Callable
from pathlib import Path

import pytest
from asgi_lifespan import LifespanManager
from httpx import ASGITransport, AsyncClient

from kv_assets.config import get_settings
from kv_assets.storage.base import (
    Blob,
    BlobNotFound,
    BlobStore,
    DirectoryEntry,
    DirectoryListing,
    EntryType,
    FetchResult,
)


# =============================================================================
# IN-MEMORY BLOB STORE
# =============================================================================


async def _chunks(data: bytes) -> AsyncIterator[bytes]:
    yield data


class FakeBlobStore(BlobStore):
    """Blob store over a nested dict: dicts are directories, bytes are files.

    Records every fetched path and how many blob bodies were closed.
    ``replacements`` maps a path to the result returned instead of the tree's,
    to simulate a path changing between being listed and being fetched.
    """

    def __init__(self, tree: dict, replacements: dict[str, FetchResult | None] | None = None):
        self.tree = tree
        self.replacements = replacements or {}
        self.fetched: list[str] = []
        self.closed = 0

    def _blob(self, data: bytes) -> Blob:
        async def close() -> None:
            self.closed += 1

        return Blob(body=_chunks(data), headers={"Content-Length": str(len(data))}, close=close)

    async def fetch(self, path: str) -> FetchResult:
        self.fetched.append(path)
        if path in self.replacements:
            replacement = self.replacements[path]
            if replacement is None:
                raise BlobNotFound(path)
            if isinstance(replacement, bytes):
                return self._blob(replacement)
            return replacement

        node = self.tree
        for part in [p for p in path.split("/") if p]:
            if not isinstance(node, dict) or part not in node:
                raise BlobNotFound(path)
            node = node[part]

        if isinstance(node, dict):
            return DirectoryListing(
                entries=tuple(
                    DirectoryEntry(
                        name=name,
                        type=EntryType.DIRECTORY if isinstance(child, dict) else EntryType.FILE,
                    )
                    for name, child in node.items()
                )
            )
        return self._blob(node)


@pytest.fixture
def fake_store_factory() -> Callable[..., FakeBlobStore]:
    """Fixture providing the FakeBlobStore constructor."""
    return FakeBlobStore


@pytest.fixture
def scenario_store() -> FakeBlobStore:
    """Leaves ``a``, ``b``, ``ab`` and ``A`` in storage (not sorted) order."""
    return FakeBlobStore({"b": b"b", "ab": b"ab", "a": b"a", "A": b"A"})


# =============================================================================
# ASSETS DIRECTORY FIXTURES
# =============================================================================


def write_tree(root: Path, files: dict[str, bytes]) -> Path:
    """Write ``{"dir/name": content}`` files under ``root``."""
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return root


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """A small assets directory with nested folders."""
    return write_tree(
        tmp_path / "public",
        {
            "index.html": b"<h1>Hello</h1>",
            "A.txt": b"upper",
            "a.txt": b"lower",
            "css/site.css": b"body{}",
            "css/vendor/reset.css": b"*{margin:0}",
            "img/logo.svg": b"<svg/>",
            "docs/hello world.txt": b"spaced",
        },
    )


# =============================================================================
# ASYNC HTTP CLIENT FIXTURE
# =============================================================================


@pytest.fixture
async def client(assets_dir: Path, monkeypatch) -> AsyncIterator[AsyncClient]:
    """Create an async HTTP client for the app serving ``assets_dir``.

    Uses LifespanManager so the blob store and manifest are set up exactly as
    they are in production.
    """
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("ASSETS_PATH", str(assets_dir))
    monkeypatch.setenv("MAX_LIST_KEYS", "1000")
    get_settings.cache_clear()

    from kv_assets.main import app

    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client

    get_settings.cache_clear()
