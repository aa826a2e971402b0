"""FastAPI application serving a directory of assets as a read-only KV namespace."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from kv_assets.api import namespace
from kv_assets.config import Settings, get_settings
from kv_assets.logging_config import get_logger, setup_logging
from kv_assets.services.manifest import build_static_content_manifest
from kv_assets.services.namespace import AssetsNamespace
from kv_assets.storage.base import BlobStore
from kv_assets.storage.http import HttpBlobStore
from kv_assets.storage.local import LocalBlobStore
from kv_assets.storage.s3 import S3BlobStore

# Initialize logging before anything else
_settings = get_settings()
setup_logging(
    log_level=_settings.log_level,
    json_output=_settings.log_json,
    log_to_file=_settings.log_to_file,
)
logger = get_logger("main")


def create_blob_store(settings: Settings) -> BlobStore:
    """Get configured blob store."""
    if settings.storage_backend == "s3":
        return S3BlobStore(
            bucket_name=settings.s3_bucket_name,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            region=settings.aws_region,
            prefix=settings.s3_prefix,
        )
    if settings.storage_backend == "http":
        if not settings.blobs_url:
            raise ValueError("BLOBS_URL is required when STORAGE_BACKEND=http")
        return HttpBlobStore(settings.blobs_url)
    if settings.storage_backend == "local":
        return LocalBlobStore(base_path=settings.assets_path)
    raise ValueError(f"Unknown storage backend: {settings.storage_backend}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Wire the blob store on startup, release it on shutdown."""
    settings = get_settings()
    logger.info(
        "Starting assets namespace", extra={"storage_backend": settings.storage_backend}
    )

    try:
        store = create_blob_store(settings)
        app.state.namespace = AssetsNamespace(
            store,
            max_list_keys=settings.max_list_keys,
            walk_concurrency=settings.walk_concurrency,
        )
        app.state.manifest = {}
        if settings.build_manifest:
            app.state.manifest = await build_static_content_manifest(app.state.namespace.walker)
            logger.info("Indexed %d assets", len(app.state.manifest))
    except Exception as e:
        logger.error("Failed to initialize blob store: %s", str(e))
        raise

    yield

    logger.info("Shutting down assets namespace")
    await store.aclose()


app = FastAPI(
    title="Assets KV Namespace",
    description="Read-only KV namespace over a directory of assets",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(namespace.router, tags=["Namespace"])
