"""KV namespace endpoint: ``GET /<key>`` reads a value, ``GET /`` lists keys."""

from urllib.parse import unquote

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, StreamingResponse

from kv_assets.errors import NamespaceError
from kv_assets.keys import decode_key
from kv_assets.logging_config import get_logger
from kv_assets.services.namespace import AssetsNamespace, check_method
from kv_assets.storage.base import BlobNotFound

router = APIRouter()
logger = get_logger("api.namespace")

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Connection-level headers describe the backend hop, not the value.
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
}


def get_namespace(request: Request) -> AssetsNamespace:
    """Get the namespace configured at startup."""
    return request.app.state.namespace


def request_key(request: Request, url_encoded: str | None) -> str:
    """Key named by the request path, before any percent-decoding by the server."""
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("utf-8")
    else:
        path = request.url.path
    key = path[1:]  # Strip leading "/"
    if url_encoded is not None and url_encoded.lower() == "true":
        key = unquote(key)
    return key


@router.api_route("/{key_path:path}", methods=ALL_METHODS)
async def namespace_request(
    request: Request,
    url_encoded: str | None = Query(None, alias="urlEncoded"),
    limit: str | None = None,
    prefix: str | None = None,
    cursor: str | None = None,
    namespace: AssetsNamespace = Depends(get_namespace),
):
    """Serve a single value, or list keys when the key is empty."""
    try:
        check_method(request.method)
        path = decode_key(request_key(request, url_encoded))

        if path == "":
            options = namespace.parse_list_options(limit, prefix, cursor)
            page = await namespace.list_keys(options)
            return JSONResponse(page.model_dump(exclude_none=True))

        blob = await namespace.get(path)
    except NamespaceError as e:
        logger.warning("Rejected request: %s", e.message, extra={"method": request.method})
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except BlobNotFound:
        raise HTTPException(status_code=404, detail="Not Found")

    headers = {k: v for k, v in blob.headers.items() if k.lower() not in HOP_BY_HOP_HEADERS}
    cleanup = BackgroundTasks()
    cleanup.add_task(blob.close)
    return StreamingResponse(
        blob.body,
        status_code=blob.status_code,
        headers=headers,
        background=cleanup,
    )
