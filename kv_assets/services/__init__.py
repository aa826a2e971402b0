from kv_assets.services.listing import ListOptions, ListPage, list_keys
from kv_assets.services.manifest import build_static_content_manifest
from kv_assets.services.namespace import AssetsNamespace
from kv_assets.services.walker import DirectoryWalker

__all__ = [
    "AssetsNamespace",
    "DirectoryWalker",
    "ListOptions",
    "ListPage",
    "build_static_content_manifest",
    "list_keys",
]
