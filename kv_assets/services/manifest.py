from kv_assets.keys import encode_key
from kv_assets.services.walker import DirectoryWalker


async def build_static_content_manifest(walker: DirectoryWalker) -> dict[str, str]:
    """Map every asset path under the root to the key it is served under."""
    return {path: encode_key(path) async for path in walker.walk()}
