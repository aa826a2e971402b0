"""Key encoding between external key names and internal storage paths.

Keys starting with ``NO_CACHE_PREFIX`` ask the asset handler to bypass edge
caching. The marker is not part of the stored path, so it is stripped before
addressing the backend. A stored path that genuinely begins with the marker is
escaped with one extra marker when rendered as a key, which keeps the mapping
reversible.
"""

from kv_assets.errors import IllegalKeyName, KeyTooLong

NO_CACHE_PREFIX = "$__MINIFLARE_ASSETS_NO_CACHE__$/"

MAX_KEY_SIZE = 512


def encode_key(path: str) -> str:
    """Render a raw storage path as an external key."""
    if path.startswith(NO_CACHE_PREFIX):
        return NO_CACHE_PREFIX + path
    return path


def decode_key(key: str) -> str:
    """Map an external key to the storage path it addresses.

    Never fails: anything without the marker is used as a literal path.
    """
    if key.startswith(NO_CACHE_PREFIX):
        return key[len(NO_CACHE_PREFIX):]
    return key


def validate_key_length(key: str) -> None:
    size = len(key.encode("utf-8"))
    if size > MAX_KEY_SIZE:
        raise KeyTooLong(
            f"UTF-8 encoded length of {size} exceeds key length limit of {MAX_KEY_SIZE}."
        )


def validate_key(key: str) -> None:
    """Reject key names that can never address a stored value."""
    if key in (".", ".."):
        raise IllegalKeyName(f'Illegal key name "{key}". Please use a different name.')
    validate_key_length(key)
