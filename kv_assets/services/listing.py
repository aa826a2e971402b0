"""Key listing with the ordering and pagination of a hosted KV namespace.

The backend can only be walked, so every call materializes the matching key
set, sorts it and slices one page out of it. Keys are ordered by their UTF-8
bytes, the collation the hosted service uses. A cursor is the base64 encoding of
the last key of the previous page.
"""

import base64
import binascii
from dataclasses import dataclass

from pydantic import BaseModel

from kv_assets.errors import InvalidListOptions
from kv_assets.keys import encode_key, validate_key_length
from kv_assets.services.walker import DirectoryWalker


class KeyInfo(BaseModel):
    name: str


class ListPage(BaseModel):
    keys: list[KeyInfo]
    list_complete: bool
    cursor: str | None = None


@dataclass(frozen=True)
class ListOptions:
    limit: int
    prefix: str | None = None
    cursor: str | None = None

    @classmethod
    def parse(
        cls,
        limit: str | None,
        prefix: str | None,
        cursor: str | None,
        max_list_keys: int,
    ) -> "ListOptions":
        """Validate raw query values.

        Raises:
            InvalidListOptions: If ``limit`` is not an integer in [1, max_list_keys]
            KeyTooLong: If ``prefix`` exceeds the key size limit
        """
        if limit is None or limit == "":
            value = max_list_keys
        else:
            try:
                value = int(limit)
            except ValueError:
                raise InvalidListOptions(
                    f"Invalid limit of {limit!r}. Please specify an integer greater than 0."
                )
            if value < 1:
                raise InvalidListOptions(
                    f"Invalid limit of {value}. Please specify an integer greater than 0."
                )
            if value > max_list_keys:
                raise InvalidListOptions(
                    f"Invalid limit of {value}. Please specify an integer less than or equal to {max_list_keys}."
                )

        if prefix:
            validate_key_length(prefix)

        return cls(limit=value, prefix=prefix or None, cursor=cursor or None)


def encode_cursor(key: str) -> str:
    return base64.b64encode(key.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> str | None:
    """Decode a cursor, returning None for values no page could have produced."""
    try:
        return base64.b64decode(cursor, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None


def resolve_start(names: list[str], cursor: str | None) -> int:
    """Index of the first key after the cursor's key.

    An unknown or stale cursor resolves past the end, so the page comes back
    empty and complete instead of failing.
    """
    if cursor is None:
        return 0
    start_after = decode_cursor(cursor)
    if start_after is None:
        return len(names)
    if start_after == "":
        return 0
    # Listing is rare enough that a linear scan is fine here.
    try:
        return names.index(start_after) + 1
    except ValueError:
        return len(names)


def paginate(names: list[str], options: ListOptions) -> ListPage:
    start = resolve_start(names, options.cursor)
    end = start + options.limit
    page = names[start:end]

    if end < len(names):
        return ListPage(
            keys=[KeyInfo(name=n) for n in page],
            list_complete=False,
            cursor=encode_cursor(page[-1]),
        )
    return ListPage(keys=[KeyInfo(name=n) for n in page], list_complete=True)


async def collect_sorted_keys(walker: DirectoryWalker, prefix: str | None = None) -> list[str]:
    """Every key under the walker's root starting with ``prefix``, in byte order."""
    encoded = []
    async for path in walker.walk():
        name = encode_key(path)
        if prefix is not None and not name.startswith(prefix):
            continue
        encoded.append((name.encode("utf-8"), name))
    encoded.sort(key=lambda pair: pair[0])
    return [name for _, name in encoded]


async def list_keys(walker: DirectoryWalker, options: ListOptions) -> ListPage:
    names = await collect_sorted_keys(walker, options.prefix)
    return paginate(names, options)
