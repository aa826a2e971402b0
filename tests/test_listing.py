"""Tests for key ordering, prefix filtering and cursor pagination."""

import base64

import pytest

from kv_assets.errors import InvalidListOptions, KeyTooLong
from kv_assets.keys import NO_CACHE_PREFIX
from kv_assets.services.listing import ListOptions, decode_cursor, encode_cursor, list_keys
from kv_assets.services.walker import DirectoryWalker


def names(page) -> list[str]:
    return [k.name for k in page.keys]


async def list_all(walker: DirectoryWalker, limit: int, prefix: str | None = None) -> list[str]:
    """Follow cursors until the listing completes."""
    collected = []
    cursor = None
    while True:
        page = await list_keys(walker, ListOptions(limit=limit, prefix=prefix, cursor=cursor))
        collected.extend(names(page))
        if page.list_complete:
            assert page.cursor is None
            return collected
        assert page.cursor is not None
        cursor = page.cursor


# =============================================================================
# CONCRETE SCENARIOS
# =============================================================================


async def test_first_page_sorts_capitals_first(scenario_store):
    walker = DirectoryWalker(scenario_store)

    page = await list_keys(walker, ListOptions(limit=2))

    assert names(page) == ["A", "a"]
    assert page.list_complete is False
    assert page.cursor == base64.b64encode(b"a").decode()


async def test_cursor_resumes_after_last_key(scenario_store):
    walker = DirectoryWalker(scenario_store)
    first = await list_keys(walker, ListOptions(limit=2))

    second = await list_keys(walker, ListOptions(limit=2, cursor=first.cursor))

    assert names(second) == ["ab", "b"]
    assert second.list_complete is True
    assert second.cursor is None


async def test_prefix_filters_keys(scenario_store):
    page = await list_keys(DirectoryWalker(scenario_store), ListOptions(limit=10, prefix="a"))

    assert names(page) == ["a", "ab"]
    assert page.list_complete is True
    assert page.cursor is None


# =============================================================================
# ORDERING AND PAGINATION PROPERTIES
# =============================================================================


async def test_order_is_utf8_byte_order(fake_store_factory):
    # UTF-16 code unit order would put the emoji before U+FFFD.
    store = fake_store_factory({"\U0001F600": b"", "é": b"", "\ufffd": b"", "a": b"", "Z": b""})

    page = await list_keys(DirectoryWalker(store), ListOptions(limit=10))

    assert names(page) == ["Z", "a", "é", "\ufffd", "\U0001F600"]
    encoded = [n.encode("utf-8") for n in names(page)]
    assert encoded == sorted(encoded)


async def test_shorter_key_sorts_before_its_extensions(fake_store_factory):
    store = fake_store_factory({"ab": b"", "a": {"b": b""}, "a-": b""})

    page = await list_keys(DirectoryWalker(store), ListOptions(limit=10))

    assert names(page) == ["a-", "a/b", "ab"]


@pytest.mark.parametrize("limit", [1, 2, 3, 7, 50])
async def test_pagination_is_complete_without_duplicates(fake_store_factory, limit):
    tree = {
        "z": b"",
        "docs": {"b.md": b"", "a.md": b"", "nested": {"Z.md": b""}},
        "B": b"",
        "b": b"",
        "ä": b"",
    }
    walker = DirectoryWalker(fake_store_factory(tree))

    listed = await list_all(walker, limit)

    assert listed == ["B", "b", "docs/a.md", "docs/b.md", "docs/nested/Z.md", "z", "ä"]


async def test_pagination_with_prefix(fake_store_factory):
    tree = {"docs": {f"{i:02}.md": b"" for i in range(10)}, "dog": b"", "cat": b""}
    walker = DirectoryWalker(fake_store_factory(tree))

    listed = await list_all(walker, 3, prefix="do")

    assert listed == ["docs/00.md", *[f"docs/{i:02}.md" for i in range(1, 10)], "dog"]
    assert all(name.startswith("do") for name in listed)


async def test_exact_fit_page_is_complete(scenario_store):
    page = await list_keys(DirectoryWalker(scenario_store), ListOptions(limit=4))

    assert len(page.keys) == 4
    assert page.list_complete is True


async def test_stale_cursor_returns_empty_complete_page(scenario_store):
    stale = encode_cursor("deleted-key")

    page = await list_keys(DirectoryWalker(scenario_store), ListOptions(limit=2, cursor=stale))

    assert page.keys == []
    assert page.list_complete is True
    assert page.cursor is None


async def test_undecodable_cursor_returns_empty_complete_page(scenario_store):
    page = await list_keys(DirectoryWalker(scenario_store), ListOptions(limit=2, cursor="!!!"))

    assert page.keys == []
    assert page.list_complete is True


async def test_cursor_for_last_key_completes(scenario_store):
    page = await list_keys(
        DirectoryWalker(scenario_store), ListOptions(limit=2, cursor=encode_cursor("b"))
    )

    assert page.keys == []
    assert page.list_complete is True


async def test_marker_paths_are_listed_escaped(fake_store_factory):
    store = fake_store_factory({"$__MINIFLARE_ASSETS_NO_CACHE__$": {"x": b""}})

    page = await list_keys(DirectoryWalker(store), ListOptions(limit=10))

    assert names(page) == [NO_CACHE_PREFIX + NO_CACHE_PREFIX + "x"]


def test_cursor_round_trip():
    assert decode_cursor(encode_cursor("docs/é.md")) == "docs/é.md"


# =============================================================================
# OPTION VALIDATION
# =============================================================================


def test_limit_defaults_to_maximum():
    options = ListOptions.parse(None, None, None, max_list_keys=1000)

    assert options == ListOptions(limit=1000)


def test_empty_values_are_absent():
    options = ListOptions.parse("5", "", "", max_list_keys=1000)

    assert options == ListOptions(limit=5, prefix=None, cursor=None)


@pytest.mark.parametrize("limit", ["0", "-3", "1001", "ten", "1.5"])
def test_invalid_limits_are_rejected(limit: str):
    with pytest.raises(InvalidListOptions, match="Invalid limit"):
        ListOptions.parse(limit, None, None, max_list_keys=1000)


def test_limit_at_maximum_is_accepted():
    assert ListOptions.parse("1000", None, None, max_list_keys=1000).limit == 1000


def test_overlong_prefix_is_rejected():
    with pytest.raises(KeyTooLong):
        ListOptions.parse("10", "p" * 513, None, max_list_keys=1000)
