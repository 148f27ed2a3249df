"""TagIndex unit tests: fan-out, idempotence, pruning, per-tag failure isolation."""

from unittest.mock import AsyncMock

from farewatch.infrastructure.cache import InMemoryCacheStore, TagIndex


async def _seed(store: InMemoryCacheStore, index: TagIndex, key: str, tags: list[str]) -> None:
    await store.set(key, '"v"')
    await index.associate(key, tags)


async def test_invalidate_fans_out_to_every_key_under_tag(cache_store) -> None:
    """k1[t] and k2[t,u] go with t; k3[u] survives until u is invalidated."""
    index = TagIndex(cache_store)
    await _seed(cache_store, index, "k1", ["t"])
    await _seed(cache_store, index, "k2", ["t", "u"])
    await _seed(cache_store, index, "k3", ["u"])

    assert await index.invalidate(["t"]) == 2
    assert await cache_store.get("k1") is None
    assert await cache_store.get("k2") is None
    assert await cache_store.get("k3") == '"v"'

    await index.invalidate(["u"])
    assert await cache_store.get("k3") is None


async def test_invalidate_twice_is_a_noop_the_second_time(cache_store) -> None:
    index = TagIndex(cache_store)
    await _seed(cache_store, index, "k1", ["t"])

    assert await index.invalidate(["t"]) == 1
    assert await index.invalidate(["t"]) == 0
    assert await index.members("t") == set()


async def test_invalidate_unknown_and_empty_tags() -> None:
    index = TagIndex(InMemoryCacheStore())
    assert await index.invalidate([]) == 0
    assert await index.invalidate(["never-used", ""]) == 0


async def test_associate_deduplicates_tags(cache_store) -> None:
    index = TagIndex(cache_store)
    await index.associate("k1", ["t", "t", ""])
    assert await index.members("t") == {"k1"}
    assert await cache_store.members_of("tag:t") == {"k1"}


async def test_tag_sets_are_stored_under_tag_prefix() -> None:
    assert TagIndex.tag_key("users") == "tag:users"


async def test_prune_drops_expired_keys_only(cache_store, clock) -> None:
    index = TagIndex(cache_store)
    await cache_store.set("short", '"v"', ttl=10)
    await cache_store.set("long", '"v"', ttl=1000)
    await index.associate("short", ["t"])
    await index.associate("long", ["t"])

    clock.advance(11)

    assert await index.prune("t") == 1
    assert await index.members("t") == {"long"}


async def test_failing_tag_does_not_stop_other_tags(cache_store) -> None:
    """A store error on one tag is logged; remaining tags are still invalidated."""
    index = TagIndex(cache_store)
    await _seed(cache_store, index, "k1", ["bad"])
    await _seed(cache_store, index, "k2", ["good"])

    real_members_of = cache_store.members_of

    async def members_of(set_key: str) -> set[str]:
        if set_key == "tag:bad":
            raise ConnectionError("boom")
        return await real_members_of(set_key)

    cache_store.members_of = AsyncMock(side_effect=members_of)

    assert await index.invalidate(["bad", "good"]) == 1
    assert await cache_store.get("k1") == '"v"'
    assert await cache_store.get("k2") is None
