"""RateLimitService unit tests (fixed windows over CacheService counters)."""

import pytest

from farewatch.infrastructure.services import RateLimitService
from farewatch.shared.utils.datetime import from_timestamp_utc


@pytest.fixture
def limiter(cache, clock) -> RateLimitService:
    return RateLimitService(cache, clock=clock)


async def test_requests_within_limit_are_allowed(limiter, clock) -> None:
    results = [await limiter.check_limit("10.0.0.1", 3, 60, key_prefix="login") for _ in range(3)]
    assert [r.allowed for r in results] == [True, True, True]
    assert [r.remaining for r in results] == [2, 1, 0]
    assert results[0].total == 3
    window_end = (int(clock() // 60) + 1) * 60
    assert results[0].reset_at == from_timestamp_utc(window_end)


async def test_request_over_limit_is_rejected(limiter) -> None:
    for _ in range(2):
        await limiter.check_limit("user-1", 2, 60)
    result = await limiter.check_limit("user-1", 2, 60)
    assert result.allowed is False
    assert result.remaining == 0


async def test_counter_resets_in_next_window(limiter, clock) -> None:
    for _ in range(3):
        await limiter.check_limit("user-1", 2, 60)
    clock.advance(60)
    assert (await limiter.check_limit("user-1", 2, 60)).allowed is True


async def test_identifiers_and_prefixes_are_counted_separately(limiter) -> None:
    await limiter.check_limit("a", 1, 60, key_prefix="search")
    assert (await limiter.check_limit("b", 1, 60, key_prefix="search")).allowed is True
    assert (await limiter.check_limit("a", 1, 60, key_prefix="login")).allowed is True
    assert (await limiter.check_limit("a", 1, 60, key_prefix="search")).allowed is False


async def test_ipv6_identifier_is_accepted(limiter) -> None:
    assert (await limiter.check_limit("2001:db8::1", 1, 60)).allowed is True


async def test_cache_outage_fails_open(failing_cache) -> None:
    limiter = RateLimitService(failing_cache)
    for _ in range(5):
        result = await limiter.check_limit("user-1", 1, 60)
        assert result.allowed is True
        assert result.remaining == 1


async def test_invalid_limits_raise(limiter) -> None:
    with pytest.raises(ValueError):
        await limiter.check_limit("x", 0, 60)
    with pytest.raises(ValueError):
        await limiter.check_limit("x", 1, 0)
