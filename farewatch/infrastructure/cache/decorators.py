"""Method decorators: cache results (cached) and invalidate after writes (cache_evict).

The wrapped coroutine must receive a CacheService in one of these ways:
- keyword argument "cache" (recommended),
- first argument has a .cache attribute that is a CacheService (repositories),
- or first argument is the CacheService instance.
Without a resolvable CacheService the function runs uncached.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from functools import wraps
from typing import Any

from farewatch.core.constants import CACHE_KEY_SEP
from farewatch.infrastructure.cache.cache_service import CacheService

TagBuilder = Callable[..., Iterable[str]]


def _resolve_cache(args: tuple[Any, ...], kwargs: dict[str, Any]) -> tuple[CacheService | None, tuple[Any, ...], dict[str, Any]]:
    """Resolve CacheService and the args/kwargs used for key building.

    Resolution order: keyword "cache", then args[0].cache, then args[0] if CacheService.
    The returned args/kwargs exclude the resolved cache holder.
    """
    if "cache" in kwargs and isinstance(kwargs.get("cache"), CacheService):
        cache = kwargs["cache"]
        call_kwargs = {k: v for k, v in kwargs.items() if k != "cache"}
        return cache, args, call_kwargs
    if args:
        first = args[0]
        if isinstance(first, CacheService):
            return first, args[1:], kwargs
        cache_attr = getattr(first, "cache", None)
        if isinstance(cache_attr, CacheService):
            return cache_attr, args[1:], kwargs
    return None, args, kwargs


def _default_key(key_prefix: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    parts = [str(a) for a in args]
    parts.extend(f"{k}={v}" for k, v in sorted(kwargs.items()))
    return CACHE_KEY_SEP.join([key_prefix, *parts])


def _resolve_tags(
    tags: Iterable[str] | None,
    tag_builder: TagBuilder | None,
    args: tuple[Any, ...],
    kwargs: dict[str, Any],
) -> list[str]:
    resolved = list(tags or ())
    if tag_builder is not None:
        resolved.extend(tag_builder(*args, **kwargs))
    return resolved


def cached(
    key_prefix: str,
    ttl: int | None = None,
    tags: Iterable[str] | None = None,
    key_builder: Callable[..., str] | None = None,
    tag_builder: TagBuilder | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator to cache async function results under tags.

    Args:
        key_prefix: Prefix for cache key (e.g. 'pricehistory:avg').
        ttl: Time-to-live in seconds; None uses the CacheService default.
        tags: Static tags attached to every cached result.
        key_builder: Optional callable(*args, **kwargs) -> key; else built from args/kwargs.
        tag_builder: Optional callable(*args, **kwargs) -> extra tags (e.g. per-id tags).

    Returns:
        Decorator that caches the return value when a CacheService is resolved.
        None results are not cached.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            cache, func_args, call_kwargs = _resolve_cache(args, kwargs)
            if cache is None:
                return await func(*args, **kwargs)
            if key_builder:
                cache_key = key_builder(*func_args, **call_kwargs)
            else:
                cache_key = _default_key(key_prefix, func_args, call_kwargs)
            return await cache.remember(
                cache_key,
                lambda: func(*args, **kwargs),
                ttl=ttl,
                tags=_resolve_tags(tags, tag_builder, func_args, call_kwargs),
            )

        return wrapper

    return decorator


def cache_evict(
    tags: Iterable[str] | None = None,
    tag_builder: TagBuilder | None = None,
    key_builder: Callable[..., str] | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator that invalidates tags (and optionally one key) after the function returns.

    Invalidation runs only when the wrapped coroutine succeeds, and completes
    before the caller sees the result.

    Args:
        tags: Static tags to invalidate.
        tag_builder: Optional callable(*args, **kwargs) -> tags derived from arguments.
        key_builder: Optional callable(*args, **kwargs) -> single key to delete.
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            result = await func(*args, **kwargs)
            cache, func_args, call_kwargs = _resolve_cache(args, kwargs)
            if cache is None:
                return result
            evict_tags = _resolve_tags(tags, tag_builder, func_args, call_kwargs)
            if evict_tags:
                await cache.invalidate_tags(evict_tags)
            if key_builder is not None:
                await cache.delete(key_builder(*func_args, **call_kwargs))
            return result

        return wrapper

    return decorator
