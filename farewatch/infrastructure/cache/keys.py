"""Cache key and tag builders. Single place for key format (DRY).

Keys follow "<entity_type>:<discriminator>:<value...>" (e.g. "user:id:42",
"user:all"). Key components must not contain CACHE_KEY_SEP to avoid
ambiguous or colliding keys; criteria-based keys use a digest instead.
"""

import hashlib
import json
from collections.abc import Mapping
from typing import Any

from farewatch.core.constants import (
    CACHE_DISCRIMINATOR_ALL,
    CACHE_DISCRIMINATOR_BY,
    CACHE_DISCRIMINATOR_ID,
    CACHE_DISCRIMINATOR_ONE,
    CACHE_KEY_SEP,
    CACHE_PREFIX_RATE_LIMIT,
    CACHE_SUFFIX_WITH_DELETED,
    CACHE_TAG_PREFIX,
    LIST_TAG_SUFFIX,
)


def _validate_key_component(value: str, name: str) -> None:
    """Raise ValueError if value contains the cache key separator.

    Args:
        value: String component used in a cache key.
        name: Name of the component (for error message).

    Raises:
        ValueError: If value contains CACHE_KEY_SEP.
    """
    if CACHE_KEY_SEP in value:
        raise ValueError(
            f"Cache key component {name!r} must not contain separator {CACHE_KEY_SEP!r}"
        )


def _safe_component(value: str | int) -> str:
    """Hash a caller-supplied value that contains the separator (IPv6, foreign ids)."""
    text = str(value)
    if CACHE_KEY_SEP in text:
        return hashlib.sha256(text.encode("utf-8")).hexdigest()[:32]
    return text


def build_key(prefix: str, *parts: str | int) -> str:
    """Join prefix and parts with the separator, e.g. build_key("user", "id", 42)."""
    _validate_key_component(prefix, "prefix")
    for index, part in enumerate(parts):
        _validate_key_component(str(part), f"part[{index}]")
    return CACHE_KEY_SEP.join([prefix, *(str(p) for p in parts)])


def tag_key(tag: str) -> str:
    """Storage key of the reverse-index set for tag ("tag:<tag>").

    Tags are free-form, so they may themselves contain the separator.
    """
    return f"{CACHE_TAG_PREFIX}{CACHE_KEY_SEP}{tag}"


def criteria_digest(criteria: Mapping[str, Any]) -> str:
    """Stable short digest of a criteria mapping (order-independent)."""
    payload = json.dumps(dict(criteria), sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:32]


def entity_id_key(entity_type: str, entity_id: str | int, *, include_deleted: bool = False) -> str:
    """Cache key for a record by id; soft-deleted-inclusive reads use their own key.

    Ids containing the separator are hashed, so any id yields a valid key.
    """
    component = _safe_component(entity_id)
    if include_deleted:
        return build_key(entity_type, CACHE_DISCRIMINATOR_ID, component, CACHE_SUFFIX_WITH_DELETED)
    return build_key(entity_type, CACHE_DISCRIMINATOR_ID, component)


def entity_all_key(entity_type: str, *, include_deleted: bool = False) -> str:
    """Cache key for the full list of an entity type."""
    if include_deleted:
        return build_key(entity_type, CACHE_DISCRIMINATOR_ALL, CACHE_SUFFIX_WITH_DELETED)
    return build_key(entity_type, CACHE_DISCRIMINATOR_ALL)


def entity_criteria_key(
    entity_type: str,
    criteria: Mapping[str, Any],
    *,
    single: bool = False,
    include_deleted: bool = False,
) -> str:
    """Cache key for a criteria lookup (list, or first match when single)."""
    discriminator = CACHE_DISCRIMINATOR_ONE if single else CACHE_DISCRIMINATOR_BY
    parts: list[str] = [discriminator, criteria_digest(criteria)]
    if include_deleted:
        parts.append(CACHE_SUFFIX_WITH_DELETED)
    return build_key(entity_type, *parts)


def entity_tags(entity_type: str) -> tuple[str, str]:
    """The two tags every entity type owns: "<type>" and "<type>_list"."""
    return entity_type, f"{entity_type}{LIST_TAG_SUFFIX}"


def rate_limit_key(prefix: str, identifier: str, window: int) -> str:
    """Counter key for one fixed rate-limit window.

    Identifiers such as IPv6 addresses contain the separator; those are hashed.
    """
    return build_key(CACHE_PREFIX_RATE_LIMIT, prefix, _safe_component(identifier), window)


def user_destinations_tag(user_id: str) -> str:
    """Tag for every cached destination list of one user."""
    return f"user_{user_id}_destinations"


def destination_tag(destination_id: str) -> str:
    return f"destination_{destination_id}"


def destination_history_tag(destination_id: str) -> str:
    """Tag for cached price history reads and aggregates of one destination."""
    return f"destination_{destination_id}_history"
