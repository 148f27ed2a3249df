"""Cache key and tag builder tests."""

import pytest

from farewatch.infrastructure.cache.keys import (
    build_key,
    criteria_digest,
    destination_history_tag,
    destination_tag,
    entity_all_key,
    entity_criteria_key,
    entity_id_key,
    entity_tags,
    rate_limit_key,
    tag_key,
    user_destinations_tag,
)


def test_entity_keys_follow_type_discriminator_value() -> None:
    assert entity_id_key("user", "42") == "user:id:42"
    assert entity_id_key("user", "42", include_deleted=True) == "user:id:42:with_deleted"
    assert entity_all_key("destination") == "destination:all"
    assert entity_all_key("destination", include_deleted=True) == "destination:all:with_deleted"


def test_criteria_keys_use_order_independent_digest() -> None:
    a = entity_criteria_key("destination", {"origin": "CDG", "destination": "JFK"})
    b = entity_criteria_key("destination", {"destination": "JFK", "origin": "CDG"})
    assert a == b
    assert a.startswith("destination:by:")
    assert len(a.rsplit(":", 1)[1]) == 32

    single = entity_criteria_key("destination", {"origin": "CDG"}, single=True)
    assert single.startswith("destination:one:")
    assert entity_criteria_key("user", {"email": "x"}, include_deleted=True).endswith(":with_deleted")


def test_criteria_digest_differs_by_value() -> None:
    assert criteria_digest({"email": "a@x.io"}) != criteria_digest({"email": "b@x.io"})


def test_key_components_may_not_contain_separator() -> None:
    with pytest.raises(ValueError):
        build_key("us:er", "id")
    with pytest.raises(ValueError):
        build_key("user", "id", "a:b")


def test_entity_id_key_hashes_ids_with_separator() -> None:
    key = entity_id_key("user", "a:b")
    assert key.startswith("user:id:")
    assert key.count(":") == 2
    assert key != entity_id_key("user", "a:c")
    assert entity_id_key("user", "a:b", include_deleted=True) == f"{key}:with_deleted"


def test_tags() -> None:
    assert entity_tags("user") == ("user", "user_list")
    assert tag_key("user_list") == "tag:user_list"
    assert user_destinations_tag("u1") == "user_u1_destinations"
    assert destination_tag("d1") == "destination_d1"
    assert destination_history_tag("d1") == "destination_d1_history"


def test_rate_limit_key_hashes_identifiers_with_separator() -> None:
    assert rate_limit_key("login", "10.0.0.1", 7) == "ratelimit:login:10.0.0.1:7"
    ipv6 = rate_limit_key("login", "2001:db8::1", 7)
    assert ipv6.startswith("ratelimit:login:")
    assert ipv6.count(":") == 3
