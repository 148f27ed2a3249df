"""Primary key generation for farewatch records."""

from cuid2 import cuid_wrapper

_next_cuid = cuid_wrapper()


def generate_cuid() -> str:
    """New CUID2 record id.

    CUID2 output is lowercase alphanumeric, so ids can be used as cache key
    components without escaping the ":" separator.
    """
    return str(_next_cuid())
