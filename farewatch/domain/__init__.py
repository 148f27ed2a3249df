"""Domain: exceptions shared across layers."""

from farewatch.domain.exceptions import (
    FarewatchException,
    ResourceNotFoundException,
    SqlNotConfiguredException,
    UnsupportedOperationException,
)

__all__ = [
    "FarewatchException",
    "ResourceNotFoundException",
    "SqlNotConfiguredException",
    "UnsupportedOperationException",
]
