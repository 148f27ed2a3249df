"""Shared telemetry: logging setup."""

from farewatch.shared.telemetry.logging import setup_logging

__all__ = ["setup_logging"]
