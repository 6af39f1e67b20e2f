"""Core infrastructure: configuration loading and logging setup."""

from insights_streamer.core.config import (
    StreamerSettings,
    TransportSettings,
    collect_environment_properties,
    load_settings,
)
from insights_streamer.core.logging import configure_logging

__all__ = [
    "StreamerSettings",
    "TransportSettings",
    "collect_environment_properties",
    "configure_logging",
    "load_settings",
]
