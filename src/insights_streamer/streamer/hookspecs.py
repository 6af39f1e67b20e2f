# src/insights_streamer/streamer/hookspecs.py
"""pluggy hook specifications for transports.

Usage (implementing a transport plugin):
    from insights_streamer.streamer.hookspecs import hookimpl

    class MyTransportPlugin:
        @hookimpl
        def insights_streamer_get_transports(self):
            return [MyTransport]
"""

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from insights_streamer.streamer.protocols import TransportProtocol

PROJECT_NAME = "insights_streamer"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)

hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class InsightsStreamerTransportSpec:
    """Hook specifications for transport plugins."""

    @hookspec
    def insights_streamer_get_transports(self) -> list[type["TransportProtocol"]]:  # type: ignore[empty-body]
        """Return transport classes (not instances) implementing TransportProtocol."""
