"""Dispatching: drains, transports and the Streamer that ties them together.

Components:
- protocols: NormalizerProtocol and TransportProtocol
- drains: DrainRouter, one drain per level name
- dispatcher: Streamer, the inbound entry point
- hookspecs: pluggy hooks for transport discovery
- factory: create_streamer() from RuntimeStreamerConfig
- transports: built-in ConsoleTransport and AzureMonitorTransport
"""

from insights_streamer.streamer.dispatcher import Streamer
from insights_streamer.streamer.drains import DrainRouter
from insights_streamer.streamer.factory import create_streamer, create_transport, discover_transports
from insights_streamer.streamer.protocols import Drain, NormalizerProtocol, TransportProtocol

__all__ = [
    "Drain",
    "DrainRouter",
    "NormalizerProtocol",
    "Streamer",
    "TransportProtocol",
    "create_streamer",
    "create_transport",
    "discover_transports",
]
