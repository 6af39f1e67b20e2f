# src/insights_streamer/contracts/errors.py
"""Streamer-specific exceptions.

The normalization pipeline itself never raises. These exceptions cover
transport discovery and configuration only.
"""


class TransportError(Exception):
    """Raised when a transport cannot be discovered or configured.

    This is raised during setup (discovery/configure), NOT while tracking
    envelopes. ``track()`` must not raise - transports log failures instead.

    Attributes:
        transport_name: Name of the transport that failed
        message: Human-readable error description
    """

    def __init__(self, transport_name: str, message: str) -> None:
        self.transport_name = transport_name
        self.message = message
        super().__init__(f"Transport '{transport_name}' failed: {message}")
