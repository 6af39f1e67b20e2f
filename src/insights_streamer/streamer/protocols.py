# src/insights_streamer/streamer/protocols.py
"""Protocol definitions for normalizers and transports.

The dispatcher depends only on these two seams: a normalizer that turns a
record into an envelope, and a transport that ships envelopes to the sink.
"""

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from insights_streamer.contracts.enums import TelemetryType
    from insights_streamer.contracts.envelopes import Envelope


# A drain receives a built envelope and its telemetry type.
Drain = Callable[["Envelope", "TelemetryType"], Any]


@runtime_checkable
class NormalizerProtocol(Protocol):
    """Strategy turning one record into one envelope (or None to drop it)."""

    def normalize(self, record: Mapping[str, Any]) -> "Envelope | None":
        """Build the envelope for ``record``; must not raise."""
        ...


@runtime_checkable
class TransportProtocol(Protocol):
    """Protocol for telemetry transports.

    Transports ship envelopes to an external sink. They are discovered via
    pluggy hooks and configured from StreamerSettings.transport.

    Lifecycle:
        1. Discovery: insights_streamer_get_transports hook returns classes
        2. Instantiation: the factory creates one instance
        3. Configuration: configure() called with transport options
        4. Operation: track() called for each envelope (must not raise)
        5. Shutdown: flush() then close()

    Error handling:
        - configure() MUST raise TransportError on invalid config
        - track() MUST NOT raise - log errors and continue
        - close() MUST be idempotent - safe to call multiple times
    """

    @property
    def name(self) -> str:
        """Transport name for configuration reference.

            transport:
              name: azure_monitor  # matches this property
        """
        ...

    def configure(self, config: dict[str, Any]) -> None:
        """Configure the transport.

        Called once before any envelope is tracked. The factory adds
        ``common_properties`` and ``instrumentation_key`` from the runtime
        config to the user-supplied options.

        Raises:
            TransportError: If configuration is invalid or incomplete
        """
        ...

    def track(self, envelope: "Envelope", telemetry_type: "TelemetryType") -> Any:
        """Ship one envelope. Fire-and-forget: MUST NOT raise."""
        ...

    def flush(self) -> None:
        """Flush any buffered envelopes to the sink."""
        ...

    def close(self) -> None:
        """Release resources. Idempotent."""
        ...
