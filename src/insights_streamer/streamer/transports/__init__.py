"""Built-in transports.

Available transports:
- ConsoleTransport: Write envelopes to stdout/stderr for debugging
- AzureMonitorTransport: Ship envelopes to Azure Monitor / Application Insights

Plugin registration:
    Transports are registered via the insights_streamer_get_transports hook.
    BuiltinTransportsPlugin registers the transports above.
"""

from insights_streamer.streamer.hookspecs import hookimpl
from insights_streamer.streamer.transports.azure_monitor import AzureMonitorTransport
from insights_streamer.streamer.transports.console import ConsoleTransport


class BuiltinTransportsPlugin:
    """Plugin that registers built-in transports."""

    @hookimpl
    def insights_streamer_get_transports(self) -> list[type]:
        """Return built-in transport classes."""
        return [ConsoleTransport, AzureMonitorTransport]


__all__ = [
    "AzureMonitorTransport",
    "BuiltinTransportsPlugin",
    "ConsoleTransport",
]
