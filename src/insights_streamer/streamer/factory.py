# src/insights_streamer/streamer/factory.py
"""Factory functions for building a Streamer from configuration.

This module is the glue between RuntimeStreamerConfig and a ready Streamer:
1. Discovering transport classes via pluggy hooks
2. Instantiating and configuring the selected transport
3. Wiring EnvelopeBuilder, DrainRouter and Streamer together

Usage:
    from insights_streamer.contracts import RuntimeStreamerConfig
    from insights_streamer.core.config import load_settings
    from insights_streamer.streamer.factory import create_streamer

    config = RuntimeStreamerConfig.from_settings(load_settings(path))
    streamer = create_streamer(config)
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import pluggy
import structlog

from insights_streamer.contracts.config import RuntimeStreamerConfig
from insights_streamer.contracts.errors import TransportError
from insights_streamer.normalization.envelope import EnvelopeBuilder
from insights_streamer.streamer.dispatcher import Streamer
from insights_streamer.streamer.drains import DrainRouter
from insights_streamer.streamer.hookspecs import PROJECT_NAME, InsightsStreamerTransportSpec
from insights_streamer.streamer.protocols import TransportProtocol
from insights_streamer.streamer.transports import BuiltinTransportsPlugin

logger = structlog.get_logger(__name__)


def _resolve_transport_name(transport_class: type[TransportProtocol]) -> str:
    """Resolve a transport's name from its class-level ``_name`` or an instance.

    Raises:
        TransportError: If the name is missing or not a non-empty string.
    """
    class_name = transport_class.__name__

    # Prefer class-level _name to avoid unnecessary instantiation.
    if "_name" in transport_class.__dict__:
        name_hint = transport_class.__dict__["_name"]
        if type(name_hint) is str and name_hint != "":
            return name_hint
        raise TransportError(
            class_name,
            f"Transport class attribute _name must be a non-empty string, got {name_hint!r}",
        )

    try:
        instance = transport_class()
    except Exception as e:
        raise TransportError(
            class_name,
            f"Failed to instantiate transport class during discovery: {e}",
        ) from e

    resolved_name = instance.name
    if type(resolved_name) is not str or resolved_name == "":
        raise TransportError(
            class_name,
            f"Transport name must be a non-empty string, got {resolved_name!r}",
        )
    return resolved_name


def discover_transports(
    transport_plugins: Iterable[Any] = (),
) -> dict[str, type[TransportProtocol]]:
    """Discover transports via pluggy hooks.

    Registers the built-in transports plus any extra plugin objects, then
    calls ``insights_streamer_get_transports`` on each to build the
    name -> class registry.

    Raises:
        TransportError: If plugin registration fails, a hook returns
            something other than an iterable of classes, or two transports
            share a name.
    """
    plugin_manager = pluggy.PluginManager(PROJECT_NAME)
    plugin_manager.add_hookspecs(InsightsStreamerTransportSpec)

    for plugin in [BuiltinTransportsPlugin(), *transport_plugins]:
        try:
            plugin_manager.register(plugin)
            plugin_manager.check_pending()
        except (pluggy.PluginValidationError, ValueError) as e:
            # PluginValidationError: hook spec mismatch
            # ValueError: duplicate plugin object or name
            if isinstance(e, pluggy.PluginValidationError):
                plugin_manager.unregister(plugin=plugin)
            raise TransportError(
                "transport_plugins",
                f"Invalid transport plugin {type(plugin).__name__}: {e}",
            ) from e

    registry: dict[str, type[TransportProtocol]] = {}
    for hook_impl in plugin_manager.hook.insights_streamer_get_transports.get_hookimpls():
        plugin_name = type(hook_impl.plugin).__name__
        try:
            transports = hook_impl.function()
        except Exception as e:
            raise TransportError(
                "transport_plugins",
                f"Transport plugin {plugin_name} failed in insights_streamer_get_transports: {e}",
            ) from e

        if transports is None or type(transports) in (str, bytes):
            raise TransportError(
                "transport_plugins",
                f"insights_streamer_get_transports in plugin {plugin_name} returned "
                f"{type(transports).__name__}; expected iterable of transport classes",
            )
        try:
            transport_iter = iter(transports)
        except TypeError as e:
            raise TransportError(
                "transport_plugins",
                f"insights_streamer_get_transports in plugin {plugin_name} returned "
                f"{type(transports).__name__}; expected iterable of transport classes",
            ) from e

        for transport_class in transport_iter:
            transport_name = _resolve_transport_name(transport_class)
            if transport_name in registry:
                existing = registry[transport_name].__name__
                raise TransportError(
                    transport_name,
                    f"Duplicate transport name '{transport_name}' discovered: {existing} and {transport_class.__name__}",
                )
            registry[transport_name] = transport_class

    return registry


def create_transport(
    config: RuntimeStreamerConfig,
    *,
    transport_plugins: Iterable[Any] = (),
) -> TransportProtocol:
    """Instantiate and configure the transport named in ``config``.

    The runtime config's common properties and instrumentation key are
    added to the transport options; explicit options win.

    Raises:
        TransportError: If the transport is unknown or rejects its options.
    """
    registry = discover_transports(transport_plugins)
    try:
        transport_class = registry[config.transport.name]
    except KeyError:
        available = sorted(registry.keys())
        raise TransportError(
            config.transport.name,
            f"Unknown transport. Available transports: {available}",
        ) from None

    options: dict[str, Any] = {
        "common_properties": dict(config.common_properties),
        "instrumentation_key": config.instrumentation_key,
        **config.transport.options,
    }
    transport = transport_class()
    transport.configure(options)
    logger.debug(
        "transport_configured",
        transport=config.transport.name,
        options_keys=sorted(config.transport.options.keys()),
    )
    return transport


def create_streamer(
    config: RuntimeStreamerConfig,
    *,
    transport: TransportProtocol | None = None,
    transport_plugins: Iterable[Any] = (),
) -> Streamer:
    """Build a Streamer from runtime configuration.

    Args:
        config: Runtime configuration, built once at startup
        transport: Pre-built transport; when None, the configured one is
            discovered and configured
        transport_plugins: Extra plugin objects providing
            ``insights_streamer_get_transports`` hooks

    Returns:
        Streamer with every level's drain bound to ``transport.track``
    """
    if transport is None:
        transport = create_transport(config, transport_plugins=transport_plugins)

    router = DrainRouter(config.vocabulary, transport.track)
    return Streamer(EnvelopeBuilder(config), router, transport)
