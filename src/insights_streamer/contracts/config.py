"""Runtime configuration consumed by the pipeline.

``StreamerSettings`` (pydantic, in core.config) is what users write;
``RuntimeStreamerConfig`` is what the pipeline reads. The runtime config is
built exactly once at startup and never mutated, so it can be shared by
every call site without locking.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from insights_streamer.contracts.levels import LevelVocabulary

if TYPE_CHECKING:
    from insights_streamer.core.config import StreamerSettings


@dataclass(frozen=True, slots=True)
class TransportConfig:
    """Configuration for the transport that receives envelopes.

    Example YAML that produces a TransportConfig:
        transport:
          name: azure_monitor
          options:
            batch_size: 50
    """

    name: str
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate transport configuration."""
        if not self.name:
            raise ValueError("transport name cannot be empty")


def resolve_min_level(min_level: int | str, vocabulary: LevelVocabulary) -> int:
    """Resolve a minimum level setting to an ordinal.

    Accepts an ordinal, a level name, or a string of digits (as read from
    an environment variable). Unknown names resolve to 0, matching the
    gate's treatment of unknown record levels.
    """
    if isinstance(min_level, bool):
        raise TypeError("min_level must be an int or a level name, got bool")
    if isinstance(min_level, int):
        return min_level
    stripped = min_level.strip()
    if stripped.lstrip("-").isdigit():
        return int(stripped)
    return vocabulary.ordinal(stripped.lower())


@dataclass(frozen=True, slots=True)
class RuntimeStreamerConfig:
    """Immutable pipeline configuration.

    Field Origins (all from StreamerSettings unless noted):
        - vocabulary: settings.levels
        - min_ordinal: settings.min_level, resolved against the vocabulary
        - separator / deep: flattening parameters
        - instrumentation_key: settings.instrumentation_key, falling back to
          APPINSIGHTS_INSTRUMENTATIONKEY from the environment
        - common_properties: APPINSIGHTS_* environment variables, overridden
          by settings.common_properties; exposed read-only
        - transport: settings.transport
    """

    vocabulary: LevelVocabulary
    min_ordinal: int
    separator: str
    deep: bool
    instrumentation_key: str | None
    common_properties: Mapping[str, str]
    transport: TransportConfig

    @classmethod
    def default(cls) -> RuntimeStreamerConfig:
        """Default configuration: everything passes, console transport."""
        return cls(
            vocabulary=LevelVocabulary(),
            min_ordinal=0,
            separator="/",
            deep=True,
            instrumentation_key=None,
            common_properties=MappingProxyType({}),
            transport=TransportConfig(name="console"),
        )

    @classmethod
    def from_settings(
        cls,
        settings: StreamerSettings,
        environ: Mapping[str, str] | None = None,
    ) -> RuntimeStreamerConfig:
        """Factory from StreamerSettings config model.

        Args:
            settings: Validated pydantic settings model
            environ: Environment to read APPINSIGHTS_* variables from
                (defaults to os.environ)

        Returns:
            RuntimeStreamerConfig with resolved values
        """
        from insights_streamer.core.config import (
            INSTRUMENTATION_KEY_VARIABLE,
            collect_environment_properties,
        )

        env = os.environ if environ is None else environ
        vocabulary = LevelVocabulary(tuple(settings.levels))

        properties = collect_environment_properties(env)
        properties.update(settings.common_properties)

        instrumentation_key = settings.instrumentation_key
        if instrumentation_key is None:
            instrumentation_key = env.get(INSTRUMENTATION_KEY_VARIABLE)

        return cls(
            vocabulary=vocabulary,
            min_ordinal=resolve_min_level(settings.min_level, vocabulary),
            separator=settings.separator,
            deep=settings.deep,
            instrumentation_key=instrumentation_key,
            common_properties=MappingProxyType(properties),
            transport=TransportConfig(
                name=settings.transport.name,
                options=MappingProxyType(dict(settings.transport.options)),
            ),
        )
