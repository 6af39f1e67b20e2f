"""Configuration schema and loading for insights-streamer.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen after construction; the pipeline reads the derived
RuntimeStreamerConfig (contracts.config), built once at startup.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from insights_streamer.contracts.levels import DEFAULT_LEVELS

# Environment namespace whose variables become global telemetry properties
ENVIRONMENT_PROPERTY_PREFIX = "APPINSIGHTS"

# The one variable under the namespace that is a credential, not a property
INSTRUMENTATION_KEY_VARIABLE = "APPINSIGHTS_INSTRUMENTATIONKEY"

# Prefix for Dynaconf environment overrides (INSIGHTS_STREAMER_MIN_LEVEL=...)
SETTINGS_ENVVAR_PREFIX = "INSIGHTS_STREAMER"


class TransportSettings(BaseModel):
    """Transport selection and transport-specific options."""

    model_config = {"frozen": True}

    name: str = Field(default="console", min_length=1, description="Registered transport name")
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Options passed verbatim to the transport's configure()",
    )


class StreamerSettings(BaseModel):
    """Top-level insights-streamer configuration.

    This is the single source of truth for pipeline configuration.
    All settings are validated and frozen after construction.
    """

    model_config = {"frozen": True}

    levels: list[str] = Field(
        default_factory=lambda: list(DEFAULT_LEVELS),
        description="Ordered level vocabulary, lowest first",
    )
    min_level: int | str = Field(
        default=0,
        description="Minimum level to emit: ordinal position or level name",
    )
    separator: str = Field(default="/", min_length=1, description="Path separator for flattened keys")
    deep: bool = Field(default=True, description="Flatten until no nested records remain")
    instrumentation_key: str | None = Field(
        default=None,
        description="Sink authentication key (falls back to APPINSIGHTS_INSTRUMENTATIONKEY)",
    )
    common_properties: dict[str, str] = Field(
        default_factory=dict,
        description="Global properties attached by the transport to every envelope",
    )
    transport: TransportSettings = Field(
        default_factory=TransportSettings,
        description="Transport receiving the envelopes",
    )

    @field_validator("levels")
    @classmethod
    def validate_levels(cls, v: list[str]) -> list[str]:
        """Vocabulary must be non-empty and free of duplicates."""
        if not v:
            raise ValueError("levels cannot be empty")
        normalized = [level.lower() for level in v]
        if len(set(normalized)) != len(normalized):
            raise ValueError(f"levels contain duplicates: {v}")
        return normalized

    @field_validator("min_level")
    @classmethod
    def validate_min_level(cls, v: int | str) -> int | str:
        """Ordinals must not be negative."""
        if isinstance(v, int) and v < 0:
            raise ValueError(f"min_level must be >= 0, got {v}")
        return v

    @field_validator("common_properties", mode="before")
    @classmethod
    def stringify_properties(cls, v: Any) -> Any:
        """Property values are sent as strings; YAML may hand us numbers."""
        if isinstance(v, Mapping):
            return {str(key): str(value) for key, value in v.items()}
        return v


def collect_environment_properties(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect global properties from APPINSIGHTS_* environment variables.

    Every variable whose first underscore-separated segment is APPINSIGHTS
    becomes a property named by the remainder of its name, e.g.
    APPINSIGHTS_ROLE_NAME -> ROLE_NAME. APPINSIGHTS_INSTRUMENTATIONKEY is
    the authentication key and is never exposed as a property.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        New dict of property name -> value
    """
    env = os.environ if environ is None else environ
    properties: dict[str, str] = {}
    for name, value in env.items():
        segments = name.split("_")
        if segments[0] != ENVIRONMENT_PROPERTY_PREFIX or name == INSTRUMENTATION_KEY_VARIABLE:
            continue
        attribute = "_".join(segments[1:])
        properties[attribute] = value
    return properties


# Regex pattern for ${VAR} or ${VAR:-default} syntax
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values.

    Args:
        config: Configuration dict (may contain nested structures)

    Returns:
        New dict with environment variables expanded
    """

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default = match.group(2)  # None if no default specified
            env_value = os.environ.get(var_name)
            if env_value is not None:
                return env_value
            if default is not None:
                return default
            # No env var and no default - keep original
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


def _lowercase_keys(value: Any) -> Any:
    """Dynaconf upper-cases keys at every level; Pydantic expects lowercase.

    Keys under transport options and common_properties are user data and
    keep their case.
    """
    if not isinstance(value, dict):
        return value
    result: dict[str, Any] = {}
    for key, item in value.items():
        lowered = key.lower()
        if lowered in ("options", "common_properties") and isinstance(item, dict):
            result[lowered] = dict(item)
        else:
            result[lowered] = _lowercase_keys(item)
    return result


def load_settings(config_path: Path | None = None) -> StreamerSettings:
    """Load settings from an optional YAML file with environment overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (INSIGHTS_STREAMER_*) - highest priority
    2. Config file (settings.yaml), when given
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: INSIGHTS_STREAMER_TRANSPORT__NAME for nested keys.

    Args:
        config_path: Path to YAML configuration file, or None for
            environment and defaults only

    Returns:
        Validated StreamerSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Explicit check for file existence (Dynaconf silently accepts missing files)
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix=SETTINGS_ENVVAR_PREFIX,
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Filter out internal Dynaconf settings
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    raw_config = _lowercase_keys(raw_config)

    raw_config = _expand_env_vars(raw_config)

    return StreamerSettings(**raw_config)
