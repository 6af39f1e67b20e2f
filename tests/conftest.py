"""Shared test fixtures and helpers.

Test Doubles:
- RecordingTransport: TransportProtocol implementation that keeps every
  tracked envelope in memory

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/normalization/
"""

import os
from collections.abc import Callable
from dataclasses import replace
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from insights_streamer.contracts.config import RuntimeStreamerConfig
from insights_streamer.contracts.enums import TelemetryType
from insights_streamer.contracts.envelopes import Envelope
from insights_streamer.core.logging import configure_logging

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def quiet_logging() -> None:
    """Route structlog to stderr at WARNING so stdout stays free for transports."""
    configure_logging(level="WARNING")


# =============================================================================
# Test Doubles
# =============================================================================


class RecordingTransport:
    """Transport that records envelopes instead of sending them."""

    _name = "recording"

    def __init__(self) -> None:
        self.tracked: list[tuple[Envelope, TelemetryType]] = []
        self.config: dict[str, Any] = {}
        self.flush_count = 0
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    def configure(self, config: dict[str, Any]) -> None:
        self.config = dict(config)

    def track(self, envelope: Envelope, telemetry_type: TelemetryType) -> str:
        self.tracked.append((envelope, telemetry_type))
        return "tracked"

    def flush(self) -> None:
        self.flush_count += 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def recording_transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def make_config() -> Callable[..., RuntimeStreamerConfig]:
    """Build a RuntimeStreamerConfig from the defaults with overrides."""

    def _make(**overrides: Any) -> RuntimeStreamerConfig:
        return replace(RuntimeStreamerConfig.default(), **overrides)

    return _make
