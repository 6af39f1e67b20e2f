# src/insights_streamer/streamer/dispatcher.py
"""Generic dispatcher wiring a normalizer to per-level drains.

The normalizer is injected rather than inherited: Streamer knows nothing
about flattening or envelope shapes, only that normalize() returns an
envelope or None.
"""

from collections.abc import Mapping
from typing import Any

import structlog

from insights_streamer.normalization.envelope import SEVERITY_FIELD
from insights_streamer.streamer.drains import DrainRouter
from insights_streamer.streamer.protocols import Drain, NormalizerProtocol, TransportProtocol

logger = structlog.get_logger(__name__)


class Streamer:
    """Routes records through a normalizer to the transport.

    Thread Safety:
        Holds no mutable state of its own. Safe to call from many threads
        as long as the transport is; the built-in transports assume
        single-threaded access.

    Example:
        >>> streamer = create_streamer(RuntimeStreamerConfig.default())
        >>> streamer.log("error", {"slug": "boom", "err": exc})
        >>> streamer.close()
    """

    def __init__(
        self,
        normalizer: NormalizerProtocol,
        router: DrainRouter,
        transport: TransportProtocol | None = None,
    ) -> None:
        self._normalizer = normalizer
        self._router = router
        self._transport = transport

    @property
    def router(self) -> DrainRouter:
        return self._router

    def handle(self, drain: Drain, record: Mapping[str, Any]) -> Any:
        """Normalize ``record`` and hand the envelope to ``drain``.

        Returns:
            Whatever the drain returns, or None when the record is suppressed
        """
        envelope = self._normalizer.normalize(record)
        if envelope is None:
            logger.debug("Record suppressed by level gate", severity=record.get(SEVERITY_FIELD))
            return None
        return drain(envelope, envelope.telemetry_type)

    def log(self, level: str, record: Mapping[str, Any]) -> Any:
        """Dispatch ``record`` at ``level`` through the matching drain.

        The record's own ``severity`` wins; ``level`` is stamped on a copy
        only when the record has none.
        """
        if SEVERITY_FIELD not in record:
            record = {**record, SEVERITY_FIELD: level}
        return self.handle(self._router.drain_for(level), record)

    def flush(self) -> None:
        """Flush the transport, if one is attached."""
        if self._transport is not None:
            self._transport.flush()

    def close(self) -> None:
        """Flush and close the transport. Idempotent."""
        if self._transport is not None:
            self._transport.flush()
            self._transport.close()
