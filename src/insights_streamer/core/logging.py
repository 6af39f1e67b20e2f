# src/insights_streamer/core/logging.py
"""Diagnostic logging for insights-streamer.

This is the streamer's own operational log (suppressed records, transport
configuration, failed exports), never the telemetry it ships. It always
goes to stderr: stdout belongs to the console transport and to the CLI's
``normalize`` output, which callers pipe into other tools. The Azure and
OpenTelemetry SDKs log through stdlib logging and are rendered by the
same formatter.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

# SDK loggers pulled in by the azure_monitor transport. Held at WARNING
# or stricter so --verbose shows streamer decisions, not HTTP traffic.
_NOISY_LOGGERS: tuple[str, ...] = (
    "azure",
    "azure.core",
    "azure.core.pipeline",
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.monitor",
    "urllib3",
    "urllib3.connectionpool",
    "opentelemetry",
    "opentelemetry.sdk",
)


def _remove_internal_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Drop ProcessorFormatter bookkeeping keys before rendering."""
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
) -> None:
    """Set up the streamer's diagnostic log on stderr.

    Called by the CLI callback (--verbose, --json-logs) and by tests.
    Safe to call repeatedly: the root handler is replaced each time and
    loggers are not cached.

    Args:
        json_output: One JSON object per line (for log shippers) instead
            of plain key=value text
        level: Root level name; DEBUG also shows suppressed records
    """
    log_level = getattr(logging, level.upper())

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        final_processors: list[Any] = [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [
            _remove_internal_fields,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = []
    root.addHandler(handler)
    root.setLevel(log_level)

    # Never make noisy loggers less restrictive than the root level.
    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)
