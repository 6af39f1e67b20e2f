"""
insights-streamer: structured log records adapted for fixed-schema telemetry sinks.

Flattens nested records, coerces their values into sink-safe scalars, maps
named log levels onto sink severities, and ships the resulting trace,
request or exception envelopes to an Application Insights style transport.
"""

__version__ = "0.1.0"
