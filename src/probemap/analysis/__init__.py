"""Probe-path analysis helpers for probemap."""

from .probe import (
    TRACE_SCHEMA,
    format_trace_lines,
    trace_probe_get,
    trace_probe_put,
    trace_probe_remove,
    validate_trace,
)

__all__ = [
    "TRACE_SCHEMA",
    "trace_probe_get",
    "trace_probe_put",
    "trace_probe_remove",
    "validate_trace",
    "format_trace_lines",
]
