"""Shared constants for the probemap metrics subsystem."""

from __future__ import annotations

SCHEMA_VERSION = "v1"

TICK_SCHEMA = f"probemap.metrics.{SCHEMA_VERSION}"
PROBE_HISTOGRAM_SCHEMA = f"probemap.probe_histogram.{SCHEMA_VERSION}"
CLUSTER_HISTOGRAM_SCHEMA = f"probemap.cluster_histogram.{SCHEMA_VERSION}"

__all__ = [
    "SCHEMA_VERSION",
    "TICK_SCHEMA",
    "PROBE_HISTOGRAM_SCHEMA",
    "CLUSTER_HISTOGRAM_SCHEMA",
]
