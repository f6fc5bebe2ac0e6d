"""Metrics helpers for probemap."""

from .constants import CLUSTER_HISTOGRAM_SCHEMA, PROBE_HISTOGRAM_SCHEMA, TICK_SCHEMA
from .core import (
    Metrics,
    MetricsSink,
    collect_cluster_histogram,
    collect_probe_histogram,
    histogram_payload,
    sample_metrics,
)

__all__ = [
    "Metrics",
    "MetricsSink",
    "sample_metrics",
    "collect_probe_histogram",
    "collect_cluster_histogram",
    "histogram_payload",
    "TICK_SCHEMA",
    "PROBE_HISTOGRAM_SCHEMA",
    "CLUSTER_HISTOGRAM_SCHEMA",
]
