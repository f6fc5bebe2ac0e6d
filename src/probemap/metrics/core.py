from __future__ import annotations

from collections import defaultdict
from typing import Any, Callable, Dict, List, Optional

from probemap.core.maps import _EMPTY, LinearProbingMap, cluster_lengths

from .constants import CLUSTER_HISTOGRAM_SCHEMA, PROBE_HISTOGRAM_SCHEMA, TICK_SCHEMA


class Metrics:
    def __init__(self) -> None:
        self.resizes_total = 0
        self.grows_total = 0
        self.shrinks_total = 0
        self.cluster_rehashes_total = 0
        self.rehashed_entries_total = 0
        self.size = 0
        self.capacity = 0
        self.load_factor = 0.0
        self.max_cluster_len = 0
        self.avg_probe_distance = 0.0

    def render(self) -> str:
        lines = [
            "# HELP probemap_resizes_total Table rebuilds (grow + shrink)",
            "# TYPE probemap_resizes_total counter",
            f"probemap_resizes_total {self.resizes_total}",
            "# HELP probemap_grows_total Capacity doublings",
            "# TYPE probemap_grows_total counter",
            f"probemap_grows_total {self.grows_total}",
            "# HELP probemap_shrinks_total Capacity halvings",
            "# TYPE probemap_shrinks_total counter",
            f"probemap_shrinks_total {self.shrinks_total}",
            "# HELP probemap_cluster_rehashes_total Clusters evicted and reinserted by remove",
            "# TYPE probemap_cluster_rehashes_total counter",
            f"probemap_cluster_rehashes_total {self.cluster_rehashes_total}",
            "# HELP probemap_rehashed_entries_total Entries evicted by cluster rehashes",
            "# TYPE probemap_rehashed_entries_total counter",
            f"probemap_rehashed_entries_total {self.rehashed_entries_total}",
            "# HELP probemap_size Live entries",
            "# TYPE probemap_size gauge",
            f"probemap_size {self.size}",
            "# HELP probemap_capacity Slot count",
            "# TYPE probemap_capacity gauge",
            f"probemap_capacity {self.capacity}",
            "# HELP probemap_load_factor Current load factor",
            "# TYPE probemap_load_factor gauge",
            f"probemap_load_factor {self.load_factor:.6f}",
            "# HELP probemap_max_cluster_len Longest run of occupied slots",
            "# TYPE probemap_max_cluster_len gauge",
            f"probemap_max_cluster_len {self.max_cluster_len}",
            "# HELP probemap_avg_probe_distance Mean distance from home slot",
            "# TYPE probemap_avg_probe_distance gauge",
            f"probemap_avg_probe_distance {self.avg_probe_distance:.6f}",
        ]
        return "\n".join(lines) + "\n"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema": TICK_SCHEMA,
            "resizes_total": self.resizes_total,
            "grows_total": self.grows_total,
            "shrinks_total": self.shrinks_total,
            "cluster_rehashes_total": self.cluster_rehashes_total,
            "rehashed_entries_total": self.rehashed_entries_total,
            "size": self.size,
            "capacity": self.capacity,
            "load_factor": self.load_factor,
            "max_cluster_len": self.max_cluster_len,
            "avg_probe_distance": self.avg_probe_distance,
        }


class MetricsSink:
    """Bridge map lifecycle callbacks into Metrics counters and event logs."""

    def __init__(
        self,
        metrics: Optional[Metrics],
        events: Optional[List[Dict[str, Any]]] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.metrics = metrics
        self.events = events
        self.clock = clock or (lambda: 0.0)

    def record_event(self, kind: str, payload: Optional[Dict[str, Any]] = None) -> None:
        if self.events is None:
            return
        event: Dict[str, Any] = {"type": kind, "t": self.clock()}
        if payload:
            event.update(payload)
        self.events.append(event)

    def on_resize(self, old_cap: int, new_cap: int, size: int) -> None:
        if self.metrics:
            self.metrics.resizes_total += 1
            if new_cap > old_cap:
                self.metrics.grows_total += 1
            else:
                self.metrics.shrinks_total += 1
        self.record_event("resize", {"from": old_cap, "to": new_cap, "size": size})

    def on_cluster_rehash(self, home_slot: int, cluster_len: int) -> None:
        if self.metrics:
            self.metrics.cluster_rehashes_total += 1
            self.metrics.rehashed_entries_total += cluster_len
        self.record_event("cluster_rehash", {"slot": home_slot, "length": cluster_len})

    def attach(self, m: LinearProbingMap) -> None:
        m.cfg.on_resize = self.on_resize
        m.cfg.on_cluster_rehash = self.on_cluster_rehash


def sample_metrics(m: LinearProbingMap, metrics: Metrics) -> None:
    metrics.size = m.size()
    metrics.capacity = m.capacity
    metrics.load_factor = m.load_factor()
    metrics.max_cluster_len = m.max_cluster_len()
    metrics.avg_probe_distance = m.avg_probe_distance()


def collect_probe_histogram(m: LinearProbingMap) -> List[List[int]]:
    histogram: Dict[int, int] = defaultdict(int)
    for idx, key in enumerate(m._keys):  # pylint: disable=protected-access
        if key is _EMPTY:
            continue
        home = m._hash(key)  # pylint: disable=protected-access
        histogram[m._probe_distance(home, idx)] += 1  # pylint: disable=protected-access
    return [[distance, count] for distance, count in sorted(histogram.items())]


def collect_cluster_histogram(m: LinearProbingMap) -> List[List[int]]:
    histogram: Dict[int, int] = defaultdict(int)
    for length in cluster_lengths(m):
        histogram[length] += 1
    return [[length, count] for length, count in sorted(histogram.items())]


def histogram_payload(m: LinearProbingMap) -> Dict[str, Any]:
    return {
        "probe": {"schema": PROBE_HISTOGRAM_SCHEMA, "buckets": collect_probe_histogram(m)},
        "cluster": {"schema": CLUSTER_HISTOGRAM_SCHEMA, "buckets": collect_cluster_histogram(m)},
    }


__all__ = [
    "Metrics",
    "MetricsSink",
    "sample_metrics",
    "collect_probe_histogram",
    "collect_cluster_histogram",
    "histogram_payload",
]
