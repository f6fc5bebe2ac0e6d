from .maps import (
    DEFAULT_CAPACITY,
    LinearProbingMap,
    MapEntry,
    ProbingConfig,
    cluster_lengths,
)

__all__ = [
    "DEFAULT_CAPACITY",
    "LinearProbingMap",
    "MapEntry",
    "ProbingConfig",
    "cluster_lengths",
]
