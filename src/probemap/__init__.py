"""Linear-probing hash map with cluster-rehash deletion."""

from . import analysis, contracts, core, metrics
from .core import LinearProbingMap, MapEntry, ProbingConfig

__all__ = [
    "analysis",
    "contracts",
    "core",
    "metrics",
    "LinearProbingMap",
    "MapEntry",
    "ProbingConfig",
]
