from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, Union

from probemap.contracts.error import CapacityExhaustedError

logger = logging.getLogger("probemap")

DEFAULT_CAPACITY: int = 32
_HASH_MASK: int = 0x7FFFFFFFFFFFFFFF


class _Empty:
    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return "<empty>"


_EMPTY = _Empty()


@dataclass
class ProbingConfig:
    default_capacity: int = DEFAULT_CAPACITY
    max_load: float = 0.5
    min_load: float = 0.125
    probe_length_warn: Optional[int] = None
    on_resize: Optional[Callable[[int, int, int], None]] = None
    on_cluster_rehash: Optional[Callable[[int, int], None]] = None


@dataclass
class MapEntry:
    """Detached key/value pair; changing ``value`` does not touch the map."""

    key: Any
    value: Any

    def __hash__(self) -> int:
        return hash(self.key)


class LinearProbingMap:
    """Open-addressing hash map with linear probing and cluster-rehash deletion.

    Empty slots hold a private sentinel, so ``None`` is a valid value. Keys set
    to ``None`` are not supported: ``put``/``get``/``remove`` treat them as a
    no-op. Capacity doubles when the pre-insertion density exceeds
    ``max_load`` and halves (never below the start capacity) when it drops
    under ``min_load``.
    """

    __slots__ = ("cfg", "_keys", "_values", "_size", "_cap", "_start_cap")

    def __init__(self, capacity: Optional[int] = None, config: Optional[ProbingConfig] = None) -> None:
        self.cfg = config if config is not None else ProbingConfig()
        floor = self.cfg.default_capacity
        if capacity is None:
            capacity = floor
        if capacity <= 0:
            raise ValueError(f"Illegal capacity: {capacity}")
        if capacity < floor:
            capacity = floor
        self._start_cap = capacity
        self._init_slots(capacity)

    def _init_slots(self, capacity: int) -> None:
        self._keys: List[Any] = [_EMPTY] * capacity
        self._values: List[Any] = [_EMPTY] * capacity
        self._size = 0
        self._cap = capacity

    # ------------------------------------------------------------------
    # addressing
    # ------------------------------------------------------------------
    def _hash(self, key: Any) -> int:
        return (hash(key) & _HASH_MASK) % self._cap

    def _find_slot(self, key: Any) -> Optional[int]:
        """Return the slot holding ``key`` or the first empty slot on its probe path.

        ``None`` means every slot was visited without a match or a gap.
        """

        idx = self._hash(key)
        keys = self._keys
        for _ in range(self._cap):
            k = keys[idx]
            if k is _EMPTY or k is key or k == key:
                return idx
            idx = (idx + 1) % self._cap
        return None

    def _probe_distance(self, home: int, idx: int) -> int:
        return idx - home if idx >= home else (idx + self._cap) - home

    # ------------------------------------------------------------------
    # read API
    # ------------------------------------------------------------------
    @property
    def capacity(self) -> int:
        return self._cap

    @property
    def start_capacity(self) -> int:
        return self._start_cap

    def __len__(self) -> int:
        return self._size

    def size(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self._size == 0

    def load_factor(self) -> float:
        return self._size / self._cap if self._cap else 0.0

    def get(self, key: Any) -> Optional[Any]:
        if key is None:
            return None
        idx = self._find_slot(key)
        if idx is None or self._keys[idx] is _EMPTY:
            return None
        return self._values[idx]

    def contains_key(self, key: Any) -> bool:
        if key is None:
            return False
        idx = self._find_slot(key)
        return idx is not None and self._keys[idx] is not _EMPTY

    def __contains__(self, key: object) -> bool:
        return self.contains_key(key)

    def contains_value(self, value: Any) -> bool:
        for k, v in zip(self._keys, self._values):
            if k is not _EMPTY and (v is value or v == value):
                return True
        return False

    # ------------------------------------------------------------------
    # mutation
    # ------------------------------------------------------------------
    def put(self, key: Any, value: Any) -> Optional[Any]:
        if key is None:
            return None
        self._maybe_resize()
        return self._insert(key, value)

    def _insert(self, key: Any, value: Any) -> Optional[Any]:
        idx = self._find_slot(key)
        if idx is None:
            logger.warning("Probe sequence exhausted (capacity=%d, size=%d)", self._cap, self._size)
            raise CapacityExhaustedError(
                f"No free slot for key {key!r} (capacity={self._cap}, size={self._size})",
                hint="max_load must stay below 1.0 so the table can grow before it fills",
            )
        if self._keys[idx] is _EMPTY:
            self._keys[idx] = key
            self._values[idx] = value
            self._size += 1
            self._watch_probe_length(key, idx)
            return None
        old = self._values[idx]
        self._values[idx] = value
        return old

    def _watch_probe_length(self, key: Any, idx: int) -> None:
        limit = self.cfg.probe_length_warn
        if limit is None:
            return
        dist = self._probe_distance(self._hash(key), idx)
        if dist > limit:
            logger.warning(
                "Long probe sequence: key=%r landed %d slots from home (limit=%d, load=%.3f)",
                key,
                dist,
                limit,
                self.load_factor(),
            )

    def remove(self, key: Any) -> Optional[Any]:
        if key is None:
            return None
        home = self._hash(key)
        if self._keys[home] is _EMPTY:
            return None

        # Evict the whole cluster starting at the home slot.
        cluster: List[Tuple[Any, Any]] = []
        idx = home
        for _ in range(self._cap):
            k = self._keys[idx]
            if k is _EMPTY:
                break
            cluster.append((k, self._values[idx]))
            self._keys[idx] = _EMPTY
            self._values[idx] = _EMPTY
            idx = (idx + 1) % self._cap
        self._size -= len(cluster)

        removed: Optional[Any] = None
        for k, v in cluster:
            if k is key or k == key:
                removed = v
            else:
                self._insert(k, v)
        logger.debug("Rehashed cluster at slot %d (length=%d)", home, len(cluster))
        if self.cfg.on_cluster_rehash:
            try:
                self.cfg.on_cluster_rehash(home, len(cluster))
            except Exception:  # pragma: no cover - defensive
                logger.exception("on_cluster_rehash callback failed")
        return removed

    def put_all(self, source: Union[Mapping[Any, Any], "LinearProbingMap", Iterable[Tuple[Any, Any]]]) -> None:
        pairs: Iterable[Tuple[Any, Any]]
        if isinstance(source, (LinearProbingMap, Mapping)):
            pairs = source.items()
        else:
            pairs = source
        for key, value in pairs:
            self.put(key, value)

    def clear(self) -> None:
        old_cap = self._cap
        self._init_slots(self._start_cap)
        if old_cap != self._start_cap:
            logger.info("Map cleared; capacity reset %d -> %d", old_cap, self._start_cap)

    # ------------------------------------------------------------------
    # resizing
    # ------------------------------------------------------------------
    def _maybe_resize(self) -> None:
        relation = self._size / self._cap
        if relation > self.cfg.max_load:
            self._resize(self._cap * 2)
        elif relation < self.cfg.min_load and self._cap // 2 >= self._start_cap:
            self._resize(self._cap // 2)

    def _resize(self, new_cap: int) -> None:
        old_cap = self._cap
        temp_cfg = ProbingConfig(
            default_capacity=self.cfg.default_capacity,
            max_load=self.cfg.max_load,
            min_load=self.cfg.min_load,
        )
        temp = LinearProbingMap(new_cap, temp_cfg)
        temp.put_all(self.items())
        self._keys = temp._keys
        self._values = temp._values
        self._size = temp._size
        self._cap = temp._cap
        logger.debug("Resized map %d -> %d (size=%d)", old_cap, self._cap, self._size)
        if self.cfg.on_resize:
            try:
                self.cfg.on_resize(old_cap, self._cap, self._size)
            except Exception:  # pragma: no cover - defensive
                logger.exception("on_resize callback failed")

    # ------------------------------------------------------------------
    # views
    # ------------------------------------------------------------------
    def items(self) -> Iterator[Tuple[Any, Any]]:
        for k, v in zip(self._keys, self._values):
            if k is not _EMPTY:
                yield k, v

    def __iter__(self) -> Iterator[Any]:
        for k in self._keys:
            if k is not _EMPTY:
                yield k

    def keys(self) -> Set[Any]:
        return {k for k in self._keys if k is not _EMPTY}

    def values(self) -> List[Any]:
        return [v for _, v in self.items()]

    def entries(self) -> Set[MapEntry]:
        return {MapEntry(k, v) for k, v in self.items()}

    def __eq__(self, other: object) -> bool:
        if isinstance(other, LinearProbingMap):
            if len(other) != self._size:
                return False
            return all(other.contains_key(k) and other.get(k) == v for k, v in self.items())
        if isinstance(other, Mapping):
            if len(other) != self._size:
                return False
            return all(k in other and other[k] == v for k, v in self.items())
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"LinearProbingMap({{{body}}})"

    # ------------------------------------------------------------------
    # diagnostics
    # ------------------------------------------------------------------
    def max_cluster_len(self) -> int:
        return max(cluster_lengths(self), default=0)

    def avg_probe_distance(self) -> float:
        if self._size == 0:
            return 0.0
        total = 0
        for idx, k in enumerate(self._keys):
            if k is not _EMPTY:
                total += self._probe_distance(self._hash(k), idx)
        return total / self._size


def cluster_lengths(m: LinearProbingMap) -> List[int]:
    """Return the length of every maximal run of occupied slots (wrap-aware)."""

    keys = m._keys  # pylint: disable=protected-access
    cap = len(keys)
    if m.size() == 0:
        return []
    if m.size() == cap:
        return [cap]
    start = next(i for i, k in enumerate(keys) if k is _EMPTY)
    lengths: List[int] = []
    run = 0
    for offset in range(1, cap + 1):
        k = keys[(start + offset) % cap]
        if k is _EMPTY:
            if run:
                lengths.append(run)
            run = 0
        else:
            run += 1
    return lengths


__all__ = [
    "DEFAULT_CAPACITY",
    "LinearProbingMap",
    "MapEntry",
    "ProbingConfig",
    "cluster_lengths",
]
