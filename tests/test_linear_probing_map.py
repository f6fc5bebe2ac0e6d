from __future__ import annotations

import logging

import pytest

from probemap.contracts.error import CapacityExhaustedError, InvariantError
from probemap.core.maps import DEFAULT_CAPACITY, LinearProbingMap, MapEntry, ProbingConfig
from tests.util.keys import FixedHashKey, assert_cluster_integrity, slot_of


def test_default_scenario_remove_then_grow() -> None:
    m = LinearProbingMap()
    assert m.capacity == DEFAULT_CAPACITY == 32
    for i in range(20):
        assert m.put(i, f"v{i}") is None
    assert len(m) == 20
    assert all(m.get(i) == f"v{i}" for i in range(20))
    # The 18th put saw 17/32 > 0.5 and doubled the table.
    assert m.capacity == 64

    assert m.remove(5) == "v5"
    assert m.get(5) is None
    assert m.size() == 19
    for i in range(20):
        if i != 5:
            assert m.get(i) == f"v{i}"

    before = m.capacity
    for i in range(100, 120):
        m.put(i, f"v{i}")
    assert m.capacity == before * 2
    assert len(m) == 39
    expected = {i: f"v{i}" for i in list(range(20)) + list(range(100, 120)) if i != 5}
    assert all(m.get(k) == v for k, v in expected.items())


@pytest.mark.parametrize("capacity", [0, -1, -64])
def test_non_positive_capacity_rejected(capacity: int) -> None:
    with pytest.raises(ValueError, match="Illegal capacity"):
        LinearProbingMap(capacity)


def test_small_capacity_raised_to_floor() -> None:
    m = LinearProbingMap(5)
    assert m.capacity == 32
    assert m.start_capacity == 32


def test_large_capacity_becomes_start_capacity() -> None:
    m = LinearProbingMap(100)
    assert m.capacity == 100
    assert m.start_capacity == 100
    m.put("a", 1)
    assert m.capacity == 100


def test_overwrite_returns_previous_value() -> None:
    m = LinearProbingMap()
    assert m.put("k", 1) is None
    assert m.put("k", 2) == 1
    assert m.get("k") == 2
    assert len(m) == 1


def test_none_key_is_a_no_op() -> None:
    m = LinearProbingMap()
    m.put("a", 1)
    assert m.put(None, "x") is None
    assert len(m) == 1
    assert m.get(None) is None
    assert m.remove(None) is None
    assert m.contains_key(None) is False
    assert None not in m


def test_none_values_are_stored() -> None:
    m = LinearProbingMap()
    m.put("a", None)
    assert m.contains_key("a")
    assert m.contains_value(None)
    assert len(m) == 1
    assert m.put("a", 3) is None
    assert m.get("a") == 3


def test_absent_key_returns_none() -> None:
    m = LinearProbingMap()
    m.put("present", 1)
    assert m.get("missing") is None
    assert m.remove("missing") is None
    assert len(m) == 1


def test_most_negative_hash_maps_into_range() -> None:
    key = FixedHashKey("min", -(2**63))
    m = LinearProbingMap()
    assert 0 <= m._hash(key) < m.capacity  # pylint: disable=protected-access
    m.put(key, "lowest")
    assert m.get(key) == "lowest"
    assert m.remove(key) == "lowest"


def test_remove_rehashes_whole_cluster() -> None:
    a, b = FixedHashKey("a", 3), FixedHashKey("b", 3)
    c, d = FixedHashKey("c", 4), FixedHashKey("d", 5)
    m = LinearProbingMap()
    for key in (a, b, c, d):
        m.put(key, key.name)
    assert [slot_of(m, k) for k in (a, b, c, d)] == [3, 4, 5, 6]

    assert m.remove(a) == "a"
    assert [slot_of(m, k) for k in (b, c, d)] == [3, 4, 5]
    assert m.get(a) is None
    assert [m.get(k) for k in (b, c, d)] == ["b", "c", "d"]
    assert len(m) == 3
    assert_cluster_integrity(m)


def test_remove_absent_key_in_cluster_keeps_everything() -> None:
    a, b = FixedHashKey("a", 7), FixedHashKey("b", 7)
    ghost = FixedHashKey("ghost", 7)
    m = LinearProbingMap()
    m.put(a, 1)
    m.put(b, 2)
    assert m.remove(ghost) is None
    assert len(m) == 2
    assert m.get(a) == 1 and m.get(b) == 2


def test_cluster_wraps_around_end_of_table(small_config: ProbingConfig) -> None:
    x, y = FixedHashKey("x", 3), FixedHashKey("y", 3)
    m = LinearProbingMap(config=small_config)
    assert m.capacity == 4
    m.put(x, "x")
    m.put(y, "y")
    assert slot_of(m, x) == 3
    assert slot_of(m, y) == 0
    assert m.get(y) == "y"

    assert m.remove(x) == "x"
    assert slot_of(m, y) == 3
    assert m.get(y) == "y"
    assert len(m) == 1
    assert_cluster_integrity(m)


def test_emptied_map_shrinks_back_to_small_floor(small_config: ProbingConfig) -> None:
    m = LinearProbingMap(config=small_config)
    for i in range(5):
        m.put(i, i)
    assert m.capacity == 8
    for i in range(5):
        assert m.remove(i) == i
    assert m.capacity == 8

    m.put("a", 1)
    assert m.capacity == 4
    assert m.get("a") == 1


class _NeverEqual:
    """Key that compares unequal to everything, itself included."""

    def __eq__(self, other: object) -> bool:
        return False

    def __hash__(self) -> int:
        return 9


def test_nan_key_is_found_by_identity() -> None:
    nan = float("nan")
    m = LinearProbingMap()
    assert m.put(nan, "a") is None
    assert m.put(nan, "b") == "a"
    assert len(m) == 1
    assert m.get(nan) == "b"
    assert nan in m
    assert m.remove(nan) == "b"
    assert len(m) == 0
    assert m.get(nan) is None


def test_self_unequal_key_round_trips_and_survives_rehash() -> None:
    odd = _NeverEqual()
    neighbour = FixedHashKey("n", 9)
    m = LinearProbingMap()
    m.put(neighbour, "n")
    m.put(odd, 1)
    assert m.get(odd) == 1
    assert m.put(odd, 2) == 1
    assert len(m) == 2
    assert m.get(_NeverEqual()) is None

    assert m.remove(neighbour) == "n"
    assert m.get(odd) == 2
    assert m.remove(odd) == 2
    assert m.is_empty()


def test_contains_value_matches_nan_by_identity() -> None:
    nan = float("nan")
    m = LinearProbingMap()
    m.put("x", nan)
    assert m.contains_value(nan)
    assert not m.contains_value(float("nan"))


def test_remove_never_resizes() -> None:
    m = LinearProbingMap()
    for i in range(40):
        m.put(i, i)
    grown = m.capacity
    for i in range(38):
        m.remove(i)
    assert m.capacity == grown
    assert len(m) == 2


def test_shrinks_one_step_per_put_down_to_floor() -> None:
    m = LinearProbingMap()
    for i in range(40):
        m.put(i, i)
    assert m.capacity == 128
    for i in range(35):
        m.remove(i)
    assert len(m) == 5

    m.put("a", 1)
    assert m.capacity == 64
    m.put("b", 2)
    assert m.capacity == 32
    m.put("c", 3)
    assert m.capacity == 32
    assert all(m.get(i) == i for i in range(35, 40))
    assert m.get("a") == 1 and m.get("b") == 2 and m.get("c") == 3


def test_full_table_guard_and_capacity_exhausted() -> None:
    cfg = ProbingConfig(default_capacity=4, max_load=1.0)
    m = LinearProbingMap(4, cfg)
    for i in range(4):
        m.put(i, i)
    assert m.capacity == 4
    assert m.get(99) is None
    assert m.contains_key(99) is False
    assert m.remove(99) is None
    assert len(m) == 4

    with pytest.raises(CapacityExhaustedError) as excinfo:
        m.put(99, 99)
    assert isinstance(excinfo.value, InvariantError)
    assert excinfo.value.hint
    assert len(m) == 4
    assert m.get(99) is None


def test_clear_resets_to_start_capacity() -> None:
    m = LinearProbingMap()
    for i in range(50):
        m.put(i, i)
    assert m.capacity > 32
    m.clear()
    assert m.capacity == 32
    assert m.size() == 0
    assert m.is_empty()
    assert all(m.get(i) is None for i in range(50))
    m.clear()
    assert m.is_empty()


def test_clear_logs_capacity_reset(caplog: pytest.LogCaptureFixture) -> None:
    m = LinearProbingMap()
    for i in range(20):
        m.put(i, i)
    with caplog.at_level(logging.INFO, logger="probemap"):
        m.clear()
    assert "capacity reset 64 -> 32" in caplog.text


def test_put_all_accepts_mappings_maps_and_pairs() -> None:
    src = LinearProbingMap()
    src.put("x", 1)
    m = LinearProbingMap()
    m.put_all({"a": 1, "b": 2})
    m.put_all(src)
    m.put_all([("c", 3), ("c", 4)])
    assert dict(m.items()) == {"a": 1, "b": 2, "x": 1, "c": 4}


def test_views_are_snapshots() -> None:
    m = LinearProbingMap()
    m.put("a", 1)
    m.put("b", 2)
    keys = m.keys()
    values = m.values()
    entries = m.entries()
    m.put("c", 3)
    m.remove("a")

    assert keys == {"a", "b"}
    assert sorted(values) == [1, 2]
    assert {(e.key, e.value) for e in entries} == {("a", 1), ("b", 2)}


def test_entry_value_changes_do_not_write_back() -> None:
    m = LinearProbingMap()
    m.put("a", 1)
    (entry,) = m.entries()
    assert isinstance(entry, MapEntry)
    entry.value = 100
    assert m.get("a") == 1


def test_contains_value_scans_by_equality() -> None:
    m = LinearProbingMap()
    m.put("a", [1, 2])
    m.put("b", [1, 2])
    assert m.contains_value([1, 2])
    assert not m.contains_value([3])
    assert m.values().count([1, 2]) == 2


def test_dunder_protocols() -> None:
    m = LinearProbingMap()
    m.put("a", 1)
    m.put("b", 2)
    assert "a" in m
    assert sorted(m) == ["a", "b"]
    assert m == {"a": 1, "b": 2}
    assert m != {"a": 1}
    other = LinearProbingMap(64)
    other.put_all({"b": 2, "a": 1})
    assert m == other
    assert repr(LinearProbingMap()) == "LinearProbingMap({})"
    with pytest.raises(TypeError):
        hash(m)


def test_resize_logs_and_notifies() -> None:
    calls: list[tuple[int, int, int]] = []
    m = LinearProbingMap(config=ProbingConfig(on_resize=lambda old, new, size: calls.append((old, new, size))))
    for i in range(18):
        m.put(i, i)
    assert calls == [(32, 64, 17)]


def test_cluster_rehash_callback_reports_length() -> None:
    calls: list[tuple[int, int]] = []
    m = LinearProbingMap(config=ProbingConfig(on_cluster_rehash=lambda slot, n: calls.append((slot, n))))
    for name in "abc":
        m.put(FixedHashKey(name, 2), name)
    m.remove(FixedHashKey("b", 2))
    assert calls == [(2, 3)]


def test_watchdog_warns_on_long_probe(caplog: pytest.LogCaptureFixture) -> None:
    m = LinearProbingMap(config=ProbingConfig(probe_length_warn=1))
    with caplog.at_level(logging.WARNING, logger="probemap"):
        for name in "abc":
            m.put(FixedHashKey(name, 0), name)
    messages = [r.getMessage() for r in caplog.records if r.name == "probemap"]
    assert len(messages) == 1
    assert "landed 2 slots from home" in messages[0]


def test_diagnostics_on_known_layout() -> None:
    m = LinearProbingMap()
    assert m.max_cluster_len() == 0
    assert m.avg_probe_distance() == 0.0
    m.put(FixedHashKey("a", 3), 1)
    m.put(FixedHashKey("b", 3), 2)
    m.put(FixedHashKey("c", 10), 3)
    assert m.max_cluster_len() == 2
    assert m.avg_probe_distance() == pytest.approx(1 / 3)
    assert m.load_factor() == pytest.approx(3 / 32)
