"""Probe-path tracing utilities for LinearProbingMap."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from jsonschema import Draft202012Validator

from probemap.contracts.error import BadInputError
from probemap.core.maps import _EMPTY, LinearProbingMap, ProbingConfig

ProbeTrace = Dict[str, Any]

TRACE_SCHEMA = "probemap.trace.v1"


def _json_friendly(value: Any) -> Any:
    """Return a JSON-serialisable representation of ``value``."""

    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return repr(value)


def _base_trace(operation: str, key: Any, capacity: int, home: Optional[int]) -> ProbeTrace:
    return {
        "schema": TRACE_SCHEMA,
        "operation": operation,
        "key_repr": repr(key),
        "found": False,
        "terminal": "null-key",
        "capacity": capacity,
        "home_slot": home,
        "path": [],
    }


def _occupied_step(map_obj: LinearProbingMap, step: int, idx: int, key: Any) -> Dict[str, Any]:
    occupant = map_obj._keys[idx]  # pylint: disable=protected-access
    ideal = map_obj._hash(occupant)  # pylint: disable=protected-access
    return {
        "step": step,
        "slot": idx,
        "state": "occupied",
        "key_repr": repr(occupant),
        "ideal_slot": ideal,
        "probe_distance": map_obj._probe_distance(ideal, idx),  # pylint: disable=protected-access
        "matches": occupant is key or occupant == key,
    }


def _walk(map_obj: LinearProbingMap, key: Any, trace: ProbeTrace, *, hit: str, miss: str) -> None:
    """Follow the probe sequence for ``key`` and record every visited slot."""

    cap = map_obj.capacity
    idx = trace["home_slot"]
    path: List[Dict[str, Any]] = trace["path"]
    trace["terminal"] = "exhausted"
    for step in range(cap):
        if map_obj._keys[idx] is _EMPTY:  # pylint: disable=protected-access
            path.append({"step": step, "slot": idx, "state": "empty", "action": miss})
            trace["terminal"] = "empty" if miss == "stop" else miss
            return
        entry = _occupied_step(map_obj, step, idx, key)
        if entry["matches"]:
            entry["action"] = hit
            path.append(entry)
            trace["found"] = True
            trace["terminal"] = "match" if hit == "stop" else hit
            return
        entry["action"] = "advance"
        path.append(entry)
        idx = (idx + 1) % cap


def trace_probe_get(map_obj: LinearProbingMap, key: Any) -> ProbeTrace:
    if key is None:
        return _base_trace("get", key, map_obj.capacity, None)
    trace = _base_trace("get", key, map_obj.capacity, map_obj._hash(key))  # pylint: disable=protected-access
    _walk(map_obj, key, trace, hit="stop", miss="stop")
    return trace


def _after_resize(map_obj: LinearProbingMap) -> tuple[LinearProbingMap, bool]:
    """Return a scratch map laid out as the live one will be once ``put`` runs its resize check."""

    cfg = map_obj.cfg
    cap = map_obj.capacity
    relation = len(map_obj) / cap
    if relation > cfg.max_load:
        target = cap * 2
    elif relation < cfg.min_load and cap // 2 >= map_obj.start_capacity:
        target = cap // 2
    else:
        return map_obj, False
    scratch_cfg = ProbingConfig(
        default_capacity=cfg.default_capacity,
        max_load=cfg.max_load,
        min_load=cfg.min_load,
    )
    scratch = LinearProbingMap(target, scratch_cfg)
    scratch.put_all(map_obj.items())
    return scratch, True


def trace_probe_put(map_obj: LinearProbingMap, key: Any, value: Any) -> ProbeTrace:
    if key is None:
        trace = _base_trace("put", key, map_obj.capacity, None)
        trace["value_repr"] = _json_friendly(value)
        trace["resized"] = False
        return trace
    target, resized = _after_resize(map_obj)
    trace = _base_trace("put", key, target.capacity, target._hash(key))  # pylint: disable=protected-access
    trace["value_repr"] = _json_friendly(value)
    trace["resized"] = resized
    _walk(target, key, trace, hit="update", miss="insert")
    return trace


def trace_probe_remove(map_obj: LinearProbingMap, key: Any) -> ProbeTrace:
    """Describe the cluster ``remove(key)`` would evict and reinsert."""

    if key is None:
        return _base_trace("remove", key, map_obj.capacity, None)
    cap = map_obj.capacity
    home = map_obj._hash(key)  # pylint: disable=protected-access
    trace = _base_trace("remove", key, cap, home)
    path: List[Dict[str, Any]] = trace["path"]
    if map_obj._keys[home] is _EMPTY:  # pylint: disable=protected-access
        path.append({"step": 0, "slot": home, "state": "empty", "action": "stop"})
        trace["terminal"] = "empty-home"
        return trace
    idx = home
    for step in range(cap):
        if map_obj._keys[idx] is _EMPTY:  # pylint: disable=protected-access
            path.append({"step": step, "slot": idx, "state": "empty", "action": "stop"})
            break
        entry = _occupied_step(map_obj, step, idx, key)
        entry["action"] = "remove" if entry["matches"] else "reinsert"
        if entry["matches"]:
            trace["found"] = True
        path.append(entry)
        idx = (idx + 1) % cap
    trace["terminal"] = "rehash"
    trace["cluster_len"] = sum(1 for item in path if item["state"] == "occupied")
    return trace


def _load_trace_schema() -> Dict[str, Any]:
    schema_resource = resources.files("probemap.contracts") / "trace_schema.json"
    with schema_resource.open(encoding="utf-8") as stream:
        return json.load(stream)


def validate_trace(trace: ProbeTrace) -> None:
    """Check ``trace`` against the bundled schema; raise ``BadInputError`` on violations."""

    validator = Draft202012Validator(_load_trace_schema())
    errors = sorted(validator.iter_errors(trace), key=lambda err: list(err.path))
    if errors:
        details = "; ".join(f"{err.message} @ {list(err.path)}" for err in errors)
        raise BadInputError(f"Invalid probe trace: {details}")


def format_trace_lines(
    trace: Dict[str, Any],
    *,
    seeds: Optional[Sequence[str]] = None,
    export_path: Optional[Union[str, Path]] = None,
) -> List[str]:
    """Return a human-friendly rendering of a probe trace."""

    lines: List[str] = []
    operation = trace.get("operation", "?")
    key_repr = trace.get("key_repr", "?")
    lines.append(f"Probe trace {operation.upper()} key={key_repr}")
    lines.append(f"Found: {trace.get('found')} | Terminal: {trace.get('terminal')}")
    capacity_line = f"Capacity: {trace.get('capacity')} | Home slot: {trace.get('home_slot')}"
    if trace.get("resized"):
        capacity_line += " (after resize)"
    lines.append(capacity_line)
    if "cluster_len" in trace:
        lines.append(f"Cluster length: {trace['cluster_len']}")
    if seeds:
        lines.append("Seed entries: " + ", ".join(seeds))
    lines.append("Steps:")
    path = trace.get("path")
    if not isinstance(path, list) or not path:
        lines.append("  (no path recorded)")
    else:
        for item in path:
            if not isinstance(item, dict):
                lines.append(f"  {item!r}")
                continue
            attrs: List[str] = []
            for key in ("slot", "state", "action", "ideal_slot", "probe_distance", "matches", "key_repr"):
                if key in item and item[key] is not None:
                    value = item[key]
                    if isinstance(value, bool):
                        value = str(value).lower()
                    attrs.append(f"{key}={value}")
            lines.append(f"  Step {item.get('step', '?')}: " + ", ".join(attrs))
    if export_path:
        lines.append(f"Trace JSON written to: {export_path}")
    return lines


__all__ = [
    "TRACE_SCHEMA",
    "trace_probe_get",
    "trace_probe_put",
    "trace_probe_remove",
    "validate_trace",
    "format_trace_lines",
]
