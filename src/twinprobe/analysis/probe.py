"""Probe-path tracing utilities for open-addressing tables."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from twinprobe.core.table import OpenAddressingTable

ProbeTrace = Dict[str, Any]


def _json_friendly(value: Any) -> Any:
    """Return a JSON-serialisable representation of ``value``."""

    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return repr(value)


def _occupied_step(step: Dict[str, Any], occupant: Any, key: Any) -> bool:
    matches = occupant.key == key
    step.update(
        {
            "state": "occupied",
            "occupant_key": repr(occupant.key),
            "frequency": occupant.frequency,
            "probe_count": occupant.probe_count,
            "matches": matches,
        }
    )
    return matches


def _walk(table: OpenAddressingTable, key: Any, on_empty: str, on_match: str) -> ProbeTrace:
    key_hash = hash(key)
    strategy = table.strategy
    path: List[Dict[str, Any]] = []
    terminal = "exhausted"
    for attempt, idx in table.probe_indices(key_hash):
        step: Dict[str, Any] = {
            "step": attempt,
            "slot": idx,
            "offset": strategy.offset(key_hash, attempt),
        }
        slot = table._slots[idx]  # pylint: disable=protected-access
        if slot is None:
            step["state"] = "empty"
            path.append(step)
            terminal = on_empty
            break
        if _occupied_step(step, slot, key):
            path.append(step)
            terminal = on_match
            break
        path.append(step)
    trace: ProbeTrace = {
        "strategy": strategy.name,
        "key": _json_friendly(key),
        "key_repr": repr(key),
        "key_hash": key_hash,
        "h1": table.primary_index(key_hash),
        "terminal": terminal,
        "capacity": table.capacity,
        "path": path,
    }
    step_size = getattr(strategy, "step", None)
    if callable(step_size):
        trace["h2"] = step_size(key_hash)
    return trace


def trace_probe_search(table: OpenAddressingTable, key: Any) -> ProbeTrace:
    trace = _walk(table, key, on_empty="empty", on_match="match")
    trace["operation"] = "search"
    trace["found"] = trace["terminal"] == "match"
    return trace


def trace_probe_insert(table: OpenAddressingTable, key: Any) -> ProbeTrace:
    """Trace where ``key`` would land without modifying ``table``."""

    trace = _walk(table, key, on_empty="insert", on_match="duplicate")
    if trace["terminal"] == "exhausted":
        trace["terminal"] = "table-full"
    path = trace["path"]
    if path:
        last = path[-1]
        if trace["terminal"] == "insert":
            last["action"] = "insert"
        elif trace["terminal"] == "duplicate":
            last["action"] = "increment"
    trace["operation"] = "insert"
    trace["found"] = trace["terminal"] == "duplicate"
    trace["probes"] = len(path) if trace["terminal"] == "insert" else 0
    return trace


def format_trace_lines(
    trace: Dict[str, Any],
    *,
    seeds: Optional[Sequence[str]] = None,
    export_path: Optional[Union[str, Path]] = None,
) -> List[str]:
    """Return a human-friendly rendering of a probe trace."""

    lines: List[str] = []
    strategy = trace.get("strategy", "?")
    operation = trace.get("operation", "?")
    key_repr = trace.get("key_repr", "?")
    lines.append(f"Probe trace [{strategy}] {operation.upper()} key={key_repr}")
    lines.append(f"Found: {trace.get('found')} | Terminal: {trace.get('terminal')}")
    header = f"Capacity: {trace.get('capacity')} | h1: {trace.get('h1')}"
    if "h2" in trace:
        header += f" | h2: {trace['h2']}"
    lines.append(header)
    if seeds:
        lines.append("Seed keys: " + ", ".join(seeds))
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
            for key in ("slot", "offset", "state", "action", "matches", "occupant_key"):
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
    "ProbeTrace",
    "format_trace_lines",
    "trace_probe_insert",
    "trace_probe_search",
]
