"""Probe analysis helpers for twinprobe tables."""

from .probe import format_trace_lines, trace_probe_insert, trace_probe_search

__all__ = ["trace_probe_search", "trace_probe_insert", "format_trace_lines"]
