"""Experiment driver for comparing probe strategies."""

from .runner import (
    DUMP_FILENAMES,
    ExperimentResult,
    TableSummary,
    fill_tables,
    format_summary,
    locate_capacity,
    run_experiment,
    run_experiments,
    target_count,
)

__all__ = [
    "DUMP_FILENAMES",
    "ExperimentResult",
    "TableSummary",
    "fill_tables",
    "format_summary",
    "locate_capacity",
    "run_experiment",
    "run_experiments",
    "target_count",
]
