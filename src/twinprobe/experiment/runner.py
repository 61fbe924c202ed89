"""Experiment driver comparing linear probing with double hashing.

Both tables receive the same key sequence in the same order until each holds
``ceil(load_factor * capacity)`` unique keys. Capacity is the larger member of
the first twin-prime pair inside the configured range.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from twinprobe.config import AppConfig
from twinprobe.contracts.error import BadInputError, TableFullError
from twinprobe.core.primes import find_twin_prime
from twinprobe.core.table import OpenAddressingTable, ProbeOutcome, new_table
from twinprobe.workloads.sources import SourceSpec, open_source

logger = logging.getLogger("twinprobe")

DUMP_FILENAMES = {"linear": "linear-dump.txt", "double": "double-dump.txt"}
_TAGS = {"linear": "Linear", "double": "Double"}

OutcomeHook = Callable[[OpenAddressingTable, Any, ProbeOutcome], None]


@dataclass
class TableSummary:
    strategy: str
    label: str
    capacity: int
    inserted: int
    duplicates: int
    total_probes: int

    @property
    def avg_probes(self) -> float:
        return self.total_probes / self.inserted if self.inserted else 0.0

    @classmethod
    def from_table(cls, table: OpenAddressingTable) -> TableSummary:
        return cls(
            strategy=table.strategy_name,
            label=table.strategy.label,
            capacity=table.capacity,
            inserted=table.inserted_count,
            duplicates=table.duplicate_count,
            total_probes=table.total_probes,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "strategy": self.strategy,
            "label": self.label,
            "capacity": self.capacity,
            "inserted": self.inserted,
            "duplicates": self.duplicates,
            "total_probes": self.total_probes,
            "avg_probes": round(self.avg_probes, 6),
        }


@dataclass
class ExperimentResult:
    source: str
    load_factor: float
    capacity: int
    target: int
    tables: list[TableSummary]
    exhausted: bool = False
    dumps: list[Path] = field(default_factory=list)
    # per-insert lines, only filled at debug level 2
    inserts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "source": self.source,
            "load_factor": self.load_factor,
            "capacity": self.capacity,
            "target": self.target,
            "exhausted": self.exhausted,
            "tables": [summary.to_dict() for summary in self.tables],
            "dumps": [str(path) for path in self.dumps],
        }
        if self.inserts:
            payload["inserts"] = list(self.inserts)
        return payload


def target_count(load_factor: float, capacity: int) -> int:
    if not 0.0 < load_factor <= 1.0:
        raise BadInputError(f"load factor must be in (0, 1] (got {load_factor})")
    return math.ceil(load_factor * capacity)


def locate_capacity(cfg: AppConfig) -> int:
    lo, hi = cfg.experiment.prime_min, cfg.experiment.prime_max
    capacity = find_twin_prime(lo, hi)
    if capacity is None:
        raise BadInputError(
            f"No twin prime found in [{lo}..{hi}]",
            hint="Widen experiment.prime_min/prime_max",
        )
    logger.info("Twin prime capacity %d selected from [%d..%d]", capacity, lo, hi)
    return capacity


def fill_tables(
    tables: Sequence[OpenAddressingTable],
    keys: Iterable[Any],
    target: int,
    on_outcome: OutcomeHook | None = None,
) -> bool:
    """Feed ``keys`` to every table still below ``target``.

    Returns ``True`` when ``keys`` ran out before all tables reached the target.
    """

    if all(table.inserted_count >= target for table in tables):
        return False
    for key in keys:
        for table in tables:
            if table.inserted_count >= target:
                continue
            outcome = table.insert(key)
            if outcome.table_full:
                raise TableFullError(table.strategy_name, table.capacity, table.inserted_count)
            if on_outcome is not None:
                on_outcome(table, key, outcome)
        if all(table.inserted_count >= target for table in tables):
            return False
    logger.warning(
        "Key source exhausted before reaching %d unique keys (%s)",
        target,
        ", ".join(f"{t.strategy_name}={t.inserted_count}" for t in tables),
    )
    return True


def _verbose_hook(lines: list[str], print_fn: Callable[[str], None] | None) -> OutcomeHook:
    def hook(table: OpenAddressingTable, key: Any, outcome: ProbeOutcome) -> None:
        tag = _TAGS.get(table.strategy_name, table.strategy_name)
        if outcome.duplicate:
            line = f"[{tag}] Duplicate key: {key}"
        elif outcome.inserted:
            line = f"[{tag}] Inserted key: {key} with {outcome.probes} probes."
        else:
            return
        lines.append(line)
        if print_fn is not None:
            print_fn(line)

    return hook


def _check_watchdog(cfg: AppConfig, summary: TableSummary) -> None:
    threshold = cfg.watchdog.avg_probe_warn
    if not cfg.watchdog.enabled or threshold is None:
        return
    if summary.avg_probes > threshold:
        logger.warning(
            "Average probes %.2f exceeded %.2f (%s, capacity=%d)",
            summary.avg_probes,
            threshold,
            summary.strategy,
            summary.capacity,
        )


def run_experiment(
    source: SourceSpec,
    load_factor: float,
    *,
    config: AppConfig | None = None,
    debug_level: int = 0,
    print_fn: Callable[[str], None] | None = print,
    dump_dir: str | Path | None = None,
    start: datetime | None = None,
) -> ExperimentResult:
    """Fill a linear and a double-hashing table from ``source`` and summarise both.

    At ``debug_level`` 2 every insert attempt is recorded on the result's
    ``inserts`` and, unless ``print_fn`` is ``None``, printed as it happens.
    """

    cfg = config or AppConfig()
    if debug_level not in (0, 1, 2):
        raise BadInputError(f"debug level must be 0, 1 or 2 (got {debug_level})")
    capacity = locate_capacity(cfg)
    target = target_count(load_factor, capacity)
    tables = [new_table(capacity, "linear"), new_table(capacity, "double")]
    keys = open_source(
        source,
        seed=cfg.experiment.seed,
        word_list_path=cfg.experiment.word_list,
        start=start,
        date_step_ms=cfg.experiment.date_step_ms,
    )
    logger.info(
        "Running %s experiment (load_factor=%s, capacity=%d, target=%d)",
        source.label,
        load_factor,
        capacity,
        target,
    )
    insert_lines: list[str] = []
    hook = _verbose_hook(insert_lines, print_fn) if debug_level == 2 else None
    try:
        exhausted = fill_tables(tables, keys, target, hook)
    finally:
        close = getattr(keys, "close", None)
        if callable(close):
            close()

    result = ExperimentResult(
        source=source.label,
        load_factor=load_factor,
        capacity=capacity,
        target=target,
        tables=[TableSummary.from_table(table) for table in tables],
        exhausted=exhausted,
        inserts=insert_lines,
    )
    for summary in result.tables:
        _check_watchdog(cfg, summary)

    if debug_level == 1:
        out_dir = Path(dump_dir if dump_dir is not None else cfg.experiment.dump_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        for table in tables:
            result.dumps.append(table.dump_to_file(out_dir / DUMP_FILENAMES[table.strategy_name]))
    return result


def run_experiments(
    source: SourceSpec,
    load_factors: Sequence[float],
    **kwargs: Any,
) -> list[ExperimentResult]:
    return [run_experiment(source, lf, **kwargs) for lf in load_factors]


def format_summary(result: ExperimentResult) -> list[str]:
    lines = [
        f"twinprobe: Found a twin prime table capacity: {result.capacity}",
        f"twinprobe: Input: {result.source}   Loadfactor: {result.load_factor:g}",
    ]
    if result.exhausted:
        lines.append(f"twinprobe: Key source ran out before {result.target} unique keys")
    for summary in result.tables:
        lines.extend(
            [
                "",
                f"\tUsing {summary.label}",
                f"twinprobe: size of hash table is {summary.capacity}",
                f"\tInserted {summary.inserted} elements, of which {summary.duplicates} were duplicates",
                f"\tAvg. no. of probes = {summary.avg_probes:.2f}",
            ]
        )
    for path, summary in zip(result.dumps, result.tables):
        lines.append(f"twinprobe: Saved dump of hash table ({summary.strategy}) to {path}")
    return lines


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
