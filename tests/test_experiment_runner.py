from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterator

import pytest

from twinprobe.config import AppConfig, ExperimentPolicy, WatchdogPolicy
from twinprobe.contracts.error import BadInputError, InvariantError, IOErrorEnvelope, TableFullError
from twinprobe.core.table import new_table
from twinprobe.experiment.runner import (
    fill_tables,
    format_summary,
    run_experiment,
    run_experiments,
    target_count,
)
from twinprobe.workloads.sources import SOURCES


def _small_config(**overrides: object) -> AppConfig:
    experiment = ExperimentPolicy(prime_min=20, prime_max=50, seed=1234)
    for key, value in overrides.items():
        setattr(experiment, key, value)
    return AppConfig(experiment=experiment)


@pytest.fixture()
def words_file(tmp_path: Path) -> Path:
    path = tmp_path / "word-list.txt"
    path.write_text("apple\nbanana\napple\ncherry\nbanana\napple\n", encoding="utf-8")
    return path


class _ListHandler(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


@pytest.fixture()
def captured_logs() -> Iterator[_ListHandler]:
    handler = _ListHandler()
    logger = logging.getLogger("twinprobe")
    logger.addHandler(handler)
    try:
        yield handler
    finally:
        logger.removeHandler(handler)


def test_target_count_rounds_up() -> None:
    assert target_count(0.5, 31) == 16
    assert target_count(1.0, 31) == 31
    with pytest.raises(BadInputError):
        target_count(0.0, 31)
    with pytest.raises(BadInputError):
        target_count(1.5, 31)


def test_random_source_fills_both_tables() -> None:
    result = run_experiment(SOURCES["random"], 0.5, config=_small_config())

    assert result.capacity == 31
    assert result.target == 16
    assert result.exhausted is False
    assert [t.strategy for t in result.tables] == ["linear", "double"]
    for summary in result.tables:
        assert summary.capacity == 31
        assert summary.inserted == 16
        assert 1.0 <= summary.avg_probes <= 31


def test_same_seed_gives_same_summary() -> None:
    first = run_experiment(SOURCES["random"], 0.9, config=_small_config())
    second = run_experiment(SOURCES["random"], 0.9, config=_small_config())
    assert first.to_dict() == second.to_dict()


def test_date_source_has_no_duplicates() -> None:
    start = datetime(2024, 1, 1, tzinfo=UTC)
    result = run_experiment(SOURCES["date"], 0.99, config=_small_config(), start=start)
    assert all(t.inserted == 31 and t.duplicates == 0 for t in result.tables)


def test_word_source_exhaustion_returns_partial_result(words_file: Path, captured_logs: _ListHandler) -> None:
    cfg = _small_config(word_list=str(words_file))
    result = run_experiment(SOURCES["words"], 0.99, config=cfg)

    assert result.exhausted is True
    for summary in result.tables:
        assert summary.inserted == 3
        assert summary.duplicates == 3
    assert any("exhausted" in rec.getMessage() for rec in captured_logs.records)
    assert "ran out" in "\n".join(format_summary(result))


def test_missing_word_list_raises_io(tmp_path: Path) -> None:
    cfg = _small_config(word_list=str(tmp_path / "missing.txt"))
    with pytest.raises(IOErrorEnvelope):
        run_experiment(SOURCES["words"], 0.5, config=cfg)


def test_debug_level_one_writes_dumps(tmp_path: Path) -> None:
    result = run_experiment(SOURCES["random"], 0.5, config=_small_config(), debug_level=1, dump_dir=tmp_path)

    names = sorted(path.name for path in result.dumps)
    assert names == ["double-dump.txt", "linear-dump.txt"]
    lines = (tmp_path / "linear-dump.txt").read_text(encoding="utf-8").splitlines()
    assert len(lines) == 16
    assert all(line.startswith("table[") and line.count(" ") == 3 for line in lines)


def test_debug_level_two_prints_each_insert(words_file: Path) -> None:
    printed: list[str] = []
    cfg = _small_config(word_list=str(words_file))
    run_experiment(SOURCES["words"], 0.99, config=cfg, debug_level=2, print_fn=printed.append)

    assert len(printed) == 12
    assert sum(line.startswith("[Linear] Inserted key: ") for line in printed) == 3
    assert sum(line.startswith("[Double] Duplicate key: ") for line in printed) == 3
    assert "[Linear] Duplicate key: apple" in printed


def test_debug_level_out_of_range() -> None:
    with pytest.raises(BadInputError):
        run_experiment(SOURCES["random"], 0.5, config=_small_config(), debug_level=3)


def test_no_twin_prime_in_range() -> None:
    cfg = _small_config(prime_min=20, prime_max=28)
    with pytest.raises(BadInputError) as excinfo:
        run_experiment(SOURCES["random"], 0.5, config=cfg)
    assert "No twin prime" in str(excinfo.value)
    assert excinfo.value.hint


def test_fill_tables_surfaces_table_full() -> None:
    tables = [new_table(3, "linear")]
    with pytest.raises(InvariantError):
        fill_tables(tables, iter(range(10)), target=5)


def test_fill_tables_stops_each_table_at_target() -> None:
    tables = [new_table(13, "linear"), new_table(13, "double")]
    seen: list[tuple[str, object]] = []
    exhausted = fill_tables(
        tables,
        iter([1, 2, 2, 3, 4, 5]),
        target=3,
        on_outcome=lambda table, key, outcome: seen.append((table.strategy_name, key)),
    )
    assert exhausted is False
    assert all(t.inserted_count == 3 and t.duplicate_count == 1 for t in tables)
    assert ("linear", 4) not in seen


def test_watchdog_warns_on_high_average(captured_logs: _ListHandler) -> None:
    cfg = _small_config()
    cfg.watchdog = WatchdogPolicy(enabled=True, avg_probe_warn=1.0)
    run_experiment(SOURCES["random"], 0.99, config=cfg)
    assert any("exceeded" in rec.getMessage() for rec in captured_logs.records)


def test_run_experiments_sweeps_load_factors() -> None:
    results = run_experiments(SOURCES["random"], [0.5, 0.7], config=_small_config())
    assert [r.target for r in results] == [16, 22]


def test_format_summary_layout() -> None:
    result = run_experiment(SOURCES["random"], 0.5, config=_small_config())
    lines = format_summary(result)
    assert lines[0] == "twinprobe: Found a twin prime table capacity: 31"
    assert lines[1] == "twinprobe: Input: Random-Integer   Loadfactor: 0.5"
    assert "\tUsing Linear Probing" in lines
    assert "\tUsing Double Hashing" in lines
    assert any(line.startswith("\tInserted 16 elements, of which") for line in lines)
    assert any(line.startswith("\tAvg. no. of probes = ") for line in lines)


def test_format_summary_keeps_load_factor_precision() -> None:
    result = run_experiment(SOURCES["date"], 0.995, config=_small_config())
    assert format_summary(result)[1].endswith("Loadfactor: 0.995")


def test_debug_level_two_records_inserts_without_printer(words_file: Path) -> None:
    cfg = _small_config(word_list=str(words_file))
    result = run_experiment(SOURCES["words"], 0.99, config=cfg, debug_level=2, print_fn=None)

    assert len(result.inserts) == 12
    assert result.inserts[0] == "[Linear] Inserted key: apple with 1 probes."
    assert result.to_dict()["inserts"] == result.inserts
    quiet = run_experiment(SOURCES["words"], 0.99, config=cfg)
    assert "inserts" not in quiet.to_dict()


def test_fill_tables_table_full_carries_context() -> None:
    tables = [new_table(5, "double")]
    with pytest.raises(TableFullError) as excinfo:
        fill_tables(tables, iter(range(10)), target=6)
    err = excinfo.value
    assert isinstance(err, InvariantError)
    assert err.context == {"strategy": "double", "capacity": 5, "size": 5}
    assert err.hint
