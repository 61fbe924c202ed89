from __future__ import annotations

import random
from datetime import UTC, datetime, timedelta
from itertools import islice
from pathlib import Path

import pytest

from twinprobe.contracts.error import BadInputError, IOErrorEnvelope
from twinprobe.workloads.sources import (
    SOURCES,
    date_values,
    open_source,
    random_integers,
    resolve_source,
    word_list,
)


@pytest.mark.parametrize(
    "token, name",
    [("1", "random"), (2, "date"), ("3", "words"), ("Random", "random"), ("word-list", "words")],
)
def test_resolve_source_accepts_codes_and_names(token: object, name: str) -> None:
    assert resolve_source(token).name == name  # type: ignore[arg-type]


def test_resolve_source_rejects_unknown() -> None:
    with pytest.raises(BadInputError) as excinfo:
        resolve_source("4")
    assert excinfo.value.hint and "1=random" in excinfo.value.hint


def test_random_integers_are_seeded_and_32_bit() -> None:
    first = list(islice(random_integers(random.Random(7)), 200))
    second = list(islice(random_integers(random.Random(7)), 200))
    assert first == second
    assert all(-(2**31) <= value < 2**31 for value in first)


def test_date_values_step_from_start() -> None:
    start = datetime(2024, 1, 1, tzinfo=UTC)
    values = list(islice(date_values(start, 1000), 3))
    assert values == [start + timedelta(seconds=n) for n in (1, 2, 3)]


def test_date_values_rejects_non_positive_step() -> None:
    with pytest.raises(BadInputError):
        next(date_values(datetime(2024, 1, 1, tzinfo=UTC), 0))


def test_word_list_strips_newlines(tmp_path: Path) -> None:
    path = tmp_path / "words.txt"
    path.write_text("alpha\nbeta\r\n\ngamma", encoding="utf-8")
    assert list(word_list(path)) == ["alpha", "beta", "", "gamma"]


def test_word_list_missing_file_fails_fast(tmp_path: Path) -> None:
    with pytest.raises(IOErrorEnvelope):
        word_list(tmp_path / "nope.txt")


def test_open_source_dispatch(tmp_path: Path) -> None:
    words = tmp_path / "w.txt"
    words.write_text("x\ny\n", encoding="utf-8")
    assert list(open_source(SOURCES["words"], word_list_path=words)) == ["x", "y"]

    seeded = list(islice(open_source(SOURCES["random"], seed=3), 5))
    assert seeded == list(islice(open_source(SOURCES["random"], seed=3), 5))

    start = datetime(2020, 5, 1, tzinfo=UTC)
    dates = open_source(SOURCES["date"], start=start, date_step_ms=500)
    assert next(dates) == start + timedelta(milliseconds=500)
