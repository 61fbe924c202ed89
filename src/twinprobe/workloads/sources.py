"""Key sources feeding the experiment driver.

Each source is an iterator of hashable keys. Random and date sources never
end; the word-list source ends when the file does, and the driver treats that
as a partial run rather than an error.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

from twinprobe.contracts.error import BadInputError, IOErrorEnvelope

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1
DEFAULT_DATE_STEP_MS = 1000
DEFAULT_WORD_LIST = "word-list.txt"

__all__ = [
    "DEFAULT_DATE_STEP_MS",
    "DEFAULT_WORD_LIST",
    "SOURCES",
    "SourceSpec",
    "date_values",
    "open_source",
    "random_integers",
    "resolve_source",
    "word_list",
]


@dataclass(frozen=True, slots=True)
class SourceSpec:
    code: int
    name: str
    label: str


SOURCES: Dict[str, SourceSpec] = {
    "random": SourceSpec(1, "random", "Random-Integer"),
    "date": SourceSpec(2, "date", "Date-Value"),
    "words": SourceSpec(3, "words", "Word-List"),
}


def resolve_source(token: Union[str, int]) -> SourceSpec:
    """Accept a numeric code (``1``/``2``/``3``) or a source name."""

    text = str(token).strip().lower()
    for spec in SOURCES.values():
        if text in {str(spec.code), spec.name, spec.label.lower()}:
            return spec
    choices = ", ".join(f"{spec.code}={spec.name}" for spec in SOURCES.values())
    raise BadInputError(f"Unknown data source {token!r}", hint=f"Choose one of: {choices}")


def random_integers(rng: random.Random) -> Iterator[int]:
    while True:
        yield rng.randint(_INT32_MIN, _INT32_MAX)


def date_values(start: datetime, step_ms: int = DEFAULT_DATE_STEP_MS) -> Iterator[datetime]:
    if step_ms <= 0:
        raise BadInputError("date step must be > 0 ms")
    step = timedelta(milliseconds=step_ms)
    current = start
    while True:
        current += step
        yield current


def word_list(path: Union[str, Path]) -> Iterator[str]:
    """Yield one key per line; opening happens eagerly so a missing file fails fast."""

    word_path = Path(path)
    try:
        fh = word_path.open("r", encoding="utf-8")
    except FileNotFoundError as exc:
        raise IOErrorEnvelope(
            f"Word list not found: {word_path}", hint="Pass --word-list or set EXPERIMENT_WORD_LIST"
        ) from exc
    return _read_lines(fh, word_path)


def _read_lines(fh: Any, word_path: Path) -> Iterator[str]:
    with fh:
        lineno = 0
        try:
            for lineno, line in enumerate(fh, start=1):
                yield line.rstrip("\r\n")
        except UnicodeDecodeError as exc:
            raise IOErrorEnvelope(
                f"Word list {word_path} is not valid UTF-8: {exc.reason}",
                hint="Re-encode the word list as UTF-8",
                context={"path": str(word_path), "lines_read": lineno},
            ) from exc


def open_source(
    spec: SourceSpec,
    *,
    seed: Optional[int] = None,
    word_list_path: Union[str, Path] = DEFAULT_WORD_LIST,
    start: Optional[datetime] = None,
    date_step_ms: int = DEFAULT_DATE_STEP_MS,
) -> Iterator[Any]:
    if spec.name == "random":
        rng = random.Random(seed)  # noqa: S311  # nosec B311 - experiment sampler
        return random_integers(rng)
    if spec.name == "date":
        return date_values(start or datetime.now(UTC), date_step_ms)
    return word_list(word_list_path)
