from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Iterator, List, Optional, Tuple, Union

from twinprobe.contracts.error import BadInputError
from twinprobe.core.entry import EntryView, HashObject
from twinprobe.core.strategy import ProbeStrategy, make_strategy, positive_mod

logger = logging.getLogger("twinprobe")


class InsertStatus(str, Enum):
    INSERTED = "inserted"
    DUPLICATE = "duplicate"
    TABLE_FULL = "table-full"


@dataclass(frozen=True)
class ProbeOutcome:
    """Result of one insert call. ``probes`` is non-zero only for new insertions."""

    status: InsertStatus
    probes: int = 0

    @property
    def inserted(self) -> bool:
        return self.status is InsertStatus.INSERTED

    @property
    def duplicate(self) -> bool:
        return self.status is InsertStatus.DUPLICATE

    @property
    def table_full(self) -> bool:
        return self.status is InsertStatus.TABLE_FULL


_DUPLICATE = ProbeOutcome(InsertStatus.DUPLICATE)
_TABLE_FULL = ProbeOutcome(InsertStatus.TABLE_FULL)


class OpenAddressingTable:
    """Fixed-capacity open-addressing hashtable with probe statistics.

    The probe sequence comes from the injected strategy. The table never grows
    and never deletes. It is not safe for concurrent use; callers sharing a
    table across threads must serialise access themselves.
    """

    __slots__ = ("_slots", "_cap", "_strategy", "_total_probes", "_inserted", "_duplicates")

    def __init__(self, capacity: int, strategy: ProbeStrategy) -> None:
        if capacity < 1:
            raise BadInputError(f"capacity must be > 0 (got {capacity})")
        if strategy.capacity != capacity:
            raise BadInputError(
                f"strategy bound to capacity {strategy.capacity}, table capacity is {capacity}"
            )
        self._cap = capacity
        self._strategy = strategy
        self._slots: List[Optional[HashObject]] = [None] * capacity
        self._total_probes = 0
        self._inserted = 0
        self._duplicates = 0

    def __len__(self) -> int:
        return self._inserted

    @property
    def capacity(self) -> int:
        return self._cap

    @property
    def strategy(self) -> ProbeStrategy:
        return self._strategy

    @property
    def strategy_name(self) -> str:
        return self._strategy.name

    @property
    def total_probes(self) -> int:
        return self._total_probes

    @property
    def inserted_count(self) -> int:
        return self._inserted

    @property
    def duplicate_count(self) -> int:
        return self._duplicates

    def average_probes(self) -> float:
        return self._total_probes / self._inserted if self._inserted else 0.0

    def load_factor(self) -> float:
        return self._inserted / self._cap

    def primary_index(self, key_hash: int) -> int:
        return positive_mod(key_hash, self._cap)

    def probe_indices(self, key_hash: int) -> Iterator[Tuple[int, int]]:
        """Yield ``(attempt, slot)`` for every attempt in ``[0, capacity)``."""

        h1 = positive_mod(key_hash, self._cap)
        for attempt in range(self._cap):
            yield attempt, positive_mod(h1 + self._strategy.offset(key_hash, attempt), self._cap)

    def insert(self, item: Union[HashObject, Any]) -> ProbeOutcome:
        entry = item if isinstance(item, HashObject) else HashObject(item)
        for attempt, idx in self.probe_indices(hash(entry.key)):
            slot = self._slots[idx]
            if slot is None:
                probes = attempt + 1
                self._slots[idx] = entry
                entry.probe_count = probes
                self._total_probes += probes
                self._inserted += 1
                return ProbeOutcome(InsertStatus.INSERTED, probes)
            if slot == entry:
                slot.increment_frequency()
                self._duplicates += 1
                return _DUPLICATE
        logger.error(
            "Probe sequence exhausted (strategy=%s, capacity=%d, inserted=%d)",
            self._strategy.name,
            self._cap,
            self._inserted,
        )
        return _TABLE_FULL

    def search(self, key: Any) -> Optional[EntryView]:
        for _, idx in self.probe_indices(hash(key)):
            slot = self._slots[idx]
            if slot is None:
                return None
            if slot.key == key:
                return slot.view()
        return None

    def __contains__(self, key: Any) -> bool:
        return self.search(key) is not None

    def export(self) -> List[Tuple[int, EntryView]]:
        return [(idx, slot.view()) for idx, slot in enumerate(self._slots) if slot is not None]

    def dump_lines(self) -> Iterator[str]:
        for idx, slot in enumerate(self._slots):
            if slot is not None:
                yield f"table[{idx}]: {slot}"

    def dump_to_file(self, filepath: Union[str, Path]) -> Path:
        path = Path(filepath)
        with path.open("w", encoding="utf-8") as fh:
            for line in self.dump_lines():
                fh.write(line + "\n")
        logger.info("Dumped %d entries (%s) to %s", self._inserted, self._strategy.name, path)
        return path

    def stats(self) -> dict[str, Any]:
        return {
            "strategy": self._strategy.name,
            "capacity": self._cap,
            "inserted": self._inserted,
            "duplicates": self._duplicates,
            "total_probes": self._total_probes,
            "avg_probes": self.average_probes(),
            "load_factor": self.load_factor(),
        }


def new_table(capacity: int, strategy_kind: str) -> OpenAddressingTable:
    return OpenAddressingTable(capacity, make_strategy(strategy_kind, capacity))


__all__ = [
    "InsertStatus",
    "OpenAddressingTable",
    "ProbeOutcome",
    "new_table",
]
