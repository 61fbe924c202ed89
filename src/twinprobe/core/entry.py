from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class HashObject:
    """Key wrapper carrying a duplicate counter and its first-insert probe count."""

    __slots__ = ("key", "frequency", "probe_count")

    def __init__(self, key: Any) -> None:
        self.key = key
        self.frequency = 1
        self.probe_count = 0

    def increment_frequency(self) -> None:
        self.frequency += 1

    def view(self) -> "EntryView":
        return EntryView(self.key, self.frequency, self.probe_count)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashObject):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return f"{self.key} {self.frequency} {self.probe_count}"

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"HashObject({self.key!r}, frequency={self.frequency}, probe_count={self.probe_count})"


@dataclass(frozen=True)
class EntryView:
    """Read-only snapshot of a stored entry."""

    key: Any
    frequency: int
    probe_count: int

    def __str__(self) -> str:
        return f"{self.key} {self.frequency} {self.probe_count}"


__all__ = ["EntryView", "HashObject"]
