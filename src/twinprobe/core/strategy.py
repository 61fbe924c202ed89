"""Probe-sequence strategies for open addressing.

A strategy maps ``(key_hash, attempt)`` to an offset from the primary slot
``h1 = positive_mod(key_hash, capacity)``. The engine computes the probed slot
as ``positive_mod(h1 + offset, capacity)``.
"""

from __future__ import annotations

from typing import Dict, Type

from twinprobe.contracts.error import BadInputError


def positive_mod(dividend: int, divisor: int) -> int:
    rem = dividend % divisor
    if rem < 0:
        rem += divisor
    return rem


class ProbeStrategy:
    """Base strategy bound to a table capacity."""

    __slots__ = ("capacity",)

    name = "abstract"
    label = "Abstract"

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise BadInputError(f"capacity must be > 0 (got {capacity})")
        self.capacity = capacity

    def offset(self, key_hash: int, attempt: int) -> int:
        raise NotImplementedError

    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return f"{type(self).__name__}(capacity={self.capacity})"


class LinearProbing(ProbeStrategy):
    """Step one slot per attempt."""

    __slots__ = ()

    name = "linear"
    label = "Linear Probing"

    def offset(self, key_hash: int, attempt: int) -> int:
        return attempt


class DoubleHashing(ProbeStrategy):
    """Step ``h2 = 1 + key_hash mod (capacity - 2)`` slots per attempt.

    Pair with a capacity that is the larger member of a twin-prime pair so
    that both ``capacity`` and ``capacity - 2`` are prime.
    """

    __slots__ = ()

    name = "double"
    label = "Double Hashing"

    def __init__(self, capacity: int) -> None:
        if capacity < 3:
            raise BadInputError(f"double hashing needs capacity >= 3 (got {capacity})")
        super().__init__(capacity)

    def step(self, key_hash: int) -> int:
        return 1 + positive_mod(key_hash, self.capacity - 2)

    def offset(self, key_hash: int, attempt: int) -> int:
        return attempt * self.step(key_hash)


STRATEGIES: Dict[str, Type[ProbeStrategy]] = {
    LinearProbing.name: LinearProbing,
    DoubleHashing.name: DoubleHashing,
}


def make_strategy(kind: str, capacity: int) -> ProbeStrategy:
    try:
        cls = STRATEGIES[kind]
    except KeyError as exc:
        choices = ", ".join(sorted(STRATEGIES))
        raise BadInputError(f"Unknown probe strategy {kind!r}", hint=f"Choose one of: {choices}") from exc
    return cls(capacity)


__all__ = [
    "DoubleHashing",
    "LinearProbing",
    "ProbeStrategy",
    "STRATEGIES",
    "make_strategy",
    "positive_mod",
]
