"""Twin-prime lookup used to size the double-hashing tables."""

from __future__ import annotations

from math import isqrt
from typing import Optional

DEFAULT_PRIME_MIN = 95_500
DEFAULT_PRIME_MAX = 96_000


def is_prime(num: int) -> bool:
    if num < 2:
        return False
    if num in (2, 3):
        return True
    if num % 2 == 0:
        return False
    for divisor in range(3, isqrt(num) + 1, 2):
        if num % divisor == 0:
            return False
    return True


def find_twin_prime(lo: int, hi: int) -> Optional[int]:
    """Return the larger member ``p`` of the first twin pair ``(p - 2, p)`` inside ``[lo, hi]``.

    Both members must lie in the range. Returns ``None`` when the range holds no pair.
    """

    for candidate in range(lo + 2, hi + 1):
        if is_prime(candidate) and is_prime(candidate - 2):
            return candidate
    return None


__all__ = ["DEFAULT_PRIME_MAX", "DEFAULT_PRIME_MIN", "find_twin_prime", "is_prime"]
