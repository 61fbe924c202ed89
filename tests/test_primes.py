from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from twinprobe.core.primes import DEFAULT_PRIME_MAX, DEFAULT_PRIME_MIN, find_twin_prime, is_prime


def _slow_prime(n: int) -> bool:
    return n >= 2 and all(n % d for d in range(2, n))


@pytest.mark.parametrize(
    "num, expected",
    [(-3, False), (0, False), (1, False), (2, True), (3, True), (4, False), (9, False), (25, False), (97, True)],
)
def test_is_prime_small_values(num: int, expected: bool) -> None:
    assert is_prime(num) is expected


@given(st.integers(-10, 3_000))
def test_is_prime_matches_naive_check(num: int) -> None:
    assert is_prime(num) is _slow_prime(num)


def test_default_range_twin_prime_is_stable() -> None:
    first = find_twin_prime(DEFAULT_PRIME_MIN, DEFAULT_PRIME_MAX)
    assert first == 95791
    assert find_twin_prime(DEFAULT_PRIME_MIN, DEFAULT_PRIME_MAX) == first
    assert is_prime(first) and is_prime(first - 2)


def test_default_range_has_no_earlier_pair() -> None:
    for candidate in range(DEFAULT_PRIME_MIN + 2, 95791):
        assert not (is_prime(candidate) and is_prime(candidate - 2))


@pytest.mark.parametrize(
    "lo, hi, expected",
    [
        (3, 5, 5),
        (4, 7, 7),
        (5, 7, 7),
        (20, 50, 31),
        (0, 4, None),
        (20, 28, None),
        (30, 31, None),  # 29 lies below the range
        (50, 40, None),
    ],
)
def test_find_twin_prime_ranges(lo: int, hi: int, expected: int | None) -> None:
    assert find_twin_prime(lo, hi) == expected
