from .entry import EntryView, HashObject
from .primes import DEFAULT_PRIME_MAX, DEFAULT_PRIME_MIN, find_twin_prime, is_prime
from .strategy import (
    STRATEGIES,
    DoubleHashing,
    LinearProbing,
    ProbeStrategy,
    make_strategy,
    positive_mod,
)
from .table import InsertStatus, OpenAddressingTable, ProbeOutcome, new_table

__all__ = [
    "DEFAULT_PRIME_MAX",
    "DEFAULT_PRIME_MIN",
    "DoubleHashing",
    "EntryView",
    "HashObject",
    "InsertStatus",
    "LinearProbing",
    "OpenAddressingTable",
    "ProbeOutcome",
    "ProbeStrategy",
    "STRATEGIES",
    "find_twin_prime",
    "is_prime",
    "make_strategy",
    "new_table",
    "positive_mod",
]
