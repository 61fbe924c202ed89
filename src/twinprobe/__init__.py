"""Open-addressing hashtable experiments: linear probing vs. double hashing."""

from . import analysis, contracts, core, experiment, workloads

__all__ = [
    "analysis",
    "contracts",
    "core",
    "experiment",
    "workloads",
]
