"""Error contracts shared by the twinprobe CLI and driver."""

from .error import (
    BadInputError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    InvariantError,
    IOErrorEnvelope,
    TableFullError,
    classify,
    die,
    guard_cli,
)

__all__ = [
    "BadInputError",
    "EnvelopeError",
    "ErrorEnvelope",
    "Exit",
    "IOErrorEnvelope",
    "InvariantError",
    "TableFullError",
    "classify",
    "die",
    "guard_cli",
]
