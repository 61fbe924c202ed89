"""Error envelopes and exit codes for the twinprobe CLI.

Every failure leaves the process as one JSON line on stderr::

    {"error": "Invariant", "detail": "...", "hint": "...", "context": {...}}

``context`` is only present for errors that know which table or source they
came from (a full table, an unreadable word list).
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from enum import IntEnum
from functools import wraps
from typing import Any, NoReturn, TypeVar

logger = logging.getLogger(__name__)
T = TypeVar("T")


class Exit(IntEnum):
    OK = 0
    BAD_INPUT = 2
    INVARIANT = 3
    INTERNAL = 4
    IO = 5


@dataclass(slots=True)
class ErrorEnvelope:
    error: str
    detail: str
    hint: str | None = None
    context: dict[str, Any] | None = None

    def to_json(self) -> str:
        payload: dict[str, Any] = {"error": self.error, "detail": self.detail}
        if self.hint:
            payload["hint"] = self.hint
        if self.context:
            payload["context"] = self.context
        return json.dumps(payload, ensure_ascii=False, default=str)


def die(
    code: Exit,
    kind: str,
    detail: str,
    hint: str | None = None,
    context: dict[str, Any] | None = None,
) -> NoReturn:
    """Write the envelope to stderr and exit with ``code``."""

    envelope = ErrorEnvelope(error=kind, detail=detail, hint=hint, context=context)
    sys.stderr.write(envelope.to_json() + "\n")
    try:
        sys.stderr.flush()
    finally:
        sys.exit(int(code))


class EnvelopeError(Exception):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.hint = hint
        self.context = context


class BadInputError(EnvelopeError):
    """Malformed flags, ranges, keys or config values."""


class InvariantError(EnvelopeError):
    """A table ended up in a state the driver sized it to avoid."""


class TableFullError(InvariantError):
    """Raised when the driver receives ``TABLE_FULL`` while filling a table."""

    def __init__(self, strategy: str, capacity: int, size: int) -> None:
        super().__init__(
            f"{strategy} table full at {size}/{capacity} entries",
            hint="Keep the load factor at or below 1",
            context={"strategy": strategy, "capacity": capacity, "size": size},
        )
        self.strategy = strategy
        self.capacity = capacity
        self.size = size


class IOErrorEnvelope(EnvelopeError):  # noqa: N818 - mirrors Exit.IO
    """Unreadable key sources and unwritable dump or summary files."""


# Most specific first; the base class catches anything raised directly.
_EXCEPTION_ORDER: tuple[tuple[type[EnvelopeError], Exit, str], ...] = (
    (BadInputError, Exit.BAD_INPUT, "BadInput"),
    (InvariantError, Exit.INVARIANT, "Invariant"),
    (IOErrorEnvelope, Exit.IO, "IO"),
    (EnvelopeError, Exit.INTERNAL, "Internal"),
)


def classify(exc: EnvelopeError) -> tuple[Exit, str]:
    for exc_type, exit_code, label in _EXCEPTION_ORDER:
        if isinstance(exc, exc_type):
            return exit_code, label
    raise TypeError(f"not an envelope error: {exc!r}")


def guard_cli(fn: Callable[..., T]) -> Callable[..., T]:
    """Decorate a CLI handler so every failure leaves through :func:`die`."""

    @wraps(fn)
    def _wrapped(*args: Any, **kwargs: Any) -> T:
        try:
            return fn(*args, **kwargs)
        except EnvelopeError as exc:
            exit_code, label = classify(exc)
            die(exit_code, label, str(exc), hint=exc.hint, context=exc.context)
        except FileNotFoundError as exc:
            die(Exit.IO, "FileNotFound", str(exc))
        except Exception as exc:  # pragma: no cover - last-resort envelope
            logger.exception("Unhandled CLI exception")
            die(Exit.INTERNAL, "Unhandled", f"{type(exc).__name__}: {exc}")

    return _wrapped


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
