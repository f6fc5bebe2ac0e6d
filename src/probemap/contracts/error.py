"""Exception hierarchy shared across probemap."""

from __future__ import annotations


class EnvelopeError(Exception):
    """Base exception that carries an optional hint for callers."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class BadInputError(EnvelopeError):
    """Raised for malformed user input (config files, env overrides, traces)."""


class InvariantError(EnvelopeError):
    """Raised when internal consistency checks fail."""


class CapacityExhaustedError(InvariantError):
    """Raised when an insertion visits every slot without finding room."""


__all__ = [
    "EnvelopeError",
    "BadInputError",
    "InvariantError",
    "CapacityExhaustedError",
]
