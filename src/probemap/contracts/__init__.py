"""Error contracts for probemap."""

from .error import BadInputError, CapacityExhaustedError, EnvelopeError, InvariantError

__all__ = [
    "EnvelopeError",
    "BadInputError",
    "InvariantError",
    "CapacityExhaustedError",
]
