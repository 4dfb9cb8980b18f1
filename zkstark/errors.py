"""Recoverable error types.

Programmer errors (mixing elements of different fields, building a malformed
polynomial) are assertions or ``TypeError`` and are never raised through these
classes. Everything here is a data/runtime error the caller is expected to
handle: reject the configuration, reject the proof, retry with another point.
"""

from enum import Enum


class ErrorKind(Enum):
    """Category of a recoverable failure."""
    ZERO_DIVISION = "zero division"
    INVALID_CONFIG = "invalid configuration"
    LENGTH_MISMATCH = "length mismatch"
    NOT_POWER_OF_TWO = "not a power of two"
    NO_ROOT_OF_UNITY = "no root of unity"
    DUPLICATE_POINTS = "duplicate interpolation points"
    INVALID_PROOF = "invalid proof"


class StarkError(Exception):
    """Base class for recoverable errors, tagged with an ErrorKind."""

    default_kind = ErrorKind.INVALID_CONFIG

    def __init__(self, message: str, kind: "ErrorKind | None" = None) -> None:
        super().__init__(message)
        self.kind = kind if kind is not None else self.default_kind

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.args[0]}"


class FieldDivisionError(StarkError, ZeroDivisionError):
    """Division or inversion of the zero element (or zero polynomial)."""
    default_kind = ErrorKind.ZERO_DIVISION


class ConfigError(StarkError, ValueError):
    """Malformed configuration or field modulus."""
    default_kind = ErrorKind.INVALID_CONFIG


class DomainError(StarkError, ValueError):
    """Evaluation-domain problem: size not a power of two, no root of unity, length mismatch."""
    default_kind = ErrorKind.NOT_POWER_OF_TWO


class InterpolationError(StarkError, ValueError):
    """Duplicate x-coordinates or mismatched point lists."""
    default_kind = ErrorKind.DUPLICATE_POINTS


class ProofError(StarkError):
    """Structurally or cryptographically invalid proof."""
    default_kind = ErrorKind.INVALID_PROOF
