"""zkstark - A STARK prover and verifier over prime fields."""

from zkstark.config import StarkConfig, default_config
from zkstark.errors import (
    ConfigError,
    DomainError,
    ErrorKind,
    FieldDivisionError,
    InterpolationError,
    ProofError,
    StarkError,
)
from zkstark.protocol.proof import Proof, QueryProof
from zkstark.protocol.prover import prove
from zkstark.protocol.verifier import verify_proof
from zkstark.stark import Stark

__all__ = [
    # Configuration
    "StarkConfig",
    "default_config",
    # Errors
    "ErrorKind",
    "StarkError",
    "ConfigError",
    "DomainError",
    "FieldDivisionError",
    "InterpolationError",
    "ProofError",
    # STARK
    "Stark",
    "Proof",
    "QueryProof",
    "prove",
    "verify_proof",
]
