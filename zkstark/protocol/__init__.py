"""Protocol - Domains, constraints, FRI and the STARK prover/verifier."""

from zkstark.protocol.air import BoundaryConstraint, SquareFibonacciAir, square_fibonacci_trace
from zkstark.protocol.domains import StarkDomains
from zkstark.protocol.fri import FRI, FriLayer, FriProtocol
from zkstark.protocol.proof import OFF_DOMAIN, TRACE_LAYER, FriProof, Proof, QueryProof
from zkstark.protocol.prover import StarkProver, prove
from zkstark.protocol.setup import StarkSetup
from zkstark.protocol.verifier import StarkVerifier, verify_proof

__all__ = [
    # Domains
    "StarkDomains",
    # AIR
    "SquareFibonacciAir",
    "BoundaryConstraint",
    "square_fibonacci_trace",
    # FRI
    "FRI",
    "FriLayer",
    "FriProtocol",
    # Proof
    "Proof",
    "FriProof",
    "QueryProof",
    "OFF_DOMAIN",
    "TRACE_LAYER",
    # STARK
    "StarkSetup",
    "StarkProver",
    "StarkVerifier",
    "prove",
    "verify_proof",
]
