"""STARK proof data structures."""

from dataclasses import dataclass, field
from typing import List

from zkstark.primitives.merkle_tree import ProofNode

# --- Constants ---

OFF_DOMAIN = -1   # query_index of an opening outside the evaluation domain
TRACE_LAYER = -1  # layer_index of a trace-commitment opening


# --- Proof Data Structures ---

@dataclass
class QueryProof:
    """One opened value with its Merkle authentication path.

    Attributes:
        layer_index: FRI layer the value belongs to, or TRACE_LAYER
        query_index: Position in that layer's domain, or OFF_DOMAIN
        point: Domain point at query_index
        value: Committed value at query_index
        path: Sibling hashes from leaf to root
    """
    layer_index: int
    query_index: int
    point: object
    value: object
    path: List[ProofNode] = field(default_factory=list)


@dataclass
class FriProof:
    """FRI layers and query openings.

    Attributes:
        domains: Evaluation domain of every layer, halving down to size 1
        values: Function values over each domain
        roots: Merkle root of every layer (the last one commits a single value)
        query_proofs: Per query index, two openings per folding layer then one for the final layer
        query_indices: Indices into the first layer drawn from the channel
    """
    domains: List = field(default_factory=list)
    values: List = field(default_factory=list)
    roots: List[bytes] = field(default_factory=list)
    query_proofs: List[QueryProof] = field(default_factory=list)
    query_indices: List[int] = field(default_factory=list)

    @property
    def num_layers(self) -> int:
        return len(self.roots)

    @property
    def final_value(self):
        return self.values[-1][0]


@dataclass
class Proof:
    """Complete STARK proof for the square-Fibonacci AIR.

    Attributes:
        public_inputs: [a0, output]
        trace_root: Merkle root of the trace evaluations over the coset
        fri_domains: FRI layer domains
        fri_values: FRI layer values
        fri_roots: FRI layer Merkle roots
        query_proofs: FRI openings
        trace_queries: Trace openings at x, g*x, g^2*x for every query index
        final_digest: Hex transcript state after the last challenge
    """
    public_inputs: List = field(default_factory=list)
    trace_root: bytes = b""
    fri_domains: List = field(default_factory=list)
    fri_values: List = field(default_factory=list)
    fri_roots: List[bytes] = field(default_factory=list)
    query_proofs: List[QueryProof] = field(default_factory=list)
    trace_queries: List[QueryProof] = field(default_factory=list)
    final_digest: str = ""

    @property
    def num_layers(self) -> int:
        return len(self.fri_roots)

    def fri_proof(self) -> FriProof:
        """FRI part of the proof; query indices are re-derived by the verifier."""
        return FriProof(
            domains=self.fri_domains,
            values=self.fri_values,
            roots=self.fri_roots,
            query_proofs=self.query_proofs,
        )
