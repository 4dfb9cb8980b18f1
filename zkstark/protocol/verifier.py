"""STARK proof verification.

The verifier re-derives everything it can from the configuration and replays
the Fiat-Shamir transcript in the prover's order:

1. Structural checks - non-empty commitments, matching lengths, strict halving, final size 1
2. Transcript replay - public inputs and trace root, then the constraint weights
3. FRI verification - recomputed roots, fold consistency, constancy, query openings
4. Trace openings - Merkle paths for f(x), f(g x), f(g^2 x) at every query index
5. Composition check - the constraints evaluated from the trace openings must
   match the first FRI layer at every query
6. Transcript digest - must equal the digest recorded in the proof

Any failure rejects the proof; there is no partial acceptance.
"""

import logging
from typing import List

import numpy as np

from zkstark.config import StarkConfig
from zkstark.errors import FieldDivisionError, ProofError
from zkstark.primitives.field import is_power_of_two
from zkstark.primitives.merkle_tree import leaf_bytes, verify
from zkstark.protocol.proof import TRACE_LAYER, Proof, QueryProof
from zkstark.protocol.setup import StarkSetup

logger = logging.getLogger(__name__)

# Trace openings per query: x, g*x, g^2*x
TRACE_OPENINGS = 3


class StarkVerifier:
    """Verifier for the square-Fibonacci AIR.

    Args:
        config: Proof system configuration (validated here)

    Raises:
        ConfigError: If the configuration is invalid
    """

    def __init__(self, config: StarkConfig) -> None:
        self.setup = StarkSetup.from_config(config)
        self.config = config
        self.field = self.setup.field
        self.domains = self.setup.domains
        self.air = self.setup.air

    # --- Entry Points ---

    def verify(self, proof: Proof) -> bool:
        """Return True when the proof is valid."""
        try:
            self.check(proof)
        except ProofError as e:
            logger.warning("proof rejected: %s", e)
            return False
        logger.info("proof accepted")
        return True

    def check(self, proof: Proof) -> None:
        """Full verification.

        Raises:
            ProofError: With the reason for rejection
        """
        self.check_structure(proof)
        setup, domains = self.setup, self.domains

        if not np.array_equal(proof.fri_domains[0], domains.evaluation_domain):
            raise ProofError("first FRI domain is not the evaluation coset")

        channel = setup.new_channel()
        weights = setup.begin_transcript(channel, proof.public_inputs, proof.trace_root)
        indices = setup.fri.check(proof.fri_proof(), channel)
        logger.debug("FRI verified, checking %d trace queries", len(indices))

        self._check_trace_queries(proof, indices, weights)

        if channel.digest() != proof.final_digest:
            raise ProofError("transcript digest does not match")

    def check_structure(self, proof: Proof) -> None:
        """Shape checks that need no transcript.

        Raises:
            ProofError: On the first structural mismatch
        """
        if not isinstance(proof.trace_root, (bytes, bytearray)) or len(proof.trace_root) == 0:
            raise ProofError("empty trace commitment")
        if len(proof.public_inputs) != 2:
            raise ProofError(f"expected 2 public inputs, got {len(proof.public_inputs)}")
        for x in proof.public_inputs:
            if type(x) is not self.field:
                raise ProofError("public input belongs to a different field")

        n_layers = len(proof.fri_roots)
        if n_layers == 0:
            raise ProofError("proof has no FRI layers")
        if len(proof.fri_domains) != n_layers or len(proof.fri_values) != n_layers:
            raise ProofError(
                f"{n_layers} FRI roots but {len(proof.fri_domains)} domains and {len(proof.fri_values)} value lists"
            )
        for i, (domain, values) in enumerate(zip(proof.fri_domains, proof.fri_values)):
            if type(domain) is not self.field or type(values) is not self.field:
                raise ProofError(f"FRI layer {i} belongs to a different field")
            if len(domain) != len(values):
                raise ProofError(f"FRI layer {i} has {len(values)} values over {len(domain)} points")
            if i > 0 and 2 * len(domain) != len(proof.fri_domains[i - 1]):
                raise ProofError(f"FRI layer {i} does not halve layer {i - 1}")
        if len(proof.fri_domains[0]) != self.domains.evaluation_size or not is_power_of_two(len(proof.fri_domains[0])):
            raise ProofError(
                f"first FRI layer has size {len(proof.fri_domains[0])}, expected {self.domains.evaluation_size}"
            )
        if len(proof.fri_domains[-1]) != 1:
            raise ProofError(f"final FRI layer has size {len(proof.fri_domains[-1])}, expected 1")

        if len(proof.trace_queries) != TRACE_OPENINGS * self.config.fri_queries:
            raise ProofError(
                f"expected {TRACE_OPENINGS * self.config.fri_queries} trace openings, got {len(proof.trace_queries)}"
            )
        if not isinstance(proof.final_digest, str) or not proof.final_digest:
            raise ProofError("missing transcript digest")

    # --- Trace Openings ---

    def _check_trace_queries(self, proof: Proof, indices: List[int], weights: List) -> None:
        domains, air = self.domains, self.air
        size = domains.evaluation_size
        composition = proof.fri_values[0]

        for q, index in enumerate(indices):
            openings = proof.trace_queries[q * TRACE_OPENINGS:(q + 1) * TRACE_OPENINGS]
            for step, qp in enumerate(openings):
                self._check_trace_opening(proof, qp, (index + step * domains.blowup) % size)

            f_x, f_gx, f_ggx = (qp.value for qp in openings)
            x = domains.evaluation_domain[index]
            try:
                expected = air.composition_at(x, f_x, f_gx, f_ggx, proof.public_inputs, weights)
            except FieldDivisionError as e:
                raise ProofError(f"query {index} lies on the trace domain") from e
            if expected != composition[index]:
                raise ProofError(f"query {index}: composition does not match the first FRI layer")

    def _check_trace_opening(self, proof: Proof, qp: QueryProof, position: int) -> None:
        if not isinstance(qp, QueryProof) or not isinstance(qp.path, list):
            raise ProofError(f"malformed trace opening at {position}")
        if qp.layer_index != TRACE_LAYER:
            raise ProofError(f"trace opening tagged with layer {qp.layer_index}")
        if qp.query_index != position:
            raise ProofError(f"trace opening at {qp.query_index}, expected {position}")
        if type(qp.value) is not self.field or type(qp.point) is not self.field:
            raise ProofError("trace opening belongs to a different field")
        if qp.point != self.domains.evaluation_domain[position]:
            raise ProofError(f"trace opening at {position} has the wrong domain point")
        if not verify(proof.trace_root, leaf_bytes(qp.value), qp.path, position, self.setup.hasher):
            raise ProofError(f"trace Merkle path at {position} does not verify")


def verify_proof(config: StarkConfig, proof: Proof) -> bool:
    """Convenience wrapper: StarkVerifier(config).verify(proof)."""
    return StarkVerifier(config).verify(proof)
