"""STARK proof generation."""

import logging
from typing import List

from zkstark.config import StarkConfig
from zkstark.primitives.merkle_tree import commit_elements
from zkstark.protocol.air import square_fibonacci_trace
from zkstark.protocol.proof import TRACE_LAYER, Proof, QueryProof
from zkstark.protocol.setup import StarkSetup

logger = logging.getLogger(__name__)


class StarkProver:
    """Prover for the square-Fibonacci AIR.

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

    def generate_trace(self):
        """Trace of the recurrence filling every row of the trace domain but one."""
        return square_fibonacci_trace(self.field, self.air.num_rows)

    def prove(self, trace=None) -> Proof:
        """Generate a proof for a trace (the canonical trace when omitted).

        Raises:
            ConfigError: If the trace has the wrong field or length or breaks the recurrence
        """
        if trace is None:
            trace = self.generate_trace()
        self.air.check_trace(trace)

        setup, domains, air = self.setup, self.domains, self.air
        channel = setup.new_channel()
        public_inputs = air.public_inputs(trace)

        # --- Trace Commitment ---
        # Interpolate over the trace domain, extend to the coset, commit
        trace_poly = air.interpolate_trace(trace)
        trace_values = domains.evaluation_fft().coset_fft(trace_poly.coeffs, domains.offset)
        trace_tree = commit_elements(trace_values, setup.hasher)
        logger.debug("trace committed: %d rows extended to %d points", air.num_rows, domains.evaluation_size)

        # --- Composition ---
        weights = setup.begin_transcript(channel, public_inputs, trace_tree.root)
        composition = air.composition_values(trace_values, public_inputs, weights)

        # --- FRI ---
        fri_proof = setup.fri.prove(composition, domains.evaluation_domain, channel)
        logger.debug("FRI committed %d layers", fri_proof.num_layers)

        # --- Trace Openings ---
        # x, g*x and g^2*x for every query index
        size = domains.evaluation_size
        trace_queries: List[QueryProof] = []
        for index in fri_proof.query_indices:
            for step in range(3):
                position = (index + step * domains.blowup) % size
                trace_queries.append(QueryProof(
                    layer_index=TRACE_LAYER,
                    query_index=position,
                    point=domains.evaluation_domain[position],
                    value=trace_values[position],
                    path=trace_tree.prove(position),
                ))

        proof = Proof(
            public_inputs=public_inputs,
            trace_root=trace_tree.root,
            fri_domains=fri_proof.domains,
            fri_values=fri_proof.values,
            fri_roots=fri_proof.roots,
            query_proofs=fri_proof.query_proofs,
            trace_queries=trace_queries,
            final_digest=channel.digest(),
        )
        logger.info("proof generated: %d FRI layers, %d queries", proof.num_layers, len(fri_proof.query_indices))
        return proof


def prove(config: StarkConfig, trace=None) -> Proof:
    """Convenience wrapper: StarkProver(config).prove(trace)."""
    return StarkProver(config).prove(trace)
