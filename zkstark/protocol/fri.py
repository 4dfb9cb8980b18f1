"""FRI low-degree test.

Commit phase: Merkle-commit the current layer, send its root, draw a folding
challenge alpha and fold

    f'(x^2) = (f(x) + f(-x)) / 2 + alpha * (f(x) - f(-x)) / (2x)

pairing domain index i with i + n/2 (the point -x). The folded domain is the
squares of the first half. This repeats until one value is left, which is
sent in the clear.

Query phase: for each query index, open the queried point and its partner
at every folding layer, then the final value.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import galois
import numpy as np

from zkstark.errors import DomainError, ErrorKind, FieldDivisionError, ProofError
from zkstark.primitives.batch import parallel_batch_inverse
from zkstark.primitives.channel import Channel
from zkstark.primitives.field import inverse, is_power_of_two
from zkstark.primitives.hashing import Hasher
from zkstark.primitives.merkle_tree import MerkleTree, commit_elements, leaf_bytes, verify
from zkstark.protocol.proof import FriProof, QueryProof

logger = logging.getLogger(__name__)

# --- Constants ---

MAX_RATE = 1 / 2
RECOMMENDED_RATE = 1 / 4


# --- Layers ---

@dataclass
class FriLayer:
    """Committed FRI layer: domain, values over it, and their Merkle tree."""
    domain: object
    values: object
    tree: MerkleTree

    @property
    def root(self) -> bytes:
        return self.tree.root

    @property
    def size(self) -> int:
        return len(self.values)


# --- Folding ---

class FRI:
    """FRI folding arithmetic."""

    @staticmethod
    def next_domain(domain):
        """Squares of the first half: {x^2} for the pairs {x, -x}."""
        half = len(domain) // 2
        return domain[:half] ** 2

    @staticmethod
    def fold(values, domain, alpha):
        """Fold a layer of size n into size n/2 with challenge alpha (vectorised)."""
        n = len(values)
        assert n == len(domain) and n % 2 == 0, "fold needs an even layer matching its domain"
        field = type(values)
        half = n // 2

        x = domain[:half]
        f_x = values[:half]
        f_neg_x = values[half:]
        two_inv = inverse(field(2))
        return (f_x + f_neg_x) * two_inv + alpha * (f_x - f_neg_x) * parallel_batch_inverse(x + x)

    @staticmethod
    def fold_value(x, f_x, f_neg_x, alpha):
        """Fold a single pair {x, -x}."""
        field = type(x)
        return (f_x + f_neg_x) * inverse(field(2)) + alpha * (f_x - f_neg_x) * inverse(x + x)


# --- FRI Protocol ---

class FriProtocol:
    """Commit, query and verify FRI proofs over a given hasher.

    Args:
        hasher: Hash used for layer Merkle trees
        num_queries: Query indices drawn after the commit phase
        degree_bound: Strict degree bound of the committed function, if known
    """

    def __init__(self, hasher: Hasher, num_queries: int, degree_bound: Optional[int] = None) -> None:
        if num_queries <= 0:
            raise DomainError(f"FRI needs at least one query, got {num_queries}", ErrorKind.LENGTH_MISMATCH)
        self.hasher = hasher
        self.num_queries = num_queries
        self.degree_bound = degree_bound

    def check_rate(self, size: int) -> None:
        """Reject rate > 1/2, warn above the recommended 1/4.

        Raises:
            DomainError: If degree_bound / size exceeds 1/2
        """
        if self.degree_bound is None:
            return
        rate = self.degree_bound / size
        if rate > MAX_RATE:
            raise DomainError(f"FRI rate {rate} exceeds {MAX_RATE}", ErrorKind.LENGTH_MISMATCH)
        if rate > RECOMMENDED_RATE:
            logger.warning("FRI rate %s is above the recommended %s", rate, RECOMMENDED_RATE)

    # --- Commit Phase ---

    def commit(self, values, domain, channel: Channel) -> List[FriLayer]:
        """Commit-fold until a single value remains.

        Raises:
            DomainError: If the layer size is not a power of two or does not match the domain
        """
        if not is_power_of_two(len(values)):
            raise DomainError(f"FRI domain size {len(values)} is not a power of two", ErrorKind.NOT_POWER_OF_TWO)
        if len(values) != len(domain):
            raise DomainError(
                f"{len(values)} values over a domain of size {len(domain)}", ErrorKind.LENGTH_MISMATCH
            )
        self.check_rate(len(values))
        field = type(values)

        layers: List[FriLayer] = []
        while True:
            layers.append(FriLayer(domain, values, commit_elements(values, self.hasher)))
            if len(values) == 1:
                channel.send_element(values[0])
                break

            channel.send(layers[-1].root)
            alpha = channel.receive_random_field_element(field)
            logger.debug("FRI layer %d: size %d", len(layers) - 1, len(values))
            values = FRI.fold(values, domain, alpha)
            domain = FRI.next_domain(domain)
        return layers

    def sample_indices(self, channel: Channel, size: int) -> List[int]:
        return channel.receive_random_ints(0, size - 1, self.num_queries)

    # --- Query Phase ---

    def query(self, layers: List[FriLayer], index: int) -> List[QueryProof]:
        """Openings for one query index across all layers."""
        proofs: List[QueryProof] = []
        for layer_index, layer in enumerate(layers):
            n = layer.size
            idx = index % n
            proofs.append(self._open(layer, layer_index, idx))
            if n > 1:
                proofs.append(self._open(layer, layer_index, (idx + n // 2) % n))
        return proofs

    @staticmethod
    def _open(layer: FriLayer, layer_index: int, idx: int) -> QueryProof:
        return QueryProof(
            layer_index=layer_index,
            query_index=idx,
            point=layer.domain[idx],
            value=layer.values[idx],
            path=layer.tree.prove(idx),
        )

    def prove(self, values, domain, channel: Channel) -> FriProof:
        layers = self.commit(values, domain, channel)
        indices = self.sample_indices(channel, len(values))
        query_proofs = [qp for index in indices for qp in self.query(layers, index)]
        return FriProof(
            domains=[layer.domain for layer in layers],
            values=[layer.values for layer in layers],
            roots=[layer.root for layer in layers],
            query_proofs=query_proofs,
            query_indices=indices,
        )

    # --- Verification ---

    def verify(self, proof: FriProof, channel: Channel) -> bool:
        try:
            self.check(proof, channel)
        except ProofError as e:
            logger.warning("FRI proof rejected: %s", e)
            return False
        return True

    def check(self, proof: FriProof, channel: Channel) -> List[int]:
        """Re-verify a FRI proof against a channel positioned where the prover's was.

        Returns:
            The replayed query indices

        Raises:
            ProofError: On the first failed check
        """
        self.check_structure(proof)
        field = type(proof.values[0])
        if not issubclass(field, galois.FieldArray) or type(proof.domains[0]) is not field:
            raise ProofError("first layer is not an array of field elements")
        size = len(proof.values[0])
        try:
            self.check_rate(size)
        except DomainError as e:
            raise ProofError(str(e)) from e

        # Domains must fold into each other
        for i in range(1, proof.num_layers):
            if type(proof.domains[i]) is not field or not np.array_equal(
                proof.domains[i], FRI.next_domain(proof.domains[i - 1])
            ):
                raise ProofError(f"layer {i} domain is not the square of layer {i - 1}")

        # Every root must commit to its layer
        for i, (values, root) in enumerate(zip(proof.values, proof.roots)):
            if type(values) is not field:
                raise ProofError(f"layer {i} values belong to a different field")
            if commit_elements(values, self.hasher).root != root:
                raise ProofError(f"layer {i} Merkle root does not match its values")

        # Replay the commit phase and check every fold
        alphas = []
        for i in range(proof.num_layers - 1):
            channel.send(proof.roots[i])
            alpha = channel.receive_random_field_element(field)
            alphas.append(alpha)
            try:
                folded = FRI.fold(proof.values[i], proof.domains[i], alpha)
            except FieldDivisionError as e:
                raise ProofError(f"layer {i} domain contains zero") from e
            if not np.array_equal(folded, proof.values[i + 1]):
                raise ProofError(f"layer {i + 1} is not the fold of layer {i}")
        channel.send_element(proof.final_value)

        # Layers at or below |D0| / degree_bound encode constants
        if self.degree_bound is not None:
            limit = size // self.degree_bound
            for i, values in enumerate(proof.values):
                if len(values) <= limit and not np.all(values == values[0]):
                    raise ProofError(f"layer {i} of size {len(values)} is not constant")

        indices = self.sample_indices(channel, size)
        if proof.query_indices and list(proof.query_indices) != indices:
            raise ProofError("query indices do not match the transcript")
        self.check_queries(proof, indices, alphas)
        return indices

    def check_structure(self, proof: FriProof) -> None:
        """Shape checks: non-empty roots, matching lengths, strict halving, final size 1."""
        n_layers = len(proof.roots)
        if n_layers == 0:
            raise ProofError("FRI proof has no layers")
        if len(proof.domains) != n_layers or len(proof.values) != n_layers:
            raise ProofError(
                f"FRI proof has {n_layers} roots, {len(proof.domains)} domains and {len(proof.values)} value lists"
            )
        for i, root in enumerate(proof.roots):
            if not isinstance(root, (bytes, bytearray)) or len(root) == 0:
                raise ProofError(f"layer {i} has an empty Merkle root")
        for i, (domain, values) in enumerate(zip(proof.domains, proof.values)):
            if len(domain) != len(values):
                raise ProofError(f"layer {i} has {len(values)} values over {len(domain)} points")
            if i > 0 and 2 * len(values) != len(proof.values[i - 1]):
                raise ProofError(f"layer {i} does not halve layer {i - 1}")
        if not is_power_of_two(len(proof.values[0])):
            raise ProofError(f"first layer size {len(proof.values[0])} is not a power of two")
        if len(proof.values[-1]) != 1:
            raise ProofError(f"final layer has size {len(proof.values[-1])}, expected 1")

    def check_queries(self, proof: FriProof, indices: List[int], alphas: List) -> None:
        """Merkle paths and fold equations for every opened value."""
        per_query = 2 * (proof.num_layers - 1) + 1
        if len(proof.query_proofs) != per_query * len(indices):
            raise ProofError(
                f"expected {per_query * len(indices)} query proofs, got {len(proof.query_proofs)}"
            )

        for q, index in enumerate(indices):
            openings = proof.query_proofs[q * per_query:(q + 1) * per_query]
            previous = None
            for layer_index in range(proof.num_layers):
                n = len(proof.values[layer_index])
                idx = index % n
                expected = [idx] if n == 1 else [idx, (idx + n // 2) % n]
                opened = openings[2 * layer_index:2 * layer_index + len(expected)]
                for qp, position in zip(opened, expected):
                    self._check_opening(proof, qp, layer_index, position)

                # The fold of the previous pair must land on this layer's queried value
                if previous is not None and previous != opened[0].value:
                    raise ProofError(f"query {index}: fold equation fails at layer {layer_index}")

                if n > 1:
                    low, high = (opened[0], opened[1]) if idx < n // 2 else (opened[1], opened[0])
                    try:
                        previous = FRI.fold_value(low.point, low.value, high.value, alphas[layer_index])
                    except FieldDivisionError as e:
                        raise ProofError(f"query {index}: opened point is zero") from e

    def _check_opening(self, proof: FriProof, qp: QueryProof, layer_index: int, position: int) -> None:
        field = type(proof.values[layer_index])
        if not isinstance(qp, QueryProof) or not isinstance(qp.path, list):
            raise ProofError(f"layer {layer_index}: malformed opening")
        if type(qp.point) is not field or type(qp.value) is not field:
            raise ProofError(f"layer {layer_index}: opening belongs to a different field")
        if qp.layer_index != layer_index:
            raise ProofError(f"opening for layer {qp.layer_index}, expected layer {layer_index}")
        if qp.query_index != position:
            raise ProofError(f"layer {layer_index}: opening at {qp.query_index}, expected {position}")
        if qp.point != proof.domains[layer_index][position] or qp.value != proof.values[layer_index][position]:
            raise ProofError(f"layer {layer_index}: opening at {position} disagrees with the layer")
        if not verify(proof.roots[layer_index], leaf_bytes(qp.value), qp.path, position, self.hasher):
            raise ProofError(f"layer {layer_index}: Merkle path at {position} does not verify")
