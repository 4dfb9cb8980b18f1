"""Tests for FRI folding, commitment and verification."""

import dataclasses
import logging
from fractions import Fraction

import numpy as np
import pytest

from zkstark.errors import DomainError, ProofError
from zkstark.primitives.channel import Channel
from zkstark.primitives.fft import evaluate_on_domain, interpolate_from_domain
from zkstark.primitives.field import generator, powers, root_of_unity
from zkstark.primitives.hashing import SHA3, get_hasher
from zkstark.primitives.merkle_tree import ProofNode
from zkstark.primitives.polynomial import Polynomial
from zkstark.primitives.reed_solomon import ReedSolomonCode
from zkstark.protocol.fri import FRI, FriProtocol
from zkstark.protocol.proof import QueryProof

SIZE = 64
DEGREE_BOUND = 16
NUM_QUERIES = 4


def coset(gf, size):
    return powers(root_of_unity(gf, size), size) * generator(gf)


@pytest.fixture(scope="module")
def hasher():
    return get_hasher(SHA3)


@pytest.fixture(scope="module")
def fri(hasher):
    return FriProtocol(hasher, NUM_QUERIES, degree_bound=DEGREE_BOUND)


@pytest.fixture(scope="module")
def low_degree(gf):
    poly = Polynomial(gf.Random(DEGREE_BOUND))
    return evaluate_on_domain(poly, SIZE, generator(gf))


@pytest.fixture(scope="module")
def proof(gf, fri, low_degree):
    return fri.prove(low_degree, coset(gf, SIZE), Channel(SHA3))


class TestFolding:

    def test_next_domain(self, gf) -> None:
        domain = coset(gf, SIZE)
        assert np.array_equal(FRI.next_domain(domain), coset(gf, SIZE // 2) * generator(gf))

    def test_fold_halves_degree(self, gf) -> None:
        offset = generator(gf)
        values = evaluate_on_domain(Polynomial(gf.Random(DEGREE_BOUND)), SIZE, offset)
        folded = FRI.fold(values, coset(gf, SIZE), gf(12345))
        assert len(folded) == SIZE // 2
        assert interpolate_from_domain(folded, offset ** 2).degree() < DEGREE_BOUND // 2

    def test_fold_of_constant_is_constant(self, gf) -> None:
        values = gf.Ones(8) * gf(42)
        folded = FRI.fold(values, coset(gf, 8), gf(99))
        assert np.array_equal(folded, gf.Ones(4) * gf(42))

    def test_fold_value_matches_fold(self, gf) -> None:
        domain = coset(gf, 16)
        values = gf.Random(16)
        alpha = gf(7)
        folded = FRI.fold(values, domain, alpha)
        for i in range(8):
            assert FRI.fold_value(domain[i], values[i], values[i + 8], alpha) == folded[i]


class TestCommit:

    def test_layer_sizes(self, proof) -> None:
        assert [len(v) for v in proof.values] == [64, 32, 16, 8, 4, 2, 1]
        assert proof.num_layers == 7
        assert len(proof.query_indices) == NUM_QUERIES
        assert len(proof.query_proofs) == NUM_QUERIES * (2 * 6 + 1)

    def test_final_layers_constant(self, proof) -> None:
        # Below |D0| / degree_bound the folded function is a constant
        assert np.all(proof.values[-3] == proof.values[-3][0])

    def test_deterministic(self, gf, fri, low_degree, proof) -> None:
        again = fri.prove(low_degree, coset(gf, SIZE), Channel(SHA3))
        assert again.roots == proof.roots
        assert again.query_indices == proof.query_indices

    def test_rate_too_high(self, gf, hasher) -> None:
        fri = FriProtocol(hasher, NUM_QUERIES, degree_bound=40)
        with pytest.raises(DomainError):
            fri.commit(gf.Random(SIZE), coset(gf, SIZE), Channel())

    def test_rate_warning(self, gf, hasher, caplog) -> None:
        fri = FriProtocol(hasher, NUM_QUERIES, degree_bound=SIZE // 2)
        with caplog.at_level(logging.WARNING, logger="zkstark.protocol.fri"):
            fri.check_rate(SIZE)
        assert "recommended" in caplog.text

    def test_size_errors(self, gf, fri) -> None:
        with pytest.raises(DomainError):
            fri.commit(gf.Random(48), gf.Random(48), Channel())
        with pytest.raises(DomainError):
            fri.commit(gf.Random(64), coset(gf, 32), Channel())

    def test_needs_queries(self, hasher) -> None:
        with pytest.raises(DomainError):
            FriProtocol(hasher, 0)


class TestVerify:

    def test_accepts_low_degree(self, fri, proof) -> None:
        assert fri.verify(proof, Channel(SHA3))
        assert fri.check(proof, Channel(SHA3)) == proof.query_indices

    def test_rejects_high_degree(self, gf, fri) -> None:
        values = evaluate_on_domain(Polynomial(gf.Random(SIZE // 2)), SIZE, generator(gf))
        proof = fri.prove(values, coset(gf, SIZE), Channel(SHA3))
        assert not fri.verify(proof, Channel(SHA3))

    def test_rejects_perturbed_value(self, gf, fri, low_degree) -> None:
        values = low_degree.copy()
        values[3] = values[3] + gf(1)
        code = ReedSolomonCode(coset(gf, SIZE), Fraction(DEGREE_BOUND, SIZE))
        assert code.is_in_code(low_degree)
        assert code.distance_to_code(values) == Fraction(1, SIZE)
        proof = fri.prove(values, coset(gf, SIZE), Channel(SHA3))
        assert not fri.verify(proof, Channel(SHA3))

    def test_rejects_different_transcript(self, fri, proof) -> None:
        channel = Channel(SHA3)
        channel.send(b"something else")
        assert not fri.verify(proof, channel)

    @pytest.mark.parametrize("layer", [0, 1, 3, 6])
    def test_rejects_tampered_root(self, fri, proof, layer: int) -> None:
        roots = list(proof.roots)
        roots[layer] = bytes([roots[layer][0] ^ 1]) + roots[layer][1:]
        assert not fri.verify(dataclasses.replace(proof, roots=roots), Channel(SHA3))

    def test_rejects_tampered_layer(self, gf, fri, proof) -> None:
        values = list(proof.values)
        values[2] = values[2].copy()
        values[2][0] = values[2][0] + gf(1)
        assert not fri.verify(dataclasses.replace(proof, values=values), Channel(SHA3))

    def test_rejects_tampered_opening(self, fri, proof) -> None:
        openings = list(proof.query_proofs)
        qp = openings[0]
        path = list(qp.path)
        path[0] = ProofNode(bytes(len(path[0].sibling)), path[0].is_right)
        openings[0] = dataclasses.replace(qp, path=path)
        assert not fri.verify(dataclasses.replace(proof, query_proofs=openings), Channel(SHA3))

    def test_rejects_wrong_opening_position(self, fri, proof) -> None:
        openings = list(proof.query_proofs)
        qp = openings[0]
        openings[0] = QueryProof(qp.layer_index, (qp.query_index + 1) % SIZE, qp.point, qp.value, qp.path)
        assert not fri.verify(dataclasses.replace(proof, query_proofs=openings), Channel(SHA3))

    @pytest.mark.parametrize("attr", ["value", "point"])
    def test_rejects_integer_opening(self, fri, proof, attr: str) -> None:
        """An opening equal to the committed value but not a field element is rejected, not raised."""
        openings = list(proof.query_proofs)
        qp = openings[0]
        openings[0] = dataclasses.replace(qp, **{attr: int(getattr(qp, attr))})
        assert not fri.verify(dataclasses.replace(proof, query_proofs=openings), Channel(SHA3))

    def test_rejects_malformed_opening(self, fri, proof) -> None:
        openings = list(proof.query_proofs)
        openings[1] = dataclasses.replace(openings[1], path=None)
        assert not fri.verify(dataclasses.replace(proof, query_proofs=openings), Channel(SHA3))
        openings[1] = "not an opening"
        assert not fri.verify(dataclasses.replace(proof, query_proofs=openings), Channel(SHA3))

    def test_rejects_plain_lists(self, gf, fri, proof) -> None:
        values = [list(int(v) for v in proof.values[0])] + list(proof.values[1:])
        assert not fri.verify(dataclasses.replace(proof, values=values), Channel(SHA3))

    def test_rejects_missing_openings(self, fri, proof) -> None:
        short = dataclasses.replace(proof, query_proofs=proof.query_proofs[:-1])
        with pytest.raises(ProofError):
            fri.check(short, Channel(SHA3))

    def test_rejects_wrong_indices(self, fri, proof) -> None:
        indices = [(i + 1) % SIZE for i in proof.query_indices]
        with pytest.raises(ProofError):
            fri.check(dataclasses.replace(proof, query_indices=indices), Channel(SHA3))

    def test_rejects_bad_structure(self, gf, fri, proof) -> None:
        with pytest.raises(ProofError):
            fri.check_structure(dataclasses.replace(proof, roots=[]))
        with pytest.raises(ProofError):
            fri.check_structure(dataclasses.replace(proof, values=proof.values[:-1], domains=proof.domains[:-1],
                                                    roots=proof.roots[:-1]))
        with pytest.raises(ProofError):
            fri.check_structure(dataclasses.replace(proof, roots=[b""] + proof.roots[1:]))

    def test_rejection_is_logged(self, fri, proof, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="zkstark.protocol.fri"):
            fri.verify(dataclasses.replace(proof, roots=proof.roots[::-1]), Channel(SHA3))
        assert "rejected" in caplog.text
