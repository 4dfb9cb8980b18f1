"""Tests for the Merkle tree commitment."""

import pytest

from zkstark.primitives.hashing import POSEIDON, SHA3, SHA256, get_hasher
from zkstark.primitives.merkle_tree import MerkleTree, ProofNode, commit_elements, leaf_bytes, verify


def make_leaves(n):
    return [f"leaf-{i}".encode() for i in range(n)]


def flip(data: bytes, position: int) -> bytes:
    return data[:position] + bytes([data[position] ^ 1]) + data[position + 1:]


@pytest.fixture(params=[SHA3, SHA256, POSEIDON])
def hasher(request, gf):
    return get_hasher(request.param, gf)


class TestMerkleTree:

    @pytest.mark.parametrize("n", [1, 2, 3, 5, 8, 13])
    def test_every_leaf_verifies(self, hasher, n: int) -> None:
        leaves = make_leaves(n)
        tree = MerkleTree(leaves, hasher)
        for i, leaf in enumerate(leaves):
            assert verify(tree.root, leaf, tree.prove(i), i, hasher)

    def test_single_leaf_root(self, hasher) -> None:
        tree = MerkleTree([b"only"], hasher)
        assert tree.root == hasher.digest(b"only")
        assert tree.height == 0
        assert tree.prove(0) == []

    def test_odd_node_is_duplicated(self, hasher) -> None:
        leaves = make_leaves(3)
        tree = MerkleTree(leaves, hasher)
        h = [hasher.digest(leaf) for leaf in leaves]
        expected = hasher.compress(hasher.compress(h[0], h[1]), hasher.compress(h[2], h[2]))
        assert tree.root == expected
        assert tree.height == 2
        assert len(tree.levels) == 3

    def test_empty_rejected(self, hasher) -> None:
        with pytest.raises(ValueError):
            MerkleTree([], hasher)

    @pytest.mark.parametrize("index", [-1, 4, 100])
    def test_prove_out_of_range(self, hasher, index: int) -> None:
        with pytest.raises(IndexError):
            MerkleTree(make_leaves(4), hasher).prove(index)

    def test_commit_elements(self, gf, hasher) -> None:
        values = gf([5, 6, 7, 8])
        tree = commit_elements(values, hasher)
        for i, v in enumerate(values):
            assert verify(tree.root, leaf_bytes(v), tree.prove(i), i, hasher)


class TestVerify:

    @pytest.mark.parametrize("n", [2, 5, 8])
    def test_flipped_sibling_rejected(self, hasher, n: int) -> None:
        leaves = make_leaves(n)
        tree = MerkleTree(leaves, hasher)
        for i, leaf in enumerate(leaves):
            path = tree.prove(i)
            for level, node in enumerate(path):
                for position in (0, len(node.sibling) - 1):
                    bad = list(path)
                    bad[level] = ProofNode(flip(node.sibling, position), node.is_right)
                    assert not verify(tree.root, leaf, bad, i, hasher)

    def test_wrong_leaf_rejected(self, hasher) -> None:
        leaves = make_leaves(4)
        tree = MerkleTree(leaves, hasher)
        assert not verify(tree.root, b"other", tree.prove(1), 1, hasher)

    def test_wrong_index_rejected(self, hasher) -> None:
        leaves = make_leaves(8)
        tree = MerkleTree(leaves, hasher)
        path = tree.prove(3)
        assert not verify(tree.root, leaves[3], path, 2, hasher)
        assert not verify(tree.root, leaves[3], path, 3 + 8, hasher)
        assert not verify(tree.root, leaves[3], path, -1, hasher)

    def test_truncated_path_rejected(self, hasher) -> None:
        leaves = make_leaves(8)
        tree = MerkleTree(leaves, hasher)
        assert not verify(tree.root, leaves[0], tree.prove(0)[:-1], 0, hasher)

    def test_malformed_input_returns_false(self, hasher) -> None:
        leaves = make_leaves(4)
        tree = MerkleTree(leaves, hasher)
        assert not verify(tree.root, leaves[0], [b"not a node", b"x"], 0, hasher)
        assert not verify("not bytes", leaves[0], tree.prove(0), 0, hasher)

    def test_aliased_sibling_rejected(self, gf) -> None:
        """A sibling re-encoded as value + p reduces to the same element but is not a digest."""
        hasher = get_hasher(POSEIDON, gf)
        leaves = make_leaves(8)
        tree = MerkleTree(leaves, hasher)
        path = tree.prove(5)
        assert verify(tree.root, leaves[5], path, 5, hasher)
        for level, node in enumerate(path):
            alias = (int.from_bytes(node.sibling, "big") + hasher.p).to_bytes(len(node.sibling), "big")
            bad = list(path)
            bad[level] = ProofNode(alias, node.is_right)
            assert not verify(tree.root, leaves[5], bad, 5, hasher)

    def test_wrong_sibling_length_rejected(self, hasher) -> None:
        leaves = make_leaves(4)
        tree = MerkleTree(leaves, hasher)
        path = tree.prove(0)
        bad = [ProofNode(b"\x00" + path[0].sibling, path[0].is_right)] + path[1:]
        assert not verify(tree.root, leaves[0], bad, 0, hasher)
