"""Binary Merkle tree commitment over byte leaves."""

from dataclasses import dataclass
from typing import List, Sequence

from zkstark.primitives.field import elements_to_bytes, to_bytes
from zkstark.primitives.hashing import Hasher

# --- Type Aliases ---

MerkleRoot = bytes
MerklePath = List["ProofNode"]


# --- Data Classes ---

@dataclass(frozen=True)
class ProofNode:
    """One level of an authentication path.

    Attributes:
        sibling: Hash of the sibling node at this level
        is_right: True when the sibling sits to the right of the running hash
    """
    sibling: bytes
    is_right: bool


# --- Leaf Encoding ---

def leaf_bytes(x) -> bytes:
    """Canonical leaf encoding of a field element."""
    return to_bytes(x)


# --- Merkle Tree ---

class MerkleTree:
    """Immutable binary Merkle tree.

    Level 0 holds the leaf hashes, the last level holds the root. An odd node
    at any level is paired with itself. All levels are kept so proofs are
    O(log n) lookups.
    """

    def __init__(self, leaves: Sequence[bytes], hasher: Hasher) -> None:
        if len(leaves) == 0:
            raise ValueError("cannot build a Merkle tree with no leaves")

        self.hasher = hasher
        self.num_leaves = len(leaves)

        level = hasher.digest_many(list(leaves))
        levels = [level]
        while len(level) > 1:
            if len(level) % 2:
                level = level + [level[-1]]
            level = hasher.compress_many(level[0::2], level[1::2])
            levels.append(level)
        self._levels = levels

    # --- Accessors ---

    @property
    def root(self) -> MerkleRoot:
        return self._levels[-1][0]

    @property
    def levels(self) -> List[List[bytes]]:
        return [list(level) for level in self._levels]

    @property
    def height(self) -> int:
        """Number of hashing levels above the leaves."""
        return len(self._levels) - 1

    # --- Proofs ---

    def prove(self, index: int) -> MerklePath:
        """Authentication path from leaf `index` up to the root.

        Raises:
            IndexError: If index is outside [0, num_leaves)
        """
        if index < 0 or index >= self.num_leaves:
            raise IndexError(f"leaf index {index} out of range [0, {self.num_leaves})")

        path: MerklePath = []
        for level in self._levels[:-1]:
            if index % 2 == 0:
                sibling_index = index + 1 if index + 1 < len(level) else index
                path.append(ProofNode(level[sibling_index], True))
            else:
                path.append(ProofNode(level[index - 1], False))
            index //= 2
        return path


# --- Verification ---

def verify(root: bytes, leaf: bytes, proof: Sequence[ProofNode], index: int, hasher: Hasher) -> bool:
    """Recompute the path hash for a leaf and compare it to the root.

    Pure: returns False for any malformed or adversarial input instead of raising.
    """
    if index < 0 or not isinstance(root, (bytes, bytearray)):
        return False
    if index >> len(proof):
        return False

    current = hasher.digest(leaf)
    for node in proof:
        if not isinstance(node, ProofNode) or not hasher.is_digest(node.sibling):
            return False
        if node.is_right != (index % 2 == 0):
            return False
        if node.is_right:
            current = hasher.compress(current, node.sibling)
        else:
            current = hasher.compress(node.sibling, current)
        index //= 2
    return current == root


def commit_elements(values, hasher: Hasher) -> MerkleTree:
    """Merkle tree over the canonical byte encodings of a galois array."""
    return MerkleTree(elements_to_bytes(values), hasher)
