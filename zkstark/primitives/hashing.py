"""Byte-oriented hash backends for Merkle trees and the Fiat-Shamir channel.

Every backend exposes digest(data) -> 32 bytes and compress(left, right) for
Merkle nodes. General-purpose backends wrap hashlib. Algebraic backends pack
the input bytes into field elements, run the sponge, and left-pad the single
output element to 32 bytes.
"""

import hashlib
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from zkstark.primitives.field import DEFAULT_MODULUS, Field, modulus, prime_field
from zkstark.primitives.poseidon import AlgebraicHash, Poseidon
from zkstark.primitives.rescue import RescuePrime

logger = logging.getLogger(__name__)

# --- Hash Names ---

SHA256 = "sha256"
SHA3 = "sha3"
POSEIDON = "poseidon"
RESCUE = "rescue"

HASH_FUNCTIONS = (SHA256, SHA3, POSEIDON, RESCUE)
ALGEBRAIC_HASHES = (POSEIDON, RESCUE)

DIGEST_SIZE = 32


# --- Hasher Interface ---

class Hasher(ABC):
    """Byte hasher used for commitments and transcripts."""

    name: str = ""

    @abstractmethod
    def digest(self, data: bytes) -> bytes:
        """Hash arbitrary bytes to DIGEST_SIZE bytes."""

    def compress(self, left: bytes, right: bytes) -> bytes:
        """Two-to-one compression for Merkle nodes."""
        return self.digest(left + right)

    def is_digest(self, data: bytes) -> bool:
        """True if data could have been produced by digest or compress."""
        return isinstance(data, (bytes, bytearray)) and len(data) == DIGEST_SIZE

    def digest_many(self, items: Sequence[bytes]) -> List[bytes]:
        return [self.digest(item) for item in items]

    def compress_many(self, lefts: Sequence[bytes], rights: Sequence[bytes]) -> List[bytes]:
        return [self.compress(l, r) for l, r in zip(lefts, rights)]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class HashlibHasher(Hasher):
    """General-purpose hash from hashlib."""

    def __init__(self, name: str, constructor) -> None:
        self.name = name
        self._constructor = constructor

    def digest(self, data: bytes) -> bytes:
        return self._constructor(data).digest()


class SpongeHasher(Hasher):
    """Byte adapter around an algebraic sponge.

    Bytes are split into big-endian chunks of (bits(p) - 1) // 8 bytes, so
    every chunk is a canonical element, and the byte length is appended to
    separate inputs that differ only by trailing zeros.
    """

    def __init__(self, name: str, sponge: AlgebraicHash) -> None:
        self.name = name
        self.sponge = sponge
        self.field = sponge.field
        self.p = modulus(sponge.field)
        self.chunk_size = max(1, (self.p.bit_length() - 1) // 8)
        self.output_size = max(DIGEST_SIZE, (self.p.bit_length() + 7) // 8)

    def pack(self, data: bytes) -> List[int]:
        """Bytes -> canonical field integers (chunks, then the byte length)."""
        step = self.chunk_size
        elements = [int.from_bytes(data[i:i + step], "big") for i in range(0, len(data), step)]
        elements.append(len(data) % self.p)
        return elements

    def _encode(self, value: int) -> bytes:
        return value.to_bytes(self.output_size, "big")

    def digest(self, data: bytes) -> bytes:
        return self._encode(self.sponge.hash_ints(self.pack(data)))

    def is_digest(self, data: bytes) -> bool:
        """Digests are exactly output_size bytes encoding a canonical element."""
        return (
            isinstance(data, (bytes, bytearray))
            and len(data) == self.output_size
            and int.from_bytes(data, "big") < self.p
        )

    def _child(self, data: bytes) -> int:
        if not self.is_digest(data):
            raise ValueError(f"{self.name}: node is not a canonical {self.output_size}-byte digest")
        return int.from_bytes(data, "big")

    def compress(self, left: bytes, right: bytes) -> bytes:
        """Hash two child digests; each must be a canonical element so no two encodings collide.

        Raises:
            ValueError: If either child is not a canonical digest
        """
        return self._encode(self.sponge.hash_ints([self._child(left), self._child(right)]))

    def digest_many(self, items: Sequence[bytes]) -> List[bytes]:
        """Batch digest; items are grouped by length so each group runs one batched permutation."""
        groups: Dict[int, List[int]] = {}
        for i, item in enumerate(items):
            groups.setdefault(len(item), []).append(i)

        out: List[Optional[bytes]] = [None] * len(items)
        for indices in groups.values():
            rows = [self.pack(items[i]) for i in indices]
            for i, value in zip(indices, self.sponge.hash_rows(rows)):
                out[i] = self._encode(value)
        return out

    def compress_many(self, lefts: Sequence[bytes], rights: Sequence[bytes]) -> List[bytes]:
        rows = [[self._child(l), self._child(r)] for l, r in zip(lefts, rights)]
        return [self._encode(value) for value in self.sponge.hash_rows(rows)]


# --- Factory ---

def get_hasher(name: str = SHA3, field: Optional[Field] = None, security_level: int = 128) -> Hasher:
    """Return the hasher for a hash name.

    Algebraic hashers work over `field` (GF(DEFAULT_MODULUS) when omitted).
    Unknown names fall back to SHA3 with a warning.
    """
    key = (name or "").lower()
    if key == SHA256:
        return HashlibHasher(SHA256, hashlib.sha256)
    if key == SHA3:
        return HashlibHasher(SHA3, hashlib.sha3_256)
    if key in ALGEBRAIC_HASHES:
        if field is None:
            field = prime_field(DEFAULT_MODULUS)
        if key == POSEIDON:
            return SpongeHasher(POSEIDON, Poseidon(field, security_level=security_level))
        return SpongeHasher(RESCUE, RescuePrime(field, security_level=security_level))

    logger.warning("unknown hash function %r, falling back to %s", name, SHA3)
    return HashlibHasher(SHA3, hashlib.sha3_256)
