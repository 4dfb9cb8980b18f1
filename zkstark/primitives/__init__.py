"""Primitives - Field algebra, hashing and commitment building blocks."""

from zkstark.primitives.barycentric import BarycentricInterpolator, barycentric_weights
from zkstark.primitives.batch import (
    batch_exponentiate,
    batch_inverse,
    batch_multiply,
    parallel_batch_inverse,
)
from zkstark.primitives.channel import Channel
from zkstark.primitives.fft import (
    FFT,
    bit_reverse_permutation,
    evaluate_on_domain,
    fft,
    ifft,
    interpolate_from_domain,
)
from zkstark.primitives.field import (
    BABY_BEAR_MODULUS,
    DEFAULT_MODULUS,
    Field,
    cbrt,
    divide,
    generator,
    inverse,
    prime_field,
    root_of_unity,
    sqrt,
)
from zkstark.primitives.hashing import (
    HASH_FUNCTIONS,
    POSEIDON,
    RESCUE,
    SHA256,
    SHA3,
    Hasher,
    get_hasher,
)
from zkstark.primitives.merkle_tree import MerkleTree, ProofNode, commit_elements, verify
from zkstark.primitives.polynomial import Point, Polynomial, interpolate, lagrange_interpolate
from zkstark.primitives.poseidon import GrainLFSR, Poseidon, PoseidonParameters, PoseidonSponge
from zkstark.primitives.reed_solomon import ReedSolomonCode
from zkstark.primitives.rescue import RescuePrime

__all__ = [
    # Field
    "Field",
    "DEFAULT_MODULUS",
    "BABY_BEAR_MODULUS",
    "prime_field",
    "inverse",
    "divide",
    "sqrt",
    "cbrt",
    "generator",
    "root_of_unity",
    # Polynomials and interpolation
    "Polynomial",
    "Point",
    "interpolate",
    "lagrange_interpolate",
    "BarycentricInterpolator",
    "barycentric_weights",
    "ReedSolomonCode",
    # FFT
    "FFT",
    "fft",
    "ifft",
    "bit_reverse_permutation",
    "evaluate_on_domain",
    "interpolate_from_domain",
    # Batch operations
    "batch_inverse",
    "parallel_batch_inverse",
    "batch_multiply",
    "batch_exponentiate",
    # Hashing
    "Hasher",
    "get_hasher",
    "HASH_FUNCTIONS",
    "SHA256",
    "SHA3",
    "POSEIDON",
    "RESCUE",
    "Poseidon",
    "PoseidonParameters",
    "PoseidonSponge",
    "GrainLFSR",
    "RescuePrime",
    # Merkle Tree
    "MerkleTree",
    "ProofNode",
    "commit_elements",
    "verify",
    # Transcript
    "Channel",
]
