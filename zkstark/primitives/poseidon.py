"""Poseidon algebraic sponge hash.

The permutation alternates RF/2 full rounds, RP partial rounds and RF/2 full
rounds. Every round adds its own row of round constants, applies the S-box
x^alpha (to every state element in a full round, to element 0 only in a
partial round) and multiplies by a Cauchy MDS matrix.

Round constants come from the Grain LFSR seeded with the parameter tuple, so
they are fully determined by (field, width, round counts, S-box exponent).

Two equivalent code paths exist: a scalar path on Python ints (one hash at a
time, used by the transcript and single Merkle nodes) and a batched path on
galois arrays of shape (batch, t) (used to hash whole Merkle levels at once).
"""

from collections import deque
from dataclasses import dataclass
from math import gcd
from typing import List, Optional, Sequence

import numpy as np

from zkstark.primitives.field import Field, modulus, to_int_list


# --- Parameters ---

@dataclass(frozen=True)
class PoseidonParameters:
    """Poseidon instance parameters.

    Attributes:
        security_level: Target security in bits
        field_bits: Bit length of the field modulus
        width: State width t
        rate: Absorbed elements per permutation (capacity = width - rate)
        full_rounds: RF, split evenly before and after the partial rounds
        partial_rounds: RP
        alpha: S-box exponent
    """
    security_level: int
    field_bits: int
    width: int
    rate: int
    full_rounds: int
    partial_rounds: int
    alpha: int = 5

    @property
    def capacity(self) -> int:
        return self.width - self.rate

    @property
    def num_rounds(self) -> int:
        return self.full_rounds + self.partial_rounds


def round_table(security_level: int, field_bits: int) -> tuple:
    """Return (width, rate, full_rounds, partial_rounds) for a security level and field size."""
    if security_level == 128 and field_bits >= 256:
        return 3, 2, 8, 83
    if security_level == 128 and field_bits >= 128:
        return 4, 3, 8, 84
    if security_level == 256 and field_bits >= 256:
        return 3, 2, 8, 170
    # Conservative default for small fields and other security levels
    return 3, 2, 8, 100


def sbox_exponent(p: int, alpha: int = 5) -> int:
    """Smallest odd exponent >= alpha for which x^alpha is a permutation of GF(p)."""
    while gcd(alpha, p - 1) != 1:
        alpha += 2
    return alpha


def poseidon_parameters(field: Field, security_level: int = 128) -> PoseidonParameters:
    """Derive Poseidon parameters for a field from the round table."""
    p = modulus(field)
    bits = p.bit_length()
    width, rate, full_rounds, partial_rounds = round_table(security_level, bits)
    return PoseidonParameters(
        security_level=security_level,
        field_bits=bits,
        width=width,
        rate=rate,
        full_rounds=full_rounds,
        partial_rounds=partial_rounds,
        alpha=sbox_exponent(p),
    )


# --- Grain LFSR ---

def _bits(value: int, width: int) -> List[int]:
    """Big-endian bit decomposition of value into `width` bits."""
    return [(value >> (width - 1 - i)) & 1 for i in range(width)]


class GrainLFSR:
    """80-bit Grain LFSR used to derive Poseidon round constants.

    Seed layout (80 bits): field type (2), S-box exponent (4), field bits (12),
    width (12), full rounds (10), partial rounds (10), then 30 ones. The first
    160 output bits are discarded.
    """

    STATE_BITS = 80
    WARMUP = 160
    PRIME_FIELD = 1

    def __init__(self, params: PoseidonParameters) -> None:
        seed = (
            _bits(self.PRIME_FIELD, 2)
            + _bits(params.alpha, 4)
            + _bits(params.field_bits, 12)
            + _bits(params.width, 12)
            + _bits(params.full_rounds, 10)
            + _bits(params.partial_rounds, 10)
            + [1] * 30
        )
        assert len(seed) == self.STATE_BITS
        self._state = deque(seed, maxlen=self.STATE_BITS)
        for _ in range(self.WARMUP):
            self.next_bit()

    def next_bit(self) -> int:
        """Clock once: b(i+80) = b(i+62) ^ b(i+51) ^ b(i+38) ^ b(i+23) ^ b(i+13) ^ b(i)."""
        s = self._state
        bit = s[62] ^ s[51] ^ s[38] ^ s[23] ^ s[13] ^ s[0]
        s.append(bit)
        return bit

    def sample_bit(self) -> int:
        """Draw bit pairs; output the second bit of the first pair whose first bit is 1."""
        while True:
            first = self.next_bit()
            second = self.next_bit()
            if first:
                return second

    def next_field_element(self, p: int) -> int:
        """Uniform integer in [0, p) by rejection sampling bit_length(p)-bit candidates."""
        n = p.bit_length()
        while True:
            value = 0
            for _ in range(n):
                value = (value << 1) | self.sample_bit()
            if value < p:
                return value


# --- MDS Matrix ---

def cauchy_mds(p: int, t: int) -> List[List[int]]:
    """Cauchy matrix M[i][j] = 1 / (x_i + y_j) with x_i = i + 1, y_j = t + j + 1."""
    return [[pow(i + 1 + t + j + 1, p - 2, p) for j in range(t)] for i in range(t)]


# --- Sponge Base ---

class AlgebraicHash:
    """Sponge over a width-t permutation: absorb `rate` elements at a time, output state[0].

    Subclasses provide _permute_ints(state) on a list of ints and
    permute_batch(states) on a (batch, width) galois array.
    """

    width: int
    rate: int

    def __init__(self, field: Field) -> None:
        self.field = field
        self.p = modulus(field)

    # --- Permutation ---

    def _permute_ints(self, state: List[int]) -> List[int]:
        raise NotImplementedError

    def permute_batch(self, states):
        raise NotImplementedError

    def permute(self, state):
        """Apply the permutation to a length-width galois array."""
        assert type(state) is self.field, "state belongs to a different field"
        assert len(state) == self.width, f"state must have {self.width} elements"
        return self.field(self._permute_ints(to_int_list(state)))

    # --- Hashing ---

    def hash_ints(self, inputs: Sequence[int]) -> int:
        """Hash canonical integers; the empty input hashes to 0."""
        if len(inputs) == 0:
            return 0
        p = self.p
        state = [0] * self.width
        for i in range(0, len(inputs), self.rate):
            for j, value in enumerate(inputs[i:i + self.rate]):
                state[j] = (state[j] + value) % p
            state = self._permute_ints(state)
        return state[0]

    def hash(self, inputs):
        """Hash a galois array (or sequence of elements) to a single field element."""
        if isinstance(inputs, np.ndarray):
            ints = to_int_list(inputs)
        else:
            ints = [int(x) for x in inputs]
        return self.field(self.hash_ints(ints))

    def hash_rows(self, rows: Sequence[Sequence[int]]) -> List[int]:
        """Hash many equal-length integer rows at once with the batched permutation."""
        if len(rows) == 0:
            return []
        n = len(rows[0])
        assert all(len(row) == n for row in rows), "batched rows must have equal length"
        if n == 0:
            return [0] * len(rows)

        p = self.p
        inputs = self.field([[v % p for v in row] for row in rows])
        states = self.field.Zeros((len(rows), self.width))
        for i in range(0, n, self.rate):
            chunk = inputs[:, i:i + self.rate]
            width = chunk.shape[1]
            states[:, :width] = states[:, :width] + chunk
            states = self.permute_batch(states)
        return to_int_list(states[:, 0])


# --- Poseidon ---

class Poseidon(AlgebraicHash):
    """Poseidon permutation and fixed-output hash over a prime field."""

    def __init__(self, field: Field, params: Optional[PoseidonParameters] = None, security_level: int = 128) -> None:
        super().__init__(field)
        if params is None:
            params = poseidon_parameters(field, security_level)
        assert params.full_rounds % 2 == 0, "full rounds must split evenly"
        assert gcd(params.alpha, self.p - 1) == 1, "S-box exponent must be coprime to p - 1"

        self.params = params
        self.width = params.width
        self.rate = params.rate
        self.alpha = params.alpha

        lfsr = GrainLFSR(params)
        self._rc_ints = [
            [lfsr.next_field_element(self.p) for _ in range(params.width)]
            for _ in range(params.num_rounds)
        ]
        self._mds_ints = cauchy_mds(self.p, params.width)

        self.round_constants = field(self._rc_ints)
        self.mds = field(self._mds_ints)

    def _is_full_round(self, rnd: int) -> bool:
        half = self.params.full_rounds // 2
        return rnd < half or rnd >= half + self.params.partial_rounds

    def _permute_ints(self, state: List[int]) -> List[int]:
        p, alpha = self.p, self.alpha
        for rnd, constants in enumerate(self._rc_ints):
            state = [(s + c) % p for s, c in zip(state, constants)]
            if self._is_full_round(rnd):
                state = [pow(s, alpha, p) for s in state]
            else:
                state[0] = pow(state[0], alpha, p)
            state = [sum(m * s for m, s in zip(row, state)) % p for row in self._mds_ints]
        return state

    def permute_batch(self, states):
        """Apply the permutation to every row of a (batch, width) galois array."""
        mds_t = self.mds.T
        for rnd in range(self.params.num_rounds):
            states = states + self.round_constants[rnd]
            if self._is_full_round(rnd):
                states = states ** self.alpha
            else:
                states[:, 0] = states[:, 0] ** self.alpha
            states = states @ mds_t
        return states


# --- Streaming Sponge ---

class PoseidonSponge:
    """Variable-length absorb / squeeze over a Poseidon permutation.

    Absorbing fills state[0..rate) and permutes when the rate is exhausted.
    Squeezing permutes first, then emits up to `rate` elements per permutation.
    Absorbing one chunk and squeezing one element reproduces Poseidon.hash.
    """

    def __init__(self, poseidon: Poseidon) -> None:
        self.poseidon = poseidon
        self.field = poseidon.field
        self._state = [0] * poseidon.width
        self._absorbed = 0
        self._squeezed = poseidon.rate

    def absorb(self, elements) -> None:
        p, rate = self.poseidon.p, self.poseidon.rate
        values = to_int_list(elements) if isinstance(elements, np.ndarray) else [int(e) for e in elements]
        for value in values:
            if self._absorbed == rate:
                self._state = self.poseidon._permute_ints(self._state)
                self._absorbed = 0
            self._state[self._absorbed] = (self._state[self._absorbed] + value) % p
            self._absorbed += 1
        # The next squeeze must permute over what was absorbed
        self._squeezed = rate

    def squeeze(self, n: int = 1):
        rate = self.poseidon.rate
        out = []
        while len(out) < n:
            if self._squeezed == rate:
                self._state = self.poseidon._permute_ints(self._state)
                self._squeezed = 0
            out.append(self._state[self._squeezed])
            self._squeezed += 1
        # Absorbing after a squeeze starts a fresh block
        self._absorbed = rate
        return self.field(out)
