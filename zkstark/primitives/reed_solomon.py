"""Reed-Solomon codes over an evaluation domain.

RS[D, rho] is the set of value vectors (f(d) for d in D) with deg f < rho * |D|.
FRI is a proximity test for exactly this code: an honest prover commits to a
codeword, and a cheating prover's vector is far from every codeword. The
helpers here measure that distance directly, so the soundness property can be
checked on small instances.

Decoding uses Berlekamp-Welch: find E monic of degree t and Q of degree
< t + k with Q(x_i) = y_i * E(x_i), then f = Q / E. It corrects up to
t = (n - k) // 2 errors, the unique decoding radius.
"""

from fractions import Fraction
from typing import Optional

import numpy as np

from zkstark.errors import ConfigError, DomainError, ErrorKind, InterpolationError
from zkstark.primitives.barycentric import BarycentricInterpolator
from zkstark.primitives.field import modulus, to_int_list
from zkstark.primitives.polynomial import Polynomial, lagrange_interpolate


class ReedSolomonCode:
    """RS code of a given rate over a fixed set of distinct evaluation points."""

    def __init__(self, domain, rate) -> None:
        n = len(domain)
        if n == 0:
            raise DomainError("Reed-Solomon code needs a non-empty domain", ErrorKind.LENGTH_MISMATCH)
        if len(set(to_int_list(domain))) != n:
            raise InterpolationError("Reed-Solomon domain points must be distinct")
        rate = Fraction(rate)
        if not 0 < rate <= 1:
            raise ConfigError(f"rate must be in (0, 1], got {rate}")
        k = int(rate * n)
        if k == 0:
            raise ConfigError(f"rate {rate} leaves no message symbols on {n} points")

        self.field = type(domain)
        self.domain = domain.copy()
        self.rate = rate
        self.dimension = k
        self.max_degree = k - 1

    def __repr__(self) -> str:
        return f"ReedSolomonCode(n={self.length}, k={self.dimension}, p={modulus(self.field)})"

    # --- Parameters ---

    @property
    def length(self) -> int:
        return len(self.domain)

    @property
    def minimum_distance(self) -> Fraction:
        """Relative minimum distance (n - k + 1) / n of an MDS code."""
        return Fraction(self.length - self.dimension + 1, self.length)

    @property
    def unique_decoding_radius(self) -> int:
        """Largest error count t with a unique nearest codeword."""
        return (self.length - self.dimension) // 2

    # --- Encoding ---

    def encode(self, poly: Polynomial):
        """Evaluations of poly over the domain.

        Raises:
            ValueError: If deg poly exceeds max_degree
        """
        if poly.degree() > self.max_degree:
            raise ValueError(f"degree {poly.degree()} exceeds the code's maximum {self.max_degree}")
        return poly.evaluate_many(self.domain)

    def interpolate(self, values) -> Polynomial:
        """The unique polynomial of degree < n through the values."""
        self._check_length(values)
        return lagrange_interpolate(self.domain, values)

    def is_in_code(self, values) -> bool:
        return self.interpolate(values).degree() <= self.max_degree

    def evaluate_at(self, values, point):
        """Evaluate the interpolant of values at an arbitrary point."""
        self._check_length(values)
        return BarycentricInterpolator(self.domain, values)(point)

    # --- Distance ---

    def hamming_distance(self, u, v) -> Fraction:
        """Fraction of positions where u and v differ."""
        self._check_length(u)
        self._check_length(v)
        return Fraction(int(np.count_nonzero(u != v)), self.length)

    def distance_to_code(self, values) -> Fraction:
        """Relative distance to the nearest codeword.

        Exact within the unique decoding radius. Beyond it the result is the
        lower bound (t + 1) / n, since no codeword lies within t errors.
        """
        poly = self.decode(values)
        if poly is None:
            return Fraction(self.unique_decoding_radius + 1, self.length)
        return self.hamming_distance(values, self.encode(poly))

    # --- Decoding ---

    def decode(self, values) -> Optional[Polynomial]:
        """Berlekamp-Welch decoding; None if more than t positions are wrong."""
        self._check_length(values)
        if self.is_in_code(values):
            return self.interpolate(values)

        field = self.field
        p = modulus(field)
        n, k, t = self.length, self.dimension, self.unique_decoding_radius
        if t == 0:
            return None

        # Unknowns: q_0..q_{t+k-1}, then e_0..e_{t-1} (E is monic of degree t)
        xs = to_int_list(self.domain)
        ys = to_int_list(values)
        rows = []
        for x, y in zip(xs, ys):
            x_pows = [pow(x, j, p) for j in range(t + k)]
            rows.append(x_pows + [(-y * x_pows[j]) % p for j in range(t)] + [y * pow(x, t, p) % p])

        num_unknowns = 2 * t + k
        reduced = field(rows).row_reduce(ncols=num_unknowns)
        solution = [0] * num_unknowns
        for row in reduced.view(np.ndarray).tolist():
            pivot = next((j for j, c in enumerate(row) if c != 0), None)
            if pivot is None:
                continue
            if pivot == num_unknowns:
                return None
            solution[pivot] = row[-1]

        q = Polynomial(solution[:t + k], field)
        e = Polynomial(solution[t + k:] + [1], field)
        poly, rem = divmod(q, e)
        if not rem.is_zero() or poly.degree() > self.max_degree:
            return None
        if self.hamming_distance(values, poly.evaluate_many(self.domain)) * n > t:
            return None
        return poly

    def _check_length(self, values) -> None:
        if len(values) != self.length:
            raise DomainError(
                f"{len(values)} values for a code of length {self.length}", ErrorKind.LENGTH_MISMATCH
            )
