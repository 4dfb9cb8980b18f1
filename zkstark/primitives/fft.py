"""Radix-2 Cooley-Tukey FFT over prime fields.

Converts between coefficient form and evaluation form over a multiplicative
subgroup (or a coset of one) of power-of-two order. Each butterfly stage is a
single vectorised galois operation over all blocks of that stage.
"""

import numpy as np

from zkstark.errors import DomainError, ErrorKind
from zkstark.primitives.field import Field, inverse, is_power_of_two, log2, powers, root_of_unity
from zkstark.primitives.polynomial import Polynomial


# --- Module-Level Transforms ---

def bit_reverse_indices(n: int) -> np.ndarray:
    """Index permutation i -> reverse of the log2(n)-bit binary representation of i."""
    bits = log2(n)
    idx = np.arange(n, dtype=np.int64)
    rev = np.zeros(n, dtype=np.int64)
    for b in range(bits):
        rev |= ((idx >> b) & 1) << (bits - 1 - b)
    return rev


def bit_reverse_permutation(values):
    return values[bit_reverse_indices(len(values))]


def fft(coeffs, omega):
    """Evaluate coefficients at omega^0, ..., omega^(n-1).

    Raises:
        DomainError: If n is not a power of two or omega is not a primitive n-th root
    """
    n = len(coeffs)
    _check_root(omega, n)
    return _butterflies(coeffs, powers(omega, max(n // 2, 1)))


def ifft(values, omega):
    """Inverse of fft(): recover coefficients from evaluations at powers of omega."""
    n = len(values)
    _check_root(omega, n)
    n_inv = inverse(type(values)(n))
    return _butterflies(values, powers(inverse(omega), max(n // 2, 1))) * n_inv


# --- FFT Engine ---

class FFT:
    """FFT engine for a fixed domain size with precomputed twiddle factors."""

    def __init__(self, field: Field, size: int) -> None:
        if not is_power_of_two(size):
            raise DomainError(f"FFT size {size} is not a power of two", ErrorKind.NOT_POWER_OF_TWO)

        self.field = field
        self.n = size
        self.n_bits = log2(size)
        self.omega = root_of_unity(field, size)
        self.omega_inv = inverse(self.omega)
        self.n_inv = inverse(field(size))

        half = max(size // 2, 1)
        self.roots = powers(self.omega, half)
        self.roots_inv = powers(self.omega_inv, half)

    def fft(self, coeffs):
        """Forward FFT: coefficients -> evaluations (zero-padded to the domain size)."""
        return _butterflies(self._pad(coeffs), self.roots)

    def ifft(self, values):
        """Inverse FFT: evaluations -> coefficients."""
        if len(values) != self.n:
            raise DomainError(f"expected {self.n} evaluations, got {len(values)}", ErrorKind.LENGTH_MISMATCH)
        return _butterflies(values, self.roots_inv) * self.n_inv

    def coset_fft(self, coeffs, offset):
        """Evaluate at offset * omega^i."""
        return self.fft(self._pad(coeffs) * powers(offset, self.n))

    def coset_ifft(self, values, offset):
        """Interpolate evaluations taken at offset * omega^i."""
        return self.ifft(values) * powers(inverse(offset), self.n)

    def extend(self, values, extended_size: int, offset=None):
        """Low-degree extension from this domain to a (coset of a) larger domain."""
        assert extended_size >= self.n, "Extended size must be >= original size"
        coeffs = self.ifft(values)
        engine = FFT(self.field, extended_size)
        if offset is None:
            return engine.fft(coeffs)
        return engine.coset_fft(coeffs, offset)

    def domain(self, offset=None):
        """Points omega^i, or offset * omega^i for a coset."""
        points = powers(self.omega, self.n)
        return points if offset is None else points * offset

    def _pad(self, coeffs):
        if len(coeffs) > self.n:
            raise DomainError(
                f"{len(coeffs)} coefficients do not fit a domain of size {self.n}", ErrorKind.LENGTH_MISMATCH
            )
        out = self.field.Zeros(self.n)
        out[: len(coeffs)] = coeffs
        return out


# --- Polynomial Helpers ---

def evaluate_on_domain(poly: Polynomial, size: int, offset=None):
    """Evaluate a polynomial over the size-n subgroup (or its coset)."""
    engine = FFT(poly.field, size)
    if offset is None:
        return engine.fft(poly.coeffs)
    return engine.coset_fft(poly.coeffs, offset)


def interpolate_from_domain(values, offset=None) -> Polynomial:
    """Recover the polynomial of degree < n from evaluations over the subgroup (or coset)."""
    engine = FFT(type(values), len(values))
    if offset is None:
        return Polynomial(engine.ifft(values))
    return Polynomial(engine.coset_ifft(values, offset))


# --- Helpers ---

def _check_root(omega, n: int) -> None:
    if not is_power_of_two(n):
        raise DomainError(f"FFT size {n} is not a power of two", ErrorKind.NOT_POWER_OF_TWO)
    if omega ** n != 1 or (n > 1 and omega ** (n // 2) == 1):
        raise DomainError(f"{int(omega)} is not a primitive {n}-th root of unity", ErrorKind.NO_ROOT_OF_UNITY)


def _butterflies(values, roots):
    """Iterative decimation-in-time butterflies; roots[k] = w^k for k < n/2."""
    field = type(values)
    n = len(values)
    a = bit_reverse_permutation(values)

    m = 2
    while m <= n:
        half = m // 2
        twiddles = roots[:: n // m][:half]
        blocks = a.reshape(n // m, m)
        u = blocks[:, :half]
        v = blocks[:, half:] * twiddles

        out = field.Zeros((n // m, m))
        out[:, :half] = u + v
        out[:, half:] = u - v
        a = out.reshape(n)
        m *= 2
    return a
