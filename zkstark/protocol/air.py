"""Algebraic intermediate representation of the square-Fibonacci recurrence.

    a[0] = 1, a[1] = 3141592, a[n + 2] = a[n + 1]^2 + a[n]^2

The trace has T = N - 1 rows placed on the trace domain g^0 ... g^(T-1),
where N is the trace domain size. The trace polynomial f is the unique
polynomial of degree <= N - 2 through those rows (see interpolate_trace).

Constraints, each turned into a polynomial quotient:
    boundary    p0 = (f(x) - a0) / (x - g^0)
    boundary    p1 = (f(x) - output) / (x - g^(T-1))
    transition  p2 = (f(g^2 x) - f(g x)^2 - f(x)^2) / prod_{i=0}^{T-3} (x - g^i)

The transition denominator is (x^N - 1) / ((x - g^(N-3)) (x - g^(N-2)) (x - g^(N-1))).
Every quotient has degree < N, so the composition sum(alpha_i * p_i) does too.

Three forms of the same constraints are provided: polynomial (exact division,
used for cross-checks), evaluation (vectorised over the coset, used by the
prover) and point (used by the verifier at each query).
"""

from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from zkstark.errors import ConfigError
from zkstark.primitives.batch import batch_multiply, parallel_batch_inverse
from zkstark.primitives.field import Field, inverse, modulus
from zkstark.primitives.polynomial import Polynomial
from zkstark.protocol.domains import StarkDomains

# --- Constants ---

FIB_SQUARE_A0 = 1
FIB_SQUARE_A1 = 3141592
NUM_CONSTRAINTS = 3


# --- Trace Generation ---

def square_fibonacci_trace(field: Field, n_rows: int, a0: int = FIB_SQUARE_A0, a1: int = FIB_SQUARE_A1):
    """Return the first n_rows terms of the recurrence as a galois array."""
    assert n_rows >= 2, "trace needs at least two rows"
    p = modulus(field)
    rows = [a0 % p, a1 % p]
    for _ in range(n_rows - 2):
        rows.append((rows[-1] * rows[-1] + rows[-2] * rows[-2]) % p)
    return field(rows)


@dataclass(frozen=True)
class BoundaryConstraint:
    """f(g^index) = value."""
    index: int
    value: object


# --- AIR ---

class SquareFibonacciAir:
    """Constraint system for the square-Fibonacci trace over fixed domains."""

    def __init__(self, domains: StarkDomains) -> None:
        self.domains = domains
        self.field = domains.field
        self.trace_length = domains.trace_length
        self.num_rows = domains.trace_length - 1
        self.g = domains.trace_generator

        n = self.trace_length
        # Roots removed from x^N - 1 to leave the transition domain g^0 ... g^(T-3)
        self._excluded = self.field([int(self.g ** (n - 3)), int(self.g ** (n - 2)), int(self.g ** (n - 1))])

    @property
    def degree_bound(self) -> int:
        """Strict upper bound on the composition degree."""
        return self.trace_length

    @property
    def num_constraints(self) -> int:
        return NUM_CONSTRAINTS

    # --- Trace ---

    def public_inputs(self, trace) -> List:
        """[a0, output] where output is the last trace row."""
        return [trace[0], trace[-1]]

    def boundary_constraints(self, public_inputs: Sequence) -> List[BoundaryConstraint]:
        first, output = public_inputs
        return [BoundaryConstraint(0, first), BoundaryConstraint(self.num_rows - 1, output)]

    def check_trace(self, trace) -> None:
        """Validate trace shape and the recurrence.

        Raises:
            ConfigError: If the trace has the wrong field or length, or breaks the recurrence
        """
        if type(trace) is not self.field:
            raise ConfigError("trace belongs to a different field")
        if len(trace) != self.num_rows:
            raise ConfigError(f"trace must have {self.num_rows} rows, got {len(trace)}")
        expected = trace[1:-1] ** 2 + trace[:-2] ** 2
        if not np.array_equal(trace[2:], expected):
            raise ConfigError("trace does not satisfy the square-Fibonacci recurrence")

    def interpolate_trace(self, trace) -> Polynomial:
        """Trace polynomial of degree <= N - 2 via one inverse FFT.

        The trace fills N - 1 of the N subgroup points. The value at the last
        point is chosen so that the top IFFT coefficient,
        (1/N) * sum(v_i * g^i), vanishes.
        """
        n = self.trace_length
        g_powers = self.domains.trace_domain
        values = self.field.Zeros(n)
        values[: n - 1] = trace
        partial = np.sum(trace * g_powers[: n - 1])
        values[n - 1] = -partial * inverse(g_powers[n - 1])

        coeffs = self.domains.trace_fft().ifft(values)
        assert int(coeffs[n - 1]) == 0, "trace polynomial exceeds degree N - 2"
        return Polynomial(coeffs)

    # --- Polynomial Form ---

    def boundary_quotient(self, trace_poly: Polynomial, constraint: BoundaryConstraint) -> Polynomial:
        """(f(x) - value) / (x - g^index), exact."""
        point = self.g ** constraint.index
        numerator = trace_poly - constraint.value
        return numerator / Polynomial.from_roots(self.field([int(point)]))

    def transition_quotient(self, trace_poly: Polynomial) -> Polynomial:
        """(f(g^2 x) - f(g x)^2 - f(x)^2) / prod_{i<T-2}(x - g^i), exact."""
        f_gx = trace_poly.scale_variable(self.g)
        f_ggx = trace_poly.scale_variable(self.g ** 2)
        numerator = f_ggx - f_gx * f_gx - trace_poly * trace_poly

        n = self.trace_length
        vanishing = Polynomial.monomial(n, self.field(1)) - 1
        return numerator * Polynomial.from_roots(self._excluded) / vanishing

    def composition_polynomial(self, trace_poly: Polynomial, public_inputs: Sequence, weights: Sequence) -> Polynomial:
        quotients = [self.boundary_quotient(trace_poly, c) for c in self.boundary_constraints(public_inputs)]
        quotients.append(self.transition_quotient(trace_poly))
        result = Polynomial.zero(self.field)
        for weight, quotient in zip(weights, quotients):
            result = result + quotient.scale(weight)
        return result

    # --- Evaluation Form ---

    def _shifted(self, values, steps: int):
        """Values of f(g^steps * x) over the coset, by index rotation."""
        shift = steps * self.domains.blowup
        return values[(np.arange(len(values)) + shift) % len(values)]

    def boundary_quotient_values(self, trace_values, constraint: BoundaryConstraint):
        xs = self.domains.evaluation_domain
        point = self.g ** constraint.index
        return (trace_values - constraint.value) * parallel_batch_inverse(xs - point)

    def transition_quotient_values(self, trace_values):
        xs = self.domains.evaluation_domain
        f_x = trace_values
        f_gx = self._shifted(trace_values, 1)
        f_ggx = self._shifted(trace_values, 2)
        numerator = f_ggx - batch_multiply(f_gx, f_gx) - batch_multiply(f_x, f_x)

        excluded = (xs - self._excluded[0]) * (xs - self._excluded[1]) * (xs - self._excluded[2])
        vanishing = xs ** self.trace_length - self.field(1)
        return batch_multiply(numerator * excluded, parallel_batch_inverse(vanishing))

    def composition_values(self, trace_values, public_inputs: Sequence, weights: Sequence):
        """Composition polynomial evaluated over the whole coset."""
        quotients = [self.boundary_quotient_values(trace_values, c) for c in self.boundary_constraints(public_inputs)]
        quotients.append(self.transition_quotient_values(trace_values))
        result = self.field.Zeros(len(trace_values))
        for weight, values in zip(weights, quotients):
            result = result + values * weight
        return result

    # --- Point Form ---

    def composition_at(self, x, f_x, f_gx, f_ggx, public_inputs: Sequence, weights: Sequence):
        """Composition value at one coset point from three trace openings.

        Raises:
            FieldDivisionError: If x lies on the trace domain
        """
        quotients = []
        for c in self.boundary_constraints(public_inputs):
            quotients.append((f_x - c.value) * inverse(x - self.g ** c.index))

        excluded = (x - self._excluded[0]) * (x - self._excluded[1]) * (x - self._excluded[2])
        numerator = f_ggx - f_gx * f_gx - f_x * f_x
        quotients.append(numerator * excluded * inverse(x ** self.trace_length - self.field(1)))

        result = self.field(0)
        for weight, q in zip(weights, quotients):
            result = result + weight * q
        return result
