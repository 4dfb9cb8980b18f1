"""Univariate polynomials over a prime field.

Coefficients are stored low-degree-first ([a0, a1, a2] is a0 + a1*x + a2*x^2)
as a galois array and are always trimmed, so the leading coefficient is
non-zero; the zero polynomial is the single coefficient [0]. Note that galois.Poly
uses the opposite (descending) order.

Polynomials are immutable: every operation returns a new instance.
"""

from typing import List, NamedTuple, Optional, Sequence, Tuple

import galois
import numpy as np

from zkstark.errors import ErrorKind, FieldDivisionError, InterpolationError
from zkstark.primitives.batch import batch_inverse
from zkstark.primitives.field import Field, inverse, is_square, modulus, powers, sqrt, to_int_list


class Point(NamedTuple):
    """An (x, y) pair used for interpolation."""
    x: galois.FieldArray
    y: galois.FieldArray


# --- Polynomial ---

class Polynomial:
    """Polynomial with coefficients in GF(p), lowest degree first."""

    __slots__ = ("field", "_c")

    def __init__(self, coeffs, field: Optional[Field] = None) -> None:
        if field is None:
            field = type(coeffs)
        assert isinstance(field, type) and issubclass(field, galois.FieldArray), "polynomial needs a galois field"

        if isinstance(coeffs, galois.FieldArray):
            assert type(coeffs) is field, "coefficients belong to a different field"
            arr = coeffs.copy().reshape(-1)
        else:
            arr = field([int(c) % modulus(field) for c in coeffs])

        nonzero = np.flatnonzero(arr.view(np.ndarray))
        self.field = field
        self._c = arr[: nonzero[-1] + 1] if len(nonzero) else field.Zeros(1)

    # --- Constructors ---

    @classmethod
    def zero(cls, field: Field) -> "Polynomial":
        return cls(field.Zeros(1))

    @classmethod
    def one(cls, field: Field) -> "Polynomial":
        return cls(field.Ones(1))

    @classmethod
    def constant(cls, c) -> "Polynomial":
        return cls(type(c)([int(c)]))

    @classmethod
    def x(cls, field: Field) -> "Polynomial":
        return cls(field([0, 1]))

    @classmethod
    def monomial(cls, degree: int, coeff) -> "Polynomial":
        field = type(coeff)
        arr = field.Zeros(degree + 1)
        arr[degree] = coeff
        return cls(arr)

    @classmethod
    def from_roots(cls, roots) -> "Polynomial":
        """Vanishing polynomial prod(x - r) over a galois array of roots."""
        field = type(roots)
        result = field.Ones(1)
        for r in roots:
            shifted = field.Zeros(len(result) + 1)
            shifted[1:] = result
            shifted[:-1] = shifted[:-1] - result * r
            result = shifted
        return cls(result)

    # --- Accessors ---

    @property
    def coeffs(self) -> galois.FieldArray:
        return self._c.copy()

    def degree(self) -> int:
        return len(self._c) - 1

    def is_zero(self) -> bool:
        return len(self._c) == 1 and int(self._c[0]) == 0

    def leading_coefficient(self):
        return self._c[-1]

    def coefficient(self, i: int):
        return self._c[i] if i < len(self._c) else self.field(0)

    def __len__(self) -> int:
        return len(self._c)

    # --- Evaluation ---

    def evaluate(self, x):
        """Horner evaluation at a single point, O(degree)."""
        if isinstance(x, galois.FieldArray):
            assert type(x) is self.field, "evaluation point belongs to a different field"
        p = modulus(self.field)
        point = int(x) % p
        acc = 0
        for c in reversed(to_int_list(self._c)):
            acc = (acc * point + c) % p
        return self.field(acc)

    def evaluate_many(self, xs):
        """Vectorised Horner evaluation at every point of a galois array."""
        assert type(xs) is self.field, "evaluation points belong to a different field"
        acc = self.field.Zeros(len(xs))
        for c in self._c[::-1]:
            acc = acc * xs + c
        return acc

    def __call__(self, x):
        if isinstance(x, galois.FieldArray) and x.ndim > 0:
            return self.evaluate_many(x)
        return self.evaluate(x)

    # --- Arithmetic ---

    def _coerce(self, other) -> "Polynomial":
        if isinstance(other, Polynomial):
            assert other.field is self.field, "polynomials belong to different fields"
            return other
        if isinstance(other, galois.FieldArray):
            assert type(other) is self.field, "scalar belongs to a different field"
            return Polynomial(other.reshape(-1))
        return Polynomial([other], self.field)

    def __add__(self, other) -> "Polynomial":
        other = self._coerce(other)
        out = self.field.Zeros(max(len(self._c), len(other._c)))
        out[: len(self._c)] = out[: len(self._c)] + self._c
        out[: len(other._c)] = out[: len(other._c)] + other._c
        return Polynomial(out)

    __radd__ = __add__

    def __neg__(self) -> "Polynomial":
        return Polynomial(-self._c)

    def __sub__(self, other) -> "Polynomial":
        return self + (-self._coerce(other))

    def __rsub__(self, other) -> "Polynomial":
        return self._coerce(other) - self

    def __mul__(self, other) -> "Polynomial":
        other = self._coerce(other)
        if len(other._c) == 1:
            return self.scale(other._c[0])
        if len(self._c) == 1:
            return other.scale(self._c[0])
        return Polynomial(np.convolve(self._c, other._c))

    __rmul__ = __mul__

    def scale(self, c) -> "Polynomial":
        """Multiply every coefficient by a field scalar."""
        if not isinstance(c, galois.FieldArray):
            c = self.field(int(c) % modulus(self.field))
        assert type(c) is self.field, "scalar belongs to a different field"
        return Polynomial(self._c * c)

    def __pow__(self, exponent: int) -> "Polynomial":
        assert exponent >= 0, "polynomial exponent must be non-negative"
        result = Polynomial.one(self.field)
        base = self
        while exponent:
            if exponent & 1:
                result = result * base
            base = base * base
            exponent >>= 1
        return result

    def compose(self, other: "Polynomial") -> "Polynomial":
        """Return self(other(x))."""
        other = self._coerce(other)
        result = Polynomial.zero(self.field)
        for c in self._c[::-1]:
            result = result * other + c
        return result

    def scale_variable(self, c) -> "Polynomial":
        """Return self(c * x)."""
        return Polynomial(self._c * powers(c, len(self._c)))

    # --- Division ---

    def __divmod__(self, divisor) -> Tuple["Polynomial", "Polynomial"]:
        """Long division: self = q * divisor + r with deg r < deg divisor.

        Raises:
            FieldDivisionError: If divisor is the zero polynomial
        """
        divisor = self._coerce(divisor)
        if divisor.is_zero():
            raise FieldDivisionError("division by the zero polynomial")

        m = len(divisor._c)
        if len(self._c) < m:
            return Polynomial.zero(self.field), self

        rem = self._c.copy()
        lead_inv = divisor._c[-1] ** -1
        quot = self.field.Zeros(len(rem) - m + 1)
        for i in range(len(rem) - m, -1, -1):
            coef = rem[i + m - 1] * lead_inv
            quot[i] = coef
            rem[i:i + m] = rem[i:i + m] - divisor._c * coef
        return Polynomial(quot), Polynomial(rem[: m - 1], self.field)

    def __floordiv__(self, divisor) -> "Polynomial":
        return divmod(self, divisor)[0]

    def __mod__(self, divisor) -> "Polynomial":
        return divmod(self, divisor)[1]

    def __truediv__(self, divisor) -> "Polynomial":
        """Exact division by a polynomial or a non-zero scalar.

        Raises:
            FieldDivisionError: If divisor is zero
            ValueError: If the division leaves a remainder
        """
        if not isinstance(divisor, Polynomial):
            return self.scale(inverse(self._coerce(divisor)._c[0]))
        quot, rem = divmod(self, divisor)
        if not rem.is_zero():
            raise ValueError("polynomial division has a non-zero remainder")
        return quot

    # --- Calculus and GCD ---

    def derivative(self) -> "Polynomial":
        if len(self._c) == 1:
            return Polynomial.zero(self.field)
        p = modulus(self.field)
        factors = self.field([i % p for i in range(1, len(self._c))])
        return Polynomial(self._c[1:] * factors)

    def integral(self) -> "Polynomial":
        """Antiderivative with zero constant term (requires degree + 1 < p)."""
        n = len(self._c)
        out = self.field.Zeros(n + 1)
        out[1:] = self._c * batch_inverse(self.field(list(range(1, n + 1))))
        return Polynomial(out)

    def monic(self) -> "Polynomial":
        if self.is_zero():
            return self
        return self.scale(self.leading_coefficient() ** -1)

    def gcd(self, other: "Polynomial") -> "Polynomial":
        """Monic greatest common divisor (Euclid)."""
        a, b = self, self._coerce(other)
        while not b.is_zero():
            a, b = b, a % b
        return a.monic()

    def lcm(self, other: "Polynomial") -> "Polynomial":
        """Monic least common multiple; zero if either operand is zero."""
        other = self._coerce(other)
        if self.is_zero() or other.is_zero():
            return Polynomial.zero(self.field)
        return ((self * other) // self.gcd(other)).monic()

    # --- Roots ---

    def roots(self) -> galois.FieldArray:
        """Distinct roots of a polynomial of degree at most 2, in ascending order.

        Quadratics use the discriminant and a Tonelli-Shanks square root, so a
        non-residue discriminant gives no roots. Constants have no roots.

        Raises:
            ValueError: If the degree is above 2, or self is the zero polynomial
        """
        if self.is_zero():
            raise ValueError("every element is a root of the zero polynomial")
        d = self.degree()
        if d > 2:
            raise ValueError(f"root finding supports degree <= 2, got {d}")
        if d == 0:
            return self.field.Zeros(0)
        if d == 1:
            return self.field([int(-self._c[0] / self._c[1])])

        c, b, a = self._c
        disc = b * b - self.field(4 % modulus(self.field)) * a * c
        if not is_square(disc):
            return self.field.Zeros(0)
        r = sqrt(disc)
        two_a = a + a
        found = {int((-b + r) / two_a), int((-b - r) / two_a)}
        return self.field(sorted(found))

    # --- Comparison ---

    def __eq__(self, other) -> bool:
        if not isinstance(other, Polynomial):
            return NotImplemented
        return other.field is self.field and np.array_equal(self._c, other._c)

    def __hash__(self) -> int:
        return hash((modulus(self.field), tuple(to_int_list(self._c))))

    def __repr__(self) -> str:
        return f"Polynomial({to_int_list(self._c)}, p={modulus(self.field)})"


# --- Lagrange Interpolation ---

def lagrange_interpolate(xs, ys) -> Polynomial:
    """Classical O(n^2) Lagrange interpolation through (xs[i], ys[i]).

    Raises:
        InterpolationError: If xs and ys differ in length, or xs has duplicates
    """
    field = type(xs)
    assert type(ys) is field, "x and y coordinates belong to different fields"
    n = len(xs)
    if n != len(ys):
        raise InterpolationError(f"{n} x-coordinates but {len(ys)} y-coordinates", ErrorKind.LENGTH_MISMATCH)
    if n == 0:
        raise InterpolationError("cannot interpolate zero points", ErrorKind.LENGTH_MISMATCH)

    p = modulus(field)
    x_ints = to_int_list(xs)
    y_ints = to_int_list(ys)
    if len(set(x_ints)) != n:
        raise InterpolationError("interpolation points must have distinct x-coordinates")

    # Z(x) = prod(x - x_i), descending synthetic division gives Z / (x - x_i)
    vanishing = to_int_list(Polynomial.from_roots(xs).coeffs)
    result = [0] * n
    for i in range(n):
        basis = [0] * n
        carry = 0
        for k in range(n, 0, -1):
            carry = (vanishing[k] + carry * x_ints[i]) % p if k < n else vanishing[k]
            basis[k - 1] = carry

        denom = 0
        for c in reversed(basis):
            denom = (denom * x_ints[i] + c) % p
        factor = y_ints[i] * pow(denom, p - 2, p) % p

        for k in range(n):
            result[k] = (result[k] + basis[k] * factor) % p

    return Polynomial(result, field)


def interpolate(points: Sequence[Point]) -> Polynomial:
    """Lagrange interpolation over a sequence of Points."""
    if not points:
        raise InterpolationError("cannot interpolate zero points", ErrorKind.LENGTH_MISMATCH)
    field = type(points[0].x)
    xs = field([int(pt.x) for pt in points])
    ys = field([int(pt.y) for pt in points])
    return lagrange_interpolate(xs, ys)


def points_from(xs, ys) -> List[Point]:
    """Zip two galois arrays into Points."""
    return [Point(x, y) for x, y in zip(xs, ys)]
