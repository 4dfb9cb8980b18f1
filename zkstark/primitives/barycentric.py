"""Barycentric Lagrange evaluation.

The weights w_i = 1 / prod_{j != i} (x_i - x_j) are computed once with a
single batch inversion. Every later evaluation is O(n) using the second
(true) barycentric form

    f(z) = sum(w_i * y_i / (z - x_i)) / sum(w_i / (z - x_i))
"""

import numpy as np

from zkstark.errors import ErrorKind, InterpolationError
from zkstark.primitives.batch import batch_inverse
from zkstark.primitives.field import inverse, modulus, to_int_list
from zkstark.primitives.polynomial import Polynomial, lagrange_interpolate


def barycentric_weights(xs):
    """Return w_i = 1 / prod_{j != i} (x_i - x_j) for distinct xs."""
    n = len(xs)
    diffs = xs[:, np.newaxis] - xs[np.newaxis, :]
    diag = np.arange(n)
    diffs[diag, diag] = 1
    return batch_inverse(np.multiply.reduce(diffs, axis=1))


class BarycentricInterpolator:
    """Interpolating polynomial through fixed points, evaluated without expanding it."""

    def __init__(self, xs, ys) -> None:
        field = type(xs)
        assert type(ys) is field, "x and y coordinates belong to different fields"
        n = len(xs)
        if n != len(ys):
            raise InterpolationError(f"{n} x-coordinates but {len(ys)} y-coordinates", ErrorKind.LENGTH_MISMATCH)
        if n == 0:
            raise InterpolationError("cannot interpolate zero points", ErrorKind.LENGTH_MISMATCH)

        x_ints = to_int_list(xs)
        if len(set(x_ints)) != n:
            raise InterpolationError("interpolation points must have distinct x-coordinates")

        self.field = field
        self.xs = xs.copy()
        self.ys = ys.copy()
        self.weights = barycentric_weights(self.xs)
        self._index = {x: i for i, x in enumerate(x_ints)}

    def __len__(self) -> int:
        return len(self.xs)

    def evaluate(self, z):
        """Evaluate at a single point; returns y_i directly when z is a node."""
        z = self._coerce(z)
        hit = self._index.get(int(z))
        if hit is not None:
            return self.ys[hit]

        terms = self.weights * batch_inverse(z - self.xs)
        return np.sum(terms * self.ys) * inverse(np.sum(terms))

    def evaluate_batch(self, zs):
        """Evaluate at every point of a galois array against the cached weights."""
        zs = self._coerce(zs)
        diffs = zs[:, np.newaxis] - self.xs[np.newaxis, :]

        # Rows where z is itself a node are answered from ys
        hit_rows, hit_cols = np.nonzero(diffs.view(np.ndarray) == 0)
        diffs[hit_rows, hit_cols] = 1

        inv = batch_inverse(diffs.reshape(-1)).reshape(diffs.shape)
        terms = inv * self.weights
        num = np.sum(terms * self.ys, axis=1)
        den = np.sum(terms, axis=1)
        den[hit_rows] = 1

        out = num * batch_inverse(den)
        out[hit_rows] = self.ys[hit_cols]
        return out

    def __call__(self, z):
        if getattr(z, "ndim", 0) > 0:
            return self.evaluate_batch(z)
        return self.evaluate(z)

    def to_polynomial(self) -> Polynomial:
        """Expand to coefficient form with classical Lagrange interpolation."""
        return lagrange_interpolate(self.xs, self.ys)

    def _coerce(self, z):
        if isinstance(z, self.field):
            return z
        p = modulus(self.field)
        if isinstance(z, (list, tuple)):
            return self.field([int(v) % p for v in z])
        return self.field(int(z) % p)
