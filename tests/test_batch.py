"""Unit tests for batch inversion and parallel batch operations."""

import numpy as np
import pytest

from zkstark.errors import DomainError, ErrorKind, FieldDivisionError
from zkstark.primitives.batch import (
    EXPONENTIATE_PARALLEL_THRESHOLD,
    INVERSE_PARALLEL_THRESHOLD,
    batch_exponentiate,
    batch_inverse,
    batch_multiply,
    parallel_batch_inverse,
)


class TestBatchInverse:
    """Tests for Montgomery batch inversion."""

    def test_empty(self, gf) -> None:
        """Empty input returns empty output."""
        assert len(batch_inverse(gf([]))) == 0

    def test_single_element(self, gf) -> None:
        result = batch_inverse(gf([12345]))
        assert result[0] * gf(12345) == gf(1)

    def test_matches_scalar_inversion(self, gf) -> None:
        vals = gf([i * 7 + 13 for i in range(50)])
        assert np.array_equal(batch_inverse(vals), vals ** -1)

    def test_zero_element_fails(self, gf) -> None:
        with pytest.raises(FieldDivisionError) as info:
            batch_inverse(gf([1, 2, 0, 4]))
        assert info.value.kind is ErrorKind.ZERO_DIVISION


class TestParallelBatch:
    """Chunked thread-pool variants must agree with the sequential ones."""

    @pytest.mark.parametrize("n", [10, INVERSE_PARALLEL_THRESHOLD, 4096])
    @pytest.mark.parametrize("workers", [None, 1, 3, 8])
    def test_parallel_inverse(self, gf, n: int, workers) -> None:
        vals = gf(np.arange(1, n + 1))
        result = parallel_batch_inverse(vals, workers=workers)
        assert np.array_equal(result * vals, gf.Ones(n))

    def test_parallel_inverse_zero_fails(self, gf) -> None:
        vals = gf(np.arange(0, 2 * INVERSE_PARALLEL_THRESHOLD))
        with pytest.raises(FieldDivisionError):
            parallel_batch_inverse(vals, workers=4)

    @pytest.mark.parametrize("n", [5, 2500])
    def test_multiply(self, gf, n: int) -> None:
        a = gf.Random(n)
        b = gf.Random(n)
        assert np.array_equal(batch_multiply(a, b, workers=4), a * b)

    def test_multiply_length_mismatch(self, gf) -> None:
        with pytest.raises(DomainError) as info:
            batch_multiply(gf.Random(3), gf.Random(4))
        assert info.value.kind is ErrorKind.LENGTH_MISMATCH

    @pytest.mark.parametrize("n", [7, EXPONENTIATE_PARALLEL_THRESHOLD, 1000])
    def test_exponentiate(self, gf, n: int) -> None:
        vals = gf.Random(n)
        assert np.array_equal(batch_exponentiate(vals, 17, workers=4), vals ** 17)
