"""Tests for the trace/evaluation domains and the square-Fibonacci AIR.

The AIR has three forms of the same constraints (polynomial, coset
evaluation, single point); on a small instance they must all agree.
"""

import numpy as np
import pytest

from zkstark.errors import ConfigError, DomainError, ErrorKind, FieldDivisionError
from zkstark.primitives.polynomial import Polynomial
from zkstark.protocol.air import (
    FIB_SQUARE_A0,
    FIB_SQUARE_A1,
    SquareFibonacciAir,
    square_fibonacci_trace,
)
from zkstark.protocol.domains import StarkDomains

TRACE_SIZE = 16
EVAL_SIZE = 64


@pytest.fixture(scope="module")
def domains(gf):
    return StarkDomains.build(gf, TRACE_SIZE, EVAL_SIZE)


@pytest.fixture(scope="module")
def air(domains):
    return SquareFibonacciAir(domains)


@pytest.fixture(scope="module")
def trace(gf, air):
    return square_fibonacci_trace(gf, air.num_rows)


@pytest.fixture(scope="module")
def weights(gf):
    return [gf(3), gf(5), gf(7)]


class TestDomains:

    def test_sizes_and_generators(self, gf, domains) -> None:
        assert domains.blowup == 4
        assert len(domains.trace_domain) == TRACE_SIZE
        assert len(domains.evaluation_domain) == EVAL_SIZE
        assert domains.evaluation_generator ** domains.blowup == domains.trace_generator
        assert domains.offset == gf.primitive_element

    def test_index_shift_is_multiplication_by_g(self, domains) -> None:
        xs = domains.evaluation_domain
        g = domains.trace_generator
        for j in [0, 5, EVAL_SIZE - 1]:
            assert xs[(j + domains.blowup) % EVAL_SIZE] == g * xs[j]

    def test_coset_is_disjoint_from_trace_domain(self, domains) -> None:
        trace_points = {int(x) for x in domains.trace_domain}
        assert not trace_points & {int(x) for x in domains.evaluation_domain}

    def test_non_power_of_two(self, gf) -> None:
        with pytest.raises(DomainError) as info:
            StarkDomains.build(gf, 12, 64)
        assert info.value.kind is ErrorKind.NOT_POWER_OF_TWO

    def test_evaluation_smaller_than_trace(self, gf) -> None:
        with pytest.raises(DomainError) as info:
            StarkDomains.build(gf, 64, 16)
        assert info.value.kind is ErrorKind.LENGTH_MISMATCH

    def test_fft_engines(self, domains) -> None:
        assert domains.trace_fft().n == TRACE_SIZE
        assert domains.evaluation_fft().n == EVAL_SIZE


class TestTrace:

    def test_recurrence(self, gf) -> None:
        trace = square_fibonacci_trace(gf, 5)
        a2 = FIB_SQUARE_A1 ** 2 + FIB_SQUARE_A0 ** 2
        assert int(trace[0]) == FIB_SQUARE_A0
        assert int(trace[1]) == FIB_SQUARE_A1
        assert trace[2] == gf(a2 % 3221225473)
        assert trace[4] == trace[3] ** 2 + trace[2] ** 2

    def test_check_trace_accepts(self, air, trace) -> None:
        air.check_trace(trace)

    def test_check_trace_rejects_broken_recurrence(self, gf, air, trace) -> None:
        bad = trace.copy()
        bad[7] = bad[7] + gf(1)
        with pytest.raises(ConfigError):
            air.check_trace(bad)

    def test_check_trace_rejects_length(self, gf, air) -> None:
        with pytest.raises(ConfigError):
            air.check_trace(square_fibonacci_trace(gf, TRACE_SIZE))

    def test_check_trace_rejects_other_field(self, baby_bear, air) -> None:
        with pytest.raises(ConfigError):
            air.check_trace(square_fibonacci_trace(baby_bear, air.num_rows))

    def test_public_inputs(self, air, trace) -> None:
        first, output = air.public_inputs(trace)
        assert first == trace[0]
        assert output == trace[TRACE_SIZE - 2]
        constraints = air.boundary_constraints([first, output])
        assert [c.index for c in constraints] == [0, TRACE_SIZE - 2]

    def test_interpolation(self, air, domains, trace) -> None:
        poly = air.interpolate_trace(trace)
        assert poly.degree() <= TRACE_SIZE - 2
        assert np.array_equal(poly(domains.trace_domain[: air.num_rows]), trace)


class TestConstraints:

    def test_quotients_are_low_degree(self, air, trace) -> None:
        poly = air.interpolate_trace(trace)
        for constraint in air.boundary_constraints(air.public_inputs(trace)):
            assert air.boundary_quotient(poly, constraint).degree() < air.degree_bound
        assert air.transition_quotient(poly).degree() < air.degree_bound

    def test_transition_fails_for_bad_trace(self, gf, air, trace) -> None:
        poly = air.interpolate_trace(trace) + Polynomial.monomial(3, gf(1))
        with pytest.raises(ValueError):
            air.transition_quotient(poly)

    def test_evaluation_form_matches_polynomial_form(self, air, domains, trace, weights) -> None:
        poly = air.interpolate_trace(trace)
        public_inputs = air.public_inputs(trace)
        composition = air.composition_polynomial(poly, public_inputs, weights)
        assert composition.degree() < air.degree_bound

        trace_values = domains.evaluation_fft().coset_fft(poly.coeffs, domains.offset)
        values = air.composition_values(trace_values, public_inputs, weights)
        assert np.array_equal(values, composition(domains.evaluation_domain))

    def test_point_form_matches_evaluation_form(self, air, domains, trace, weights) -> None:
        poly = air.interpolate_trace(trace)
        public_inputs = air.public_inputs(trace)
        trace_values = domains.evaluation_fft().coset_fft(poly.coeffs, domains.offset)
        values = air.composition_values(trace_values, public_inputs, weights)

        k = domains.blowup
        for j in [0, 1, 17, EVAL_SIZE - 1]:
            at = air.composition_at(
                domains.evaluation_domain[j],
                trace_values[j],
                trace_values[(j + k) % EVAL_SIZE],
                trace_values[(j + 2 * k) % EVAL_SIZE],
                public_inputs,
                weights,
            )
            assert at == values[j]

    def test_point_form_on_trace_domain(self, air, domains, trace, weights) -> None:
        one = domains.trace_domain[0]
        with pytest.raises(FieldDivisionError):
            air.composition_at(one, one, one, one, air.public_inputs(trace), weights)
