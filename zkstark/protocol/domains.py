"""Trace and evaluation domains."""

from dataclasses import dataclass

from zkstark.errors import DomainError, ErrorKind
from zkstark.primitives.fft import FFT
from zkstark.primitives.field import Field, generator, is_power_of_two, powers, root_of_unity


@dataclass(frozen=True)
class StarkDomains:
    """Trace subgroup <g> of order N and the evaluation coset offset * <h> of order M.

    h^(M/N) = g, so the coset point at index j + M/N is g times the point at
    index j. The offset is the field generator, which lies outside every
    proper subgroup, so the coset never meets the trace domain.
    """
    field: Field
    trace_length: int
    evaluation_size: int
    trace_generator: object
    evaluation_generator: object
    offset: object
    trace_domain: object
    evaluation_domain: object

    @classmethod
    def build(cls, field: Field, trace_length: int, evaluation_size: int) -> "StarkDomains":
        """Build both domains.

        Raises:
            DomainError: If either size is not a power of two or the field lacks the roots of unity
        """
        if not is_power_of_two(trace_length) or not is_power_of_two(evaluation_size):
            raise DomainError(
                f"domain sizes must be powers of two, got {trace_length} and {evaluation_size}",
                ErrorKind.NOT_POWER_OF_TWO,
            )
        if evaluation_size < trace_length:
            raise DomainError(
                f"evaluation domain {evaluation_size} is smaller than the trace domain {trace_length}",
                ErrorKind.LENGTH_MISMATCH,
            )

        g = root_of_unity(field, trace_length)
        h = root_of_unity(field, evaluation_size)
        assert h ** (evaluation_size // trace_length) == g, "trace generator must be a power of the evaluation generator"

        offset = generator(field)
        return cls(
            field=field,
            trace_length=trace_length,
            evaluation_size=evaluation_size,
            trace_generator=g,
            evaluation_generator=h,
            offset=offset,
            trace_domain=powers(g, trace_length),
            evaluation_domain=powers(h, evaluation_size) * offset,
        )

    @property
    def blowup(self) -> int:
        return self.evaluation_size // self.trace_length

    def trace_fft(self) -> FFT:
        return FFT(self.field, self.trace_length)

    def evaluation_fft(self) -> FFT:
        return FFT(self.field, self.evaluation_size)
