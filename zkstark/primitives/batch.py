"""Montgomery batch inversion and data-parallel batch operations.

Large batches are split into independent chunks and dispatched to a thread
pool. Every worker owns a disjoint output slice and only reads the shared
inputs, so no locking is needed. Below the thresholds the dispatch overhead
dominates and the work runs sequentially.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from zkstark.errors import DomainError, ErrorKind, FieldDivisionError
from zkstark.primitives.field import modulus, to_int_list

logger = logging.getLogger(__name__)

# --- Thresholds ---

INVERSE_PARALLEL_THRESHOLD = 1000
MULTIPLY_PARALLEL_THRESHOLD = 1000
EXPONENTIATE_PARALLEL_THRESHOLD = 100


# --- Montgomery Batch Inversion ---

def batch_inverse(values):
    """Montgomery batch inversion for a galois array.

    Converts N field inversions into 3N-3 multiplications + 1 inversion.

    Algorithm:
    1. Forward pass: Compute prefix products cumprods[i] = a[0] * a[1] * ... * a[i]
    2. Single inversion: inv_total = cumprods[N-1]^(-1)
    3. Backward pass: Extract individual inverses using cumprods

    Args:
        values: Galois FieldArray to invert (must all be non-zero)

    Returns:
        Galois FieldArray where result[i] = values[i]^(-1)

    Raises:
        FieldDivisionError: If any element is zero
    """
    field_type = type(values)
    n = len(values)
    if n == 0:
        return values.copy()

    p = modulus(field_type)
    ints = to_int_list(values)
    if 0 in ints:
        raise FieldDivisionError(f"batch inversion hit a zero at index {ints.index(0)}")

    # Forward pass: compute prefix products
    cumprods = [0] * n
    cumprods[0] = ints[0]
    for i in range(1, n):
        cumprods[i] = cumprods[i - 1] * ints[i] % p

    # Single inversion of the total product
    z = pow(cumprods[n - 1], p - 2, p)

    # Backward pass: extract individual inverses
    results = [0] * n
    for i in range(n - 1, 0, -1):
        results[i] = z * cumprods[i - 1] % p
        z = z * ints[i] % p
    results[0] = z

    return field_type(results)


# --- Parallel Batch Operations ---

def parallel_batch_inverse(values, workers: Optional[int] = None):
    """Batch inversion sharded across a thread pool for large inputs."""
    if len(values) < INVERSE_PARALLEL_THRESHOLD:
        return batch_inverse(values)
    return _run_chunked(values, batch_inverse, workers)


def batch_multiply(a, b, workers: Optional[int] = None):
    """Element-wise product of two equal-length galois arrays."""
    if len(a) != len(b):
        raise DomainError(f"batch multiply length mismatch: {len(a)} != {len(b)}", ErrorKind.LENGTH_MISMATCH)
    if len(a) < MULTIPLY_PARALLEL_THRESHOLD:
        return a * b

    result = type(a).Zeros(len(a))
    bounds = _chunk_bounds(len(a), workers)

    def work(start: int, end: int) -> None:
        result[start:end] = a[start:end] * b[start:end]

    _dispatch(work, bounds, workers)
    return result


def batch_exponentiate(values, exponent: int, workers: Optional[int] = None):
    """Raise every element of a galois array to the same power."""
    if len(values) < EXPONENTIATE_PARALLEL_THRESHOLD:
        return values ** exponent
    return _run_chunked(values, lambda chunk: chunk ** exponent, workers)


# --- Helpers ---

def _worker_count(workers: Optional[int]) -> int:
    return workers if workers and workers > 0 else (os.cpu_count() or 1)


def _chunk_bounds(n: int, workers: Optional[int]) -> List[tuple]:
    """Split [0, n) into at most `workers` contiguous ranges."""
    n_chunks = max(1, min(_worker_count(workers), n))
    chunk = (n + n_chunks - 1) // n_chunks
    return [(start, min(start + chunk, n)) for start in range(0, n, chunk)]


def _dispatch(work: Callable[[int, int], None], bounds: List[tuple], workers: Optional[int]) -> None:
    logger.debug("dispatching %d chunks to %d workers", len(bounds), _worker_count(workers))
    with ThreadPoolExecutor(max_workers=_worker_count(workers)) as pool:
        futures = [pool.submit(work, start, end) for start, end in bounds]
        for future in futures:
            future.result()


def _run_chunked(values, op: Callable, workers: Optional[int]):
    """Apply op to disjoint chunks of values, writing into a fresh output array."""
    result = type(values).Zeros(len(values))
    bounds = _chunk_bounds(len(values), workers)

    def work(start: int, end: int) -> None:
        result[start:end] = op(values[start:end])

    _dispatch(work, bounds, workers)
    return result
