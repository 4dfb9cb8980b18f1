"""Prime fields GF(p) and element-level helpers.

Uses galois for all field arithmetic. A field is the galois FieldArray subclass
returned by prime_field(); that class is the field identity, so elements of two
different fields can never be combined (galois raises TypeError).

Element helpers that galois does not provide in the form the protocol needs
(Tonelli-Shanks square roots, cube roots, extended-Euclid inversion, fixed-width
byte encoding) operate on Python ints internally and convert back at the end.
"""

from math import gcd
from typing import List, Type

import galois
import numpy as np

from zkstark.errors import ConfigError, DomainError, ErrorKind, FieldDivisionError

# --- Field Construction ---

DEFAULT_MODULUS = 3221225473  # 3 * 2^30 + 1
BABY_BEAR_MODULUS = 2013265921  # 15 * 2^27 + 1

Field = Type[galois.FieldArray]


def prime_field(modulus: int) -> Field:
    """Return GF(modulus), validating that the modulus is an odd prime.

    Raises:
        ConfigError: If the modulus is not a prime greater than 2
    """
    if modulus <= 2:
        raise ConfigError(f"field modulus must be greater than 2, got {modulus}")
    if not galois.is_prime(modulus):
        raise ConfigError(f"field modulus must be prime, got {modulus}")
    return galois.GF(modulus)


def modulus(field: Field) -> int:
    """Return the characteristic p of a prime field."""
    return int(field.characteristic)


def element_size(field: Field) -> int:
    """Byte width of the canonical big-endian element encoding."""
    return (modulus(field).bit_length() + 7) // 8


def assert_same_field(*elements) -> None:
    """Debug assertion that all operands share one field."""
    assert len({type(e) for e in elements}) <= 1, "field mismatch between operands"


# --- Encoding ---

def to_int_list(values) -> List[int]:
    """Convert a galois array to a list of canonical Python ints."""
    return [int(v) for v in values.view(np.ndarray).tolist()]


def to_bytes(x) -> bytes:
    """Fixed-width big-endian encoding of a field element."""
    return int(x).to_bytes(element_size(type(x)), "big")


def elements_to_bytes(values) -> List[bytes]:
    """Encode every element of a galois array."""
    size = element_size(type(values))
    return [v.to_bytes(size, "big") for v in to_int_list(values)]


def from_bytes(field: Field, data: bytes):
    """Decode a canonical big-endian element encoding."""
    value = int.from_bytes(data, "big")
    if value >= modulus(field):
        raise ValueError(f"non-canonical field element encoding: {value}")
    return field(value)


# --- Inversion and Division ---

def inverse(x):
    """Multiplicative inverse via the extended Euclidean algorithm.

    Raises:
        FieldDivisionError: If x is zero
    """
    field = type(x)
    p = modulus(field)
    a = int(x)
    if a == 0:
        raise FieldDivisionError("cannot invert zero")

    t, new_t = 0, 1
    r, new_r = p, a
    while new_r:
        q = r // new_r
        t, new_t = new_t, t - q * new_t
        r, new_r = new_r, r - q * new_r
    return field(t % p)


def inverse_fermat(x):
    """Multiplicative inverse via Fermat's little theorem: x^(p-2)."""
    field = type(x)
    p = modulus(field)
    a = int(x)
    if a == 0:
        raise FieldDivisionError("cannot invert zero")
    return field(pow(a, p - 2, p))


def divide(a, b):
    """Return a / b, raising FieldDivisionError when b is zero."""
    assert_same_field(a, b)
    return a * inverse(b)


# --- Roots ---

def is_square(x) -> bool:
    """Euler's criterion."""
    p = modulus(type(x))
    a = int(x)
    return a == 0 or pow(a, (p - 1) // 2, p) == 1


def sqrt(x):
    """Square root by Tonelli-Shanks, with the p = 3 (mod 4) shortcut.

    Raises:
        ValueError: If x is not a quadratic residue
    """
    field = type(x)
    p = modulus(field)
    n = int(x)
    if n == 0:
        return field(0)
    if pow(n, (p - 1) // 2, p) != 1:
        raise ValueError(f"{n} is not a quadratic residue mod {p}")
    if p % 4 == 3:
        return field(pow(n, (p + 1) // 4, p))

    # p - 1 = q * 2^s with q odd
    q, s = p - 1, 0
    while q % 2 == 0:
        q //= 2
        s += 1

    z = 2
    while pow(z, (p - 1) // 2, p) != p - 1:
        z += 1

    m, c, t, r = s, pow(z, q, p), pow(n, q, p), pow(n, (q + 1) // 2, p)
    while t != 1:
        i, t2 = 0, t
        while t2 != 1:
            t2 = t2 * t2 % p
            i += 1
        b = pow(c, 1 << (m - i - 1), p)
        m, c, t, r = i, b * b % p, t * b * b % p, r * b % p
    return field(r)


def cbrt(x):
    """Cube root.

    Closed form n^((2p-1)/3) when p = 2 (mod 3), the inverse exponent
    3^-1 mod (p-1) when that exists, and a Sylow 3-subgroup correction for
    cubic residues when p = 1 (mod 3).

    Raises:
        ValueError: If x has no cube root
    """
    field = type(x)
    p = modulus(field)
    n = int(x)
    if n == 0:
        return field(0)
    if p % 3 == 2:
        return field(pow(n, (2 * p - 1) // 3, p))
    if gcd(3, p - 1) == 1:
        return field(pow(n, pow(3, -1, p - 1), p))
    if pow(n, (p - 1) // 3, p) != 1:
        raise ValueError(f"{n} is not a cubic residue mod {p}")
    return field(_cbrt_sylow(n, p))


def _cbrt_sylow(n: int, p: int) -> int:
    """Cube root of a cubic residue when 3 divides p - 1."""
    # p - 1 = t * 3^s with 3 not dividing t
    t, s = p - 1, 0
    while t % 3 == 0:
        t //= 3
        s += 1

    z = 2
    while pow(z, (p - 1) // 3, p) == 1:
        z += 1
    c = pow(z, t, p)  # generates the Sylow 3-subgroup, order 3^s

    # r^3 = n * b with b in the Sylow subgroup
    e = pow(3, -1, t) if t > 1 else 0
    r = pow(n, e, p)
    b = pow(r, 3, p) * pow(n, -1, p) % p

    # Discrete log of b to base c, one base-3 digit at a time
    gamma = pow(c, 3 ** (s - 1), p)
    log_b = 0
    for i in range(s):
        h = pow(b * pow(c, -log_b, p) % p, 3 ** (s - 1 - i), p)
        digit = 0 if h == 1 else (1 if h == gamma else 2)
        log_b += digit * 3 ** i

    assert log_b % 3 == 0, "cubic residue must have a log divisible by 3"
    return r * pow(c, -(log_b // 3), p) % p


# --- Roots of Unity ---

def is_power_of_two(n: int) -> bool:
    return n > 0 and (n & (n - 1)) == 0


def log2(size: int) -> int:
    """Compute log2 of size (must be power of 2)."""
    assert is_power_of_two(size), f"{size} is not a power of two"
    return size.bit_length() - 1


def next_power_of_two(n: int) -> int:
    return 1 if n <= 1 else 1 << (n - 1).bit_length()


def generator(field: Field):
    """Multiplicative generator of the field."""
    return field.primitive_element


def root_of_unity(field: Field, n: int):
    """Primitive n-th root of unity g^((p-1)/n).

    Raises:
        DomainError: If n is not a power of two, or n does not divide p - 1
    """
    if not is_power_of_two(n):
        raise DomainError(f"domain size {n} is not a power of two", ErrorKind.NOT_POWER_OF_TWO)
    p = modulus(field)
    if (p - 1) % n != 0:
        raise DomainError(f"GF({p}) has no root of unity of order {n}", ErrorKind.NO_ROOT_OF_UNITY)

    omega = generator(field) ** ((p - 1) // n)
    assert n == 1 or omega ** (n // 2) != 1, "root of unity does not have exact order"
    return omega


def powers(base, n: int):
    """Return [base^0, base^1, ..., base^(n-1)] as a galois array."""
    field = type(base)
    result = field.Ones(n)
    if n > 1:
        result[1:] = base
        result = np.multiply.accumulate(result)
    return result
