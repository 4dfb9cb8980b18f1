"""
Pytest configuration for zkstark tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to the path so `import zkstark` works without installing
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from zkstark.primitives.field import BABY_BEAR_MODULUS, DEFAULT_MODULUS, prime_field  # noqa: E402

# Small prime, p - 1 = 2^6 * 3, small enough for exhaustive checks
SMALL_MODULUS = 193


@pytest.fixture(scope="session")
def gf():
    """Default field GF(3 * 2^30 + 1)."""
    return prime_field(DEFAULT_MODULUS)


@pytest.fixture(scope="session")
def baby_bear():
    """GF(15 * 2^27 + 1)."""
    return prime_field(BABY_BEAR_MODULUS)


@pytest.fixture(scope="session")
def small_field():
    return prime_field(SMALL_MODULUS)
