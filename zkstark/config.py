"""Proof system configuration."""

import json
from dataclasses import asdict, dataclass, replace

import galois

from zkstark.errors import ConfigError, ErrorKind
from zkstark.primitives.field import DEFAULT_MODULUS, is_power_of_two
from zkstark.primitives.hashing import HASH_FUNCTIONS, SHA3

# --- Constants ---

MIN_SECURITY_LEVEL = 80
MIN_TRACE_LENGTH = 4
MIN_BLOWUP = 2

# JSON key -> dataclass field
_JSON_KEYS = {
    "fieldModulus": "field_modulus",
    "securityLevel": "security_level",
    "traceLength": "trace_length",
    "evaluationDomain": "evaluation_domain",
    "friQueries": "fri_queries",
    "hashFunction": "hash_function",
}

_INT_FIELDS = ("field_modulus", "security_level", "trace_length", "evaluation_domain", "fri_queries")


# --- StarkConfig ---

@dataclass(frozen=True)
class StarkConfig:
    """Parameters of one proof system instance.

    Attributes:
        field_modulus: Prime modulus of the base field
        security_level: Target security in bits
        trace_length: Size of the trace domain (power of two)
        evaluation_domain: Size of the low-degree extension domain (power of two)
        fri_queries: Number of FRI query indices
        hash_function: One of sha256, sha3, poseidon, rescue
    """
    field_modulus: int = DEFAULT_MODULUS
    security_level: int = 128
    trace_length: int = 1024
    evaluation_domain: int = 8192
    fri_queries: int = 3
    hash_function: str = SHA3

    @property
    def blowup_factor(self) -> int:
        return self.evaluation_domain // self.trace_length

    # --- Validation ---

    def validate(self) -> "StarkConfig":
        """Check every rule, raising on the first violation.

        Raises:
            ConfigError: With kind INVALID_CONFIG
        """
        def fail(message: str) -> None:
            raise ConfigError(message, ErrorKind.INVALID_CONFIG)

        for name in _INT_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                fail(f"{name} must be an integer, got {type(value).__name__} {value!r}")
        if not isinstance(self.hash_function, str):
            fail(f"hash_function must be a string, got {type(self.hash_function).__name__}")

        if self.field_modulus <= 2 or not galois.is_prime(self.field_modulus):
            fail(f"field modulus must be a prime greater than 2, got {self.field_modulus}")
        if self.security_level < MIN_SECURITY_LEVEL:
            fail(f"security level must be at least {MIN_SECURITY_LEVEL} bits, got {self.security_level}")
        if not is_power_of_two(self.trace_length) or self.trace_length < MIN_TRACE_LENGTH:
            fail(f"trace length must be a power of two >= {MIN_TRACE_LENGTH}, got {self.trace_length}")
        if not is_power_of_two(self.evaluation_domain):
            fail(f"evaluation domain must be a power of two, got {self.evaluation_domain}")
        if self.evaluation_domain < MIN_BLOWUP * self.trace_length:
            fail(
                f"evaluation domain {self.evaluation_domain} must be at least "
                f"{MIN_BLOWUP}x the trace length {self.trace_length}"
            )
        if (self.field_modulus - 1) % self.evaluation_domain != 0:
            fail(f"GF({self.field_modulus}) has no subgroup of order {self.evaluation_domain}")
        if self.fri_queries <= 0:
            fail(f"FRI query count must be positive, got {self.fri_queries}")
        if self.hash_function not in HASH_FUNCTIONS:
            fail(f"hash function must be one of {', '.join(HASH_FUNCTIONS)}, got {self.hash_function!r}")
        return self

    # --- Builders ---

    def with_field_modulus(self, modulus: int) -> "StarkConfig":
        return replace(self, field_modulus=modulus)

    def with_security_level(self, level: int) -> "StarkConfig":
        return replace(self, security_level=level)

    def with_trace_length(self, length: int) -> "StarkConfig":
        return replace(self, trace_length=length)

    def with_evaluation_domain(self, size: int) -> "StarkConfig":
        return replace(self, evaluation_domain=size)

    def with_fri_queries(self, queries: int) -> "StarkConfig":
        return replace(self, fri_queries=queries)

    def with_hash_function(self, name: str) -> "StarkConfig":
        return replace(self, hash_function=name)

    def with_blowup_factor(self, factor: int) -> "StarkConfig":
        """Set the evaluation domain to factor * trace_length."""
        return replace(self, evaluation_domain=self.trace_length * factor)

    def clone(self) -> "StarkConfig":
        return replace(self)

    # --- Loading ---

    @classmethod
    def from_dict(cls, data: dict) -> "StarkConfig":
        """Build a config from camelCase or snake_case keys; missing keys keep their defaults.

        Raises:
            ConfigError: On a non-object input or an unknown key
        """
        if not isinstance(data, dict):
            raise ConfigError(f"configuration must be an object, got {type(data).__name__}")
        kwargs = {}
        for key, value in data.items():
            name = _JSON_KEYS.get(key, key)
            if name not in _JSON_KEYS.values():
                raise ConfigError(f"unknown configuration key {key!r}")
            kwargs[name] = value
        return cls(**kwargs)

    @classmethod
    def from_json(cls, path: str) -> "StarkConfig":
        """Load a config from a JSON file.

        Raises:
            ConfigError: If the file is not valid JSON
        """
        with open(path) as f:
            try:
                j = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"{path}: invalid JSON: {e}") from e
        return cls.from_dict(j)

    def to_dict(self) -> dict:
        return asdict(self)


def default_config() -> StarkConfig:
    """Return the default configuration."""
    return StarkConfig()
