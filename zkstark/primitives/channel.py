"""Fiat-Shamir channel.

The channel keeps a running hash state and an append-only log of every
message sent and every challenge drawn. Challenges are a deterministic
function of everything sent so far, so a verifier that sends the same
messages in the same order replays the prover's challenges exactly.
"""

from typing import List, Optional, Union

from zkstark.primitives.field import Field, elements_to_bytes, modulus, to_bytes
from zkstark.primitives.hashing import SHA3, Hasher, get_hasher

INITIAL_STATE = b"\x00"


class Channel:
    """Non-interactive prover/verifier transcript.

    Args:
        hash_function: Hash name or a Hasher instance; unknown names fall back to SHA3
        field: Field for algebraic hashes (defaults to GF(3221225473))
    """

    def __init__(self, hash_function: Union[str, Hasher] = SHA3, field: Optional[Field] = None) -> None:
        if isinstance(hash_function, Hasher):
            self.hasher = hash_function
        else:
            self.hasher = get_hasher(hash_function, field)
        self._state = INITIAL_STATE
        self._log: List[str] = []

    # --- Prover Messages ---

    def send(self, data: bytes) -> None:
        """Fold data into the state: state = H(state || data)."""
        self._log.append(f"send:{data.hex()}")
        self._state = self.hasher.digest(self._state + data)

    def send_element(self, x) -> None:
        self.send(to_bytes(x))

    def send_elements(self, values) -> None:
        self.send(b"".join(elements_to_bytes(values)))

    # --- Verifier Randomness ---

    def receive_random_int(self, lo: int, hi: int) -> int:
        """Deterministic integer in [lo, hi]; advances the state.

        Raises:
            ValueError: If lo > hi
        """
        if lo > hi:
            raise ValueError(f"empty range [{lo}, {hi}]")
        value = int.from_bytes(self._state, "big") % (hi - lo + 1) + lo
        self._log.append(f"receiveRandInt:{value}")
        self._state = self.hasher.digest(self._state)
        return value

    def receive_random_field_element(self, field: Field):
        return field(self.receive_random_int(0, modulus(field) - 1))

    def receive_random_ints(self, lo: int, hi: int, count: int) -> List[int]:
        return [self.receive_random_int(lo, hi) for _ in range(count)]

    # --- Inspection ---

    @property
    def state(self) -> bytes:
        return bytes(self._state)

    @property
    def log(self) -> List[str]:
        return list(self._log)

    def digest(self) -> str:
        """Hex digest of the current state."""
        return self._state.hex()

    def __str__(self) -> str:
        return " ".join(self._log)

    def __repr__(self) -> str:
        return f"Channel({self.hasher.name!r}, entries={len(self._log)})"
