"""Top-level STARK facade."""

from typing import Optional

from zkstark.config import StarkConfig, default_config
from zkstark.primitives.field import Field
from zkstark.protocol.proof import Proof
from zkstark.protocol.prover import StarkProver
from zkstark.protocol.verifier import StarkVerifier


class Stark:
    """Prover and verifier sharing one validated configuration.

    Raises:
        ConfigError: If the configuration is invalid
    """

    def __init__(self, config: Optional[StarkConfig] = None) -> None:
        self.config = config if config is not None else default_config()
        self._prover = StarkProver(self.config)
        self._verifier = None

    @property
    def field(self) -> Field:
        return self._prover.field

    def prover(self) -> StarkProver:
        return self._prover

    def verifier(self) -> StarkVerifier:
        if self._verifier is None:
            self._verifier = StarkVerifier(self.config)
        return self._verifier

    def generate_trace(self):
        return self._prover.generate_trace()

    def prove(self, trace=None) -> Proof:
        return self._prover.prove(trace)

    def verify(self, proof: Proof) -> bool:
        return self.verifier().verify(proof)
