"""Shared prover/verifier setup derived from a configuration."""

from dataclasses import dataclass

from zkstark.config import StarkConfig
from zkstark.primitives.channel import Channel
from zkstark.primitives.field import Field, prime_field
from zkstark.primitives.hashing import Hasher, get_hasher
from zkstark.protocol.air import SquareFibonacciAir
from zkstark.protocol.domains import StarkDomains
from zkstark.protocol.fri import FriProtocol


@dataclass
class StarkSetup:
    """Everything both sides derive from the configuration before touching a proof."""
    config: StarkConfig
    field: Field
    hasher: Hasher
    domains: StarkDomains
    air: SquareFibonacciAir
    fri: FriProtocol

    @classmethod
    def from_config(cls, config: StarkConfig) -> "StarkSetup":
        """Validate the configuration, then build field, hasher, domains, AIR and FRI.

        Raises:
            ConfigError: If the configuration is invalid
        """
        config.validate()
        field = prime_field(config.field_modulus)
        hasher = get_hasher(config.hash_function, field, config.security_level)
        domains = StarkDomains.build(field, config.trace_length, config.evaluation_domain)
        air = SquareFibonacciAir(domains)
        fri = FriProtocol(hasher, config.fri_queries, degree_bound=air.degree_bound)
        return cls(config=config, field=field, hasher=hasher, domains=domains, air=air, fri=fri)

    def new_channel(self) -> Channel:
        return Channel(self.hasher)

    def begin_transcript(self, channel: Channel, public_inputs, trace_root: bytes) -> list:
        """Bind public inputs and the trace root, then draw one weight per constraint."""
        channel.send_elements(self.field([int(x) for x in public_inputs]))
        channel.send(trace_root)
        return [channel.receive_random_field_element(self.field) for _ in range(self.air.num_constraints)]
