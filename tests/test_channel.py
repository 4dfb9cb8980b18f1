"""Tests for the Fiat-Shamir channel."""

import pytest

from zkstark.primitives.channel import INITIAL_STATE, Channel
from zkstark.primitives.hashing import POSEIDON, SHA3, SHA256, get_hasher


class TestChannel:

    @pytest.mark.parametrize("name", [SHA3, SHA256, POSEIDON])
    def test_replay_is_deterministic(self, name: str) -> None:
        a, b = Channel(name), Channel(name)
        for ch in (a, b):
            ch.send(b"root")
        assert a.receive_random_ints(0, 1000, 5) == b.receive_random_ints(0, 1000, 5)
        assert a.digest() == b.digest()

    def test_messages_change_challenges(self) -> None:
        a, b = Channel(), Channel()
        a.send(b"root-a")
        b.send(b"root-b")
        assert a.state != b.state
        assert a.receive_random_int(0, 2**64) != b.receive_random_int(0, 2**64)

    def test_initial_state(self) -> None:
        ch = Channel()
        assert ch.state == INITIAL_STATE
        assert ch.log == []

    def test_state_update(self) -> None:
        hasher = get_hasher(SHA3)
        ch = Channel(SHA3)
        ch.send(b"\x01\x02")
        assert ch.state == hasher.digest(INITIAL_STATE + b"\x01\x02")

        expected = int.from_bytes(ch.state, "big") % 11 + 5
        next_state = hasher.digest(ch.state)
        assert ch.receive_random_int(5, 15) == expected
        assert ch.state == next_state

    def test_log_format(self) -> None:
        ch = Channel()
        ch.send(b"\xab\xcd")
        value = ch.receive_random_int(0, 9)
        assert ch.log == ["send:abcd", f"receiveRandInt:{value}"]
        assert str(ch) == f"send:abcd receiveRandInt:{value}"
        assert "entries=2" in repr(ch)

    def test_range(self) -> None:
        ch = Channel()
        values = ch.receive_random_ints(3, 7, 200)
        assert all(3 <= v <= 7 for v in values)
        assert set(values) == {3, 4, 5, 6, 7}
        assert ch.receive_random_int(4, 4) == 4

    def test_empty_range(self) -> None:
        with pytest.raises(ValueError):
            Channel().receive_random_int(5, 4)

    def test_field_elements(self, gf) -> None:
        ch = Channel()
        ch.send_elements(gf([1, 2, 3]))
        x = ch.receive_random_field_element(gf)
        assert type(x) is gf
        assert ch.log[0] == "send:" + "000000010000000200000003"

        single = Channel()
        single.send_element(gf(1))
        assert single.log == ["send:00000001"]

    def test_accepts_hasher_instance(self, gf) -> None:
        hasher = get_hasher(POSEIDON, gf)
        assert Channel(hasher).hasher is hasher
        channel = Channel(hasher)
        assert channel.digest() == INITIAL_STATE.hex()
        channel.send(b"x")
        assert len(channel.digest()) == 2 * hasher.output_size

    def test_unknown_hash_falls_back(self) -> None:
        assert Channel("md5").hasher.name == SHA3
