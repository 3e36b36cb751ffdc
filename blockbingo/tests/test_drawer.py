"""
Tests for number drawing.

Tests:
- Public key -> number mapping
- Probing past already-drawn numbers
- A full game draws a permutation of 1..75
- Replay matches live draws
"""

import pytest

from ..engine_core.drawer import (
    MAX_DRAW_ATTEMPTS,
    MAX_NUMBER,
    NumberDrawer,
    hash_public_key_to_number,
    replay_draws,
)
from ..engine_core.keys import derive_public_key
from ..errors import DerivationExhaustionError, StateError, ValidationError
from ..session import GameMode, GameSession
from .conftest import SEED, SEED_INDEX0_PUBKEY, TXID


def make_session(seed=SEED):
    return GameSession(
        txid=TXID,
        seed=seed,
        participants=[],
        cards=[],
        mode=GameMode.FULL_CARD_ONLY,
        gm_token="token",
        creation_time=0.0,
    )


class TestHashToNumber:
    """Tests for hash_public_key_to_number."""

    def test_known_values(self):
        assert hash_public_key_to_number(bytes.fromhex(SEED_INDEX0_PUBKEY)) == 20
        assert hash_public_key_to_number(bytes(4)) == 22
        assert hash_public_key_to_number(bytes.fromhex("deadbeef")) == 65

    def test_range(self):
        for index in range(20):
            number = hash_public_key_to_number(derive_public_key(SEED, index))
            assert 1 <= number <= MAX_NUMBER

    def test_short_key(self):
        with pytest.raises(ValidationError, match="too short"):
            hash_public_key_to_number(b"\x01\x02\x03")

    def test_empty_key(self):
        with pytest.raises(ValidationError):
            hash_public_key_to_number(b"")


class TestNumberDrawer:
    """Tests for NumberDrawer."""

    @pytest.fixture
    def drawer(self):
        return NumberDrawer()

    def test_first_draw_known(self, drawer):
        session = make_session()
        assert drawer.draw_next(session) == 20
        assert session.drawn_numbers == [20]
        assert session.next_derivation_index == 1
        assert session.draw_sequence[0].derivation_index == 0
        assert session.draw_sequence[0].public_key_hex == SEED_INDEX0_PUBKEY
        assert session.last_draw_time is not None

    def test_skips_drawn_numbers(self, drawer):
        """If index 0's number is already out, probing moves on."""
        record = drawer.next_record(SEED, 0, {20})
        assert record.number != 20
        assert record.derivation_index >= 1
        assert record.attempts == record.derivation_index + 1

    def test_full_game_is_permutation(self, drawer):
        session = make_session()
        for _ in range(MAX_NUMBER):
            drawer.draw_next(session)

        assert sorted(session.drawn_numbers) == list(range(1, MAX_NUMBER + 1))
        indices = [r.derivation_index for r in session.draw_sequence]
        assert indices == sorted(set(indices))
        assert session.next_derivation_index == indices[-1] + 1

    def test_76th_draw_rejected(self, drawer):
        session = make_session()
        session.drawn_numbers = list(range(1, MAX_NUMBER + 1))
        with pytest.raises(StateError):
            drawer.draw_next(session)

    def test_exhaustion(self):
        """A key engine that only ever yields drawn numbers hits the bound."""

        class ConstantKeys:
            calls = 0

            def derive(self, seed, index):
                ConstantKeys.calls += 1
                return bytes(4)

        drawer = NumberDrawer(ConstantKeys())
        with pytest.raises(DerivationExhaustionError):
            drawer.next_record(SEED, 0, {22})
        assert ConstantKeys.calls == MAX_DRAW_ATTEMPTS


class TestReplay:
    """Tests for replay_draws."""

    def test_matches_live_session(self):
        session = make_session()
        drawer = NumberDrawer()
        for _ in range(10):
            drawer.draw_next(session)

        replayed = replay_draws(SEED, 10)
        assert [r.number for r in replayed] == session.drawn_numbers
        assert [r.derivation_index for r in replayed] == [
            r.derivation_index for r in session.draw_sequence
        ]

    def test_zero(self):
        assert replay_draws(SEED, 0) == []

    @pytest.mark.parametrize("count", [-1, MAX_NUMBER + 1])
    def test_bad_count(self, count):
        with pytest.raises(ValidationError):
            replay_draws(SEED, count)
