"""
Number Drawing - the session's next unique number from (seed, index).

For index = session.next_derivation_index:
1. Derive the public key for (session seed, index)
2. candidate = uint32_be(sha256(key)[-4:]) % 75 + 1
3. If candidate was already drawn, index += 1 and go to 1

Probing is bounded. Each probe is an independent hash, so a run of
collisions is only probabilistically short: with 74 numbers taken a
probe misses with p = 74/75. The bound keeps (74/75) ** bound below
1e-27; reaching it means derivation is broken and raises
DerivationExhaustionError, never a retryable condition.

On success the number is appended, next_derivation_index moves to one
past the index that produced it, and a DrawRecord is kept so the whole
sequence can be audited later.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import hashlib
import logging
import time

from ..errors import DerivationExhaustionError, StateError, ValidationError
from .keys import KeyDerivationEngine

if TYPE_CHECKING:
    from ..session.state import GameSession

logger = logging.getLogger(__name__)

MAX_NUMBER = 75
MAX_DRAW_ATTEMPTS = MAX_NUMBER * 64
SUFFIX_BYTES = 4


@dataclass(frozen=True)
class DrawRecord:
    """One successful draw, as a third party would re-derive it."""
    number: int
    derivation_index: int
    attempts: int
    public_key_hex: str
    drawn_at: float


def hash_public_key_to_number(public_key: bytes) -> int:
    """Map a public key to 1..75."""
    if not isinstance(public_key, (bytes, bytearray)) or len(public_key) == 0:
        raise ValidationError("Invalid publicKey provided for number generation.")
    if len(public_key) < SUFFIX_BYTES:
        raise ValidationError(
            f"Public key buffer is too short: need at least {SUFFIX_BYTES} bytes"
        )
    digest = hashlib.sha256(bytes(public_key)).digest()
    return int.from_bytes(digest[-SUFFIX_BYTES:], "big") % MAX_NUMBER + 1


class NumberDrawer:
    """
    Draws numbers for a session.

    Callers must hold the session's lock; draw_next reads and writes
    several fields in one step.
    """

    def __init__(self, key_engine: KeyDerivationEngine | None = None):
        self.key_engine = key_engine or KeyDerivationEngine()

    def draw_next(self, session: GameSession) -> int:
        if len(session.drawn_numbers) >= MAX_NUMBER:
            raise StateError(f"All {MAX_NUMBER} numbers have been drawn")

        record = self.next_record(
            session.seed,
            session.next_derivation_index,
            set(session.drawn_numbers),
        )

        session.drawn_numbers.append(record.number)
        session.next_derivation_index = record.derivation_index + 1
        session.last_draw_time = record.drawn_at
        session.draw_sequence.append(record)

        logger.info(
            "Drew %d for %s (index %d, %d attempt(s), %d drawn)",
            record.number,
            session.txid,
            record.derivation_index,
            record.attempts,
            len(session.drawn_numbers),
        )
        return record.number

    def next_record(self, seed: str, start_index: int, drawn: set[int]) -> DrawRecord:
        """Probe indices from start_index until an undrawn number appears."""
        index = start_index
        for attempt in range(1, MAX_DRAW_ATTEMPTS + 1):
            public_key = self.key_engine.derive(seed, index)
            candidate = hash_public_key_to_number(public_key)
            if candidate not in drawn:
                return DrawRecord(
                    number=candidate,
                    derivation_index=index,
                    attempts=attempt,
                    public_key_hex=public_key.hex(),
                    drawn_at=time.time(),
                )
            logger.debug("Index %d gave %d, already drawn", index, candidate)
            index += 1

        raise DerivationExhaustionError(
            f"No undrawn number within {MAX_DRAW_ATTEMPTS} indices from {start_index}",
            details={"start_index": start_index, "drawn": len(drawn)},
        )


def replay_draws(
    seed: str,
    count: int = MAX_NUMBER,
    key_engine: KeyDerivationEngine | None = None,
) -> list[DrawRecord]:
    """
    Re-derive the first `count` draws of a fresh session.

    This is what a verifier runs against a published seed.
    """
    if count < 0 or count > MAX_NUMBER:
        raise ValidationError(f"count must be 0..{MAX_NUMBER}, got {count}")

    drawer = NumberDrawer(key_engine)
    drawn: set[int] = set()
    records = []
    index = 0
    for _ in range(count):
        record = drawer.next_record(seed, index, drawn)
        records.append(record)
        drawn.add(record.number)
        index = record.derivation_index + 1
    return records
