"""
Pytest fixtures for BlockBingo tests.
"""

import time

import pytest

from ..engine_core.card import BingoGrid, Card
from ..engine_core.drawer import DrawRecord, NumberDrawer
from ..session import SessionManager


# Block hash used throughout; its index-0 key is a known BIP32 vector
SEED = "000000000000000000006f9367863b3fa7ecbc605c8215ef9e92386cbec8255f"
SEED_INDEX0_PUBKEY = "0221f19d6298f375ef4b2f829fbe479567d2a186aabef4f7790d7a73d32ff68145"

TXID = "f" * 64


class ScriptedDrawer(NumberDrawer):
    """
    Drawer that returns numbers from a script instead of deriving them.

    Lets session tests force line and full-card wins on cards whose
    contents are only known after generation.
    """

    def __init__(self, script=None):
        super().__init__()
        self.script = list(script or [])

    def next_record(self, seed, start_index, drawn):
        while self.script:
            number = self.script.pop(0)
            if number not in drawn:
                return DrawRecord(
                    number=number,
                    derivation_index=start_index,
                    attempts=1,
                    public_key_hex="",
                    drawn_at=time.time(),
                )
        raise AssertionError("Draw script exhausted")


def line_numbers(card: Card, row: int) -> list[int]:
    """Numbers of one row, free cell skipped."""
    return [value for value in card.grid.row(row) if value is not None]


@pytest.fixture
def sample_grid() -> BingoGrid:
    """A hand-built valid grid."""
    return BingoGrid(
        B=(1, 2, 3, 4, 5),
        I=(16, 17, 18, 19, 20),
        N=(31, 32, None, 34, 35),
        G=(46, 47, 48, 49, 50),
        O=(61, 62, 63, 64, 65),
    )


@pytest.fixture
def sample_card(sample_grid: BingoGrid) -> Card:
    return Card(card_id="card-00000001", owner_name="Alice", grid=sample_grid, line_index=0)


@pytest.fixture
def participants() -> list[dict]:
    return [{"name": "Alice"}, {"name": "Bob"}, {"name": "Carol"}]


@pytest.fixture
def drawer() -> ScriptedDrawer:
    return ScriptedDrawer()


@pytest.fixture
def manager(drawer: ScriptedDrawer) -> SessionManager:
    """Manager whose draws come from the `drawer` script."""
    return SessionManager(drawer=drawer)


@pytest.fixture
def real_manager() -> SessionManager:
    """Manager with real key derivation for draws."""
    return SessionManager()
