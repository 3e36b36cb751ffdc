"""
Card Generation - public key -> 5x5 bingo card.

Layout:
    B: 1-15   I: 16-30   N: 31-45   G: 46-60   O: 61-75

Cell N[2] is the free space. It is stored as None, always counts as
marked, and consumes no entropy during generation.

Algorithm (per column, in B, I, N, G, O order):
1. Read a 2-byte integer from the EntropyStream seeded by the key
2. Map it into the column: value % 15 + column_min
3. Reject values already in the column, retry
4. Stop at five cells (four numbers plus the free space for N)
"""

from __future__ import annotations
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
import logging

from ..errors import DerivationExhaustionError, ValidationError
from .entropy import EntropyStream
from .keys import KeyDerivationEngine, card_seed

logger = logging.getLogger(__name__)

COLUMNS = ("B", "I", "N", "G", "O")
GRID_SIZE = 5
FREE_ROW = 2
FREE_COLUMN = "N"


@dataclass(frozen=True)
class ColumnRange:
    """Inclusive number range of one column."""
    minimum: int
    maximum: int

    @property
    def size(self) -> int:
        return self.maximum - self.minimum + 1

    def __contains__(self, value: object) -> bool:
        if isinstance(value, bool) or not isinstance(value, int):
            return False
        return self.minimum <= value <= self.maximum


COLUMN_RANGES: dict[str, ColumnRange] = {
    "B": ColumnRange(1, 15),
    "I": ColumnRange(16, 30),
    "N": ColumnRange(31, 45),
    "G": ColumnRange(46, 60),
    "O": ColumnRange(61, 75),
}

# Per cell; a 15-value range never gets close
MAX_ATTEMPTS_PER_CELL = 15 * 5

Cell = int | None


@dataclass(frozen=True)
class BingoGrid:
    """
    Fixed-shape 5x5 grid.

    Each column is a 5-tuple indexed by row. Construction enforces the
    range, uniqueness and free-space invariants.
    """
    B: tuple[Cell, ...]
    I: tuple[Cell, ...]
    N: tuple[Cell, ...]
    G: tuple[Cell, ...]
    O: tuple[Cell, ...]

    def __post_init__(self):
        for name in COLUMNS:
            column = tuple(getattr(self, name))
            object.__setattr__(self, name, column)
            if len(column) != GRID_SIZE:
                raise ValidationError(f"Column {name} must have {GRID_SIZE} cells")

            numbers = []
            for row, value in enumerate(column):
                if name == FREE_COLUMN and row == FREE_ROW:
                    if value is not None:
                        raise ValidationError("Cell N[2] must be the free space")
                    continue
                if value not in COLUMN_RANGES[name]:
                    raise ValidationError(
                        f"Cell {name}[{row}]={value!r} outside {COLUMN_RANGES[name]}"
                    )
                numbers.append(value)

            if len(set(numbers)) != len(numbers):
                raise ValidationError(f"Column {name} has repeated numbers")

    @classmethod
    def from_dict(cls, data: dict[str, Sequence[Cell]]) -> BingoGrid:
        missing = [name for name in COLUMNS if name not in data]
        if missing:
            raise ValidationError(f"Grid is missing columns: {', '.join(missing)}")
        return cls(**{name: tuple(data[name]) for name in COLUMNS})

    def to_dict(self) -> dict[str, list[Cell]]:
        return {name: list(getattr(self, name)) for name in COLUMNS}

    def column(self, name: str) -> tuple[Cell, ...]:
        return getattr(self, name)

    def cell(self, row: int, column_index: int) -> Cell:
        return self.column(COLUMNS[column_index])[row]

    def row(self, row: int) -> tuple[Cell, ...]:
        return tuple(self.cell(row, col) for col in range(GRID_SIZE))

    def numbers(self) -> Iterator[int]:
        """All 24 non-free values."""
        for name in COLUMNS:
            for value in self.column(name):
                if value is not None:
                    yield value


@dataclass(frozen=True)
class Card:
    """
    A participant's card.

    line_index is the participant's position in the list, which is also
    the derivation index its key came from.
    """
    card_id: str
    owner_name: str
    grid: BingoGrid
    line_index: int | None = None

    def with_owner(self, owner_name: str, line_index: int) -> Card:
        return Card(
            card_id=self.card_id,
            owner_name=owner_name,
            grid=self.grid,
            line_index=line_index,
        )


def card_id_for(public_key: bytes) -> str:
    return f"card-{public_key.hex()[-8:]}"


class CardGenerator:
    """
    Deterministic card construction from a public key.

    Same key -> same grid and card_id, always.
    """

    def generate(self, public_key: bytes, owner_name: str = "") -> Card:
        if not isinstance(public_key, (bytes, bytearray)) or len(public_key) == 0:
            raise ValidationError("Invalid publicKey provided for card generation.")
        public_key = bytes(public_key)

        stream = EntropyStream(public_key)
        columns = {name: self._fill_column(name, stream) for name in COLUMNS}

        return Card(
            card_id=card_id_for(public_key),
            owner_name=owner_name,
            grid=BingoGrid(**columns),
        )

    def _fill_column(self, name: str, stream: EntropyStream) -> tuple[Cell, ...]:
        column_range = COLUMN_RANGES[name]
        cells: list[Cell] = []
        used: set[int] = set()

        while len(cells) < GRID_SIZE:
            if name == FREE_COLUMN and len(cells) == FREE_ROW:
                cells.append(None)
                continue

            for _ in range(MAX_ATTEMPTS_PER_CELL):
                value = stream.next_uint(2) % column_range.size + column_range.minimum
                if value not in used:
                    break
            else:
                raise DerivationExhaustionError(
                    f"Could not generate unique number for column {name} "
                    f"after {MAX_ATTEMPTS_PER_CELL} attempts."
                )

            cells.append(value)
            used.add(value)

        return tuple(cells)


def generate_all_cards(
    names: Sequence[str],
    seed: str,
    key_engine: KeyDerivationEngine | None = None,
    generator: CardGenerator | None = None,
) -> list[Card]:
    """
    One card per participant, in list order.

    Participant i gets the key at index i under the card seed. An empty
    list is valid and yields no cards.
    """
    if names is None or not seed:
        raise ValidationError("Missing participants or blockHash")

    key_engine = key_engine or KeyDerivationEngine()
    generator = generator or CardGenerator()
    derived_seed = card_seed(seed)

    cards = []
    for index, name in enumerate(names):
        public_key = key_engine.derive(derived_seed, index)
        card = generator.generate(public_key, owner_name=name)
        cards.append(card.with_owner(name, index))

    logger.info("Generated %d card(s)", len(cards))
    return cards
